"""
LLM prompts for per-file code review.

Prompts are versioned and tracked in Git for rollback capability.
The system prompt can be overridden per deployment in the YAML config.
"""

from typing import Dict, List

SYSTEM_PROMPT = """You are a code review assistant inspecting one changed file at a time.

You report concrete problems that a reviewer should look at before the change is merged.

WHAT YOU CHECK:
- Security issues (injection, unsafe evaluation, hardcoded secrets, unsafe redirects)
- Code correctness (potential bugs, edge cases, error handling)
- Performance anti-patterns
- Maintainability problems that are likely to cause defects

SEVERITY GUIDELINES:
- high: exploitable vulnerability, data loss, or a bug that breaks functionality
- medium: likely bug or risky pattern that needs attention
- low: minor issue, worth fixing when convenient

When uncertain, DO NOT include the issue. Return ONLY JSON, no explanations."""


RESPONSE_FORMAT = """{
  "issues": [
    {
      "description": "Issue description",
      "severity": "high|medium|low",
      "line": "line number or range",
      "recommendation": "How to fix this issue"
    }
  ],
  "severity": "overall severity (highest found)"
}"""


def format_criteria(criteria: Dict[str, List[str]]) -> str:
    """Render the branch's review criteria as CATEGORY blocks."""
    blocks = []
    for category, items in criteria.items():
        lines = [f"{category.upper()}:"]
        lines.extend(f"- {item}" for item in items)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_review_prompt(system_prompt: str, criteria: Dict[str, List[str]], filename: str, content: str) -> str:
    """Build the task prompt for a single file."""

    criteria_text = format_criteria(criteria) or "Use your general review judgement."

    prompt = f"""{system_prompt}

REVIEW CRITERIA:
{criteria_text}

FILE: {filename}
CODE TO REVIEW:
```
{content}
```

Please analyze this code and provide:
1. A list of issues found (if any)
2. Severity level for each issue (high/medium/low)
3. Specific recommendations for fixes

Format your response as JSON:
{RESPONSE_FORMAT}

If no issues are found, return {{"issues": [], "severity": "low"}}"""

    return prompt


# Prompt version for tracking/rollback
PROMPT_VERSION = "v2.0"
