"""
Turn raw analysis-service output into an AnalysisResult.

Two parsers, tried in order:
1. strict  - locate the JSON object and validate it against the schema
2. fallback - scrape quoted field values out of the text with regexes

The first one to produce a result wins; partial results are never merged.
`interpret` never raises.
"""

import json
import logging
import re
from typing import List, Optional

from pydantic import ValidationError

from reviewgate.models import AnalysisResult, Issue, Severity

logger = logging.getLogger(__name__)

# Below this length an unparseable response is treated as empty
MIN_UNSTRUCTURED_LENGTH = 50

DEFAULT_DESCRIPTION = "Issue found in code"
DEFAULT_SEVERITY = "medium"
DEFAULT_LINE = "unknown"
DEFAULT_RECOMMENDATION = "Review the code for potential issues"

GENERIC_DESCRIPTION = "Analysis returned unstructured output that may describe issues"
GENERIC_RECOMMENDATION = "Review the raw analysis output manually"

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def _field_re(name: str) -> "re.Pattern[str]":
    return re.compile(r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % name)


_DESCRIPTION_RE = _field_re("description")
_SEVERITY_RE = _field_re("severity")
_LINE_RE = _field_re("line")
_RECOMMENDATION_RE = _field_re("recommendation")


class _Unparseable(Exception):
    pass


def _extract_json_text(raw_text: str) -> str:
    content = raw_text.strip()
    fenced = _FENCE_RE.search(content)
    if fenced:
        return fenced.group(1).strip()
    brace = content.find("{")
    if brace >= 0:
        return content[brace:]
    return content


def parse_strict(raw_text: str) -> AnalysisResult:
    """
    Decode `{"issues": [...], "severity": ...}` from the response.

    Text after the closing brace is ignored. Raises _Unparseable when the
    response does not hold a valid result object.
    """
    candidate = _extract_json_text(raw_text)
    try:
        data, _ = json.JSONDecoder().raw_decode(candidate)
    except json.JSONDecodeError as e:
        raise _Unparseable(f"not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
        raise _Unparseable("JSON is not an analysis result object")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise _Unparseable(f"schema mismatch: {e}") from e


def _unescape(value: str) -> str:
    try:
        return json.loads('"%s"' % value)
    except ValueError:
        return value


def _pick(values: List[str], index: int, default: str) -> str:
    if index < len(values) and values[index].strip():
        return _unescape(values[index])
    return default


def _keyword_severity(raw_text: str) -> Severity:
    lowered = raw_text.lower()
    if "high severity" in lowered or "critical" in lowered:
        return Severity.HIGH
    if "medium severity" in lowered or "moderate" in lowered:
        return Severity.MEDIUM
    return Severity.LOW


def parse_fallback(raw_text: str) -> AnalysisResult:
    """Heuristic extraction for responses that are not valid JSON."""
    descriptions = _DESCRIPTION_RE.findall(raw_text)
    severity_matches = list(_SEVERITY_RE.finditer(raw_text))
    lines = _LINE_RE.findall(raw_text)
    recommendations = _RECOMMENDATION_RE.findall(raw_text)

    # The overall "severity" key follows the closed issues array
    issues_end = raw_text.rfind("]")
    if severity_matches and issues_end >= 0 and severity_matches[-1].start() > issues_end:
        severity_matches.pop()
    severities = [match.group(1) for match in severity_matches]

    count = max(len(descriptions), len(severities), len(lines), len(recommendations))

    issues = []
    for i in range(count):
        issues.append(Issue(
            description=_pick(descriptions, i, DEFAULT_DESCRIPTION),
            severity=_pick(severities, i, DEFAULT_SEVERITY),
            line=_pick(lines, i, DEFAULT_LINE),
            recommendation=_pick(recommendations, i, DEFAULT_RECOMMENDATION),
        ))

    if not issues and len(raw_text) > MIN_UNSTRUCTURED_LENGTH:
        issues.append(Issue(
            description=GENERIC_DESCRIPTION,
            severity=DEFAULT_SEVERITY,
            line=DEFAULT_LINE,
            recommendation=GENERIC_RECOMMENDATION,
        ))

    return AnalysisResult(issues=issues, reported_severity=_keyword_severity(raw_text))


def interpret(raw_text: Optional[str]) -> AnalysisResult:
    """Parse an analysis response. Always returns a result."""
    if not raw_text or not raw_text.strip():
        return AnalysisResult()

    try:
        return parse_strict(raw_text)
    except Exception as e:
        logger.warning(f"Strict parse failed ({e}), using fallback extraction")

    try:
        return parse_fallback(raw_text)
    except Exception as e:
        logger.warning(f"Fallback extraction failed: {e}")
        return AnalysisResult()
