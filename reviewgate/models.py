"""
Data models for the review gate pipeline.
Using Pydantic for validation and type safety.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Ordered tri-level severity: low < medium < high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}

# Words the analysis service uses outside the low/medium/high vocabulary
SEVERITY_ALIASES = {
    "critical": Severity.HIGH,
    "blocker": Severity.HIGH,
    "moderate": Severity.MEDIUM,
    "warning": Severity.MEDIUM,
    "info": Severity.LOW,
    "minor": Severity.LOW,
    "trivial": Severity.LOW,
}


def normalize_severity(value, default: Severity = Severity.MEDIUM) -> Severity:
    """Map any upstream severity value onto the Severity enum."""
    if isinstance(value, Severity):
        return value
    text = str(value or "").strip().lower()
    try:
        return Severity(text)
    except ValueError:
        pass
    if text in SEVERITY_ALIASES:
        return SEVERITY_ALIASES[text]
    logger.warning(f"Unknown severity {value!r}, treating as {default.value}")
    return default


class ChangeStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class ChangeRecord(BaseModel):
    """One file entry in a revision's diff."""

    model_config = {"frozen": True}

    path: str = Field(..., description="Repository-relative file path")
    status: ChangeStatus = ChangeStatus.MODIFIED
    inline_content: Optional[str] = Field(None, description="Inline patch text if the resolver supplied one")


class FilterRuleSet(BaseModel):
    """Include/exclude rules applied before any analysis."""

    model_config = {"frozen": True}

    include_extensions: List[str] = Field(default_factory=list)
    exclude_patterns: List[str] = Field(default_factory=list)


class Issue(BaseModel):
    """Single finding reported by the analysis service."""

    description: str = Field("Issue found in code", description="Human-readable explanation")
    severity: Severity = Field(Severity.MEDIUM, description="Issue severity")
    line: str = Field("unknown", description="Line number or range, or 'unknown'")
    recommendation: Optional[str] = Field(None, description="How to fix the issue")

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value):
        return normalize_severity(value)

    @field_validator("line", mode="before")
    @classmethod
    def _stringify_line(cls, value):
        if value is None or value == "":
            return "unknown"
        return str(value)


class AnalysisResult(BaseModel):
    """
    Structured analysis of one file.

    `severity` is always the maximum of the issue severities (low when empty).
    Whatever the upstream source claimed is kept in `reported_severity`.
    """

    issues: List[Issue] = Field(default_factory=list)
    severity: Severity = Severity.LOW
    reported_severity: Optional[Severity] = None

    @field_validator("reported_severity", mode="before")
    @classmethod
    def _normalize_reported(cls, value):
        if value is None:
            return None
        return normalize_severity(value)

    @model_validator(mode="before")
    @classmethod
    def _capture_reported(cls, data):
        if isinstance(data, dict) and "reported_severity" not in data and "severity" in data:
            data = dict(data)
            data["reported_severity"] = data.pop("severity")
        return data

    @model_validator(mode="after")
    def _enforce_max_severity(self):
        computed = Severity.LOW
        for issue in self.issues:
            if issue.severity.rank > computed.rank:
                computed = issue.severity
        if self.reported_severity is not None and self.reported_severity != computed:
            logger.warning(
                f"Reported severity {self.reported_severity.value} disagrees with issues, "
                f"using {computed.value}"
            )
        self.severity = computed
        return self


class FileVerdict(BaseModel):
    """Analysis outcome for one successfully analyzed file."""

    path: str
    result: AnalysisResult


class BlockingCriteria(str, Enum):
    HIGH_ONLY = "high_only"
    MEDIUM_AND_HIGH = "medium_and_high"
    ALL_SEVERITIES = "all_severities"
    CUSTOM = "custom"


class BranchPolicy(BaseModel):
    """Reporting and blocking policy for one branch."""

    blocking: bool = False
    severity_threshold: Severity = Severity.MEDIUM
    blocking_criteria: BlockingCriteria = BlockingCriteria.HIGH_ONLY
    custom_rules: Optional[Dict[Severity, bool]] = None
    review_criteria: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("blocking_criteria", mode="before")
    @classmethod
    def _default_unknown_criteria(cls, value):
        if value is None:
            return BlockingCriteria.HIGH_ONLY
        try:
            return BlockingCriteria(value)
        except ValueError:
            logger.warning(f"Unknown blocking criteria {value!r}, defaulting to high_only")
            return BlockingCriteria.HIGH_ONLY


class GateDecision(BaseModel):
    """Result of applying a branch policy to the overall severity."""

    model_config = {"frozen": True}

    raise_report: bool
    block: bool
    overall_severity: Severity


class RunStats(BaseModel):
    """Run-scoped counters threaded through the dispatcher."""

    files_total: int = 0
    files_filtered: int = 0
    files_analyzed: int = 0
    files_skipped: int = 0
    analysis_calls: int = 0
    analysis_failures: int = 0
    batch_sizes: List[int] = Field(default_factory=list)


class ReviewSummary(BaseModel):
    """Summary of review results."""

    total_issues: int
    high_severity: int
    medium_severity: int
    low_severity: int
    files_with_issues: int
    review_time_seconds: float


class ReviewOutput(BaseModel):
    """Complete review output."""

    branch: str
    verdicts: List[FileVerdict]
    summary: ReviewSummary
    decision: GateDecision
    stats: RunStats
    metadata: dict = Field(default_factory=dict)
