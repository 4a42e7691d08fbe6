"""Severity ordering and run-level aggregation."""

from typing import Iterable, Sequence

from reviewgate.models import FileVerdict, Severity


def severity_rank(severity: Severity) -> int:
    return Severity(severity).rank


def max_severity(severities: Iterable[Severity]) -> Severity:
    """Greatest severity under low < medium < high, low when empty."""
    highest = Severity.LOW
    for severity in severities:
        if severity_rank(severity) > severity_rank(highest):
            highest = Severity(severity)
    return highest


def aggregate(verdicts: Sequence[FileVerdict]) -> Severity:
    """
    Overall severity of a run.

    Computed from every issue of every verdict, ignoring the per-file
    `severity` fields. This is the value used for reporting and gating.
    """
    return max_severity(
        issue.severity
        for verdict in verdicts
        for issue in verdict.result.issues
    )
