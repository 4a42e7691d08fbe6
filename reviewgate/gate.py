"""
Gate decision: should a report be raised, and should the change be blocked?

Pure function of (overall severity, branch policy). Posting the report and
choosing the exit status belong to the caller.
"""

from reviewgate.models import BlockingCriteria, BranchPolicy, GateDecision, Severity
from reviewgate.severity import severity_rank


def _should_block(severity: Severity, policy: BranchPolicy) -> bool:
    criteria = policy.blocking_criteria

    if criteria == BlockingCriteria.MEDIUM_AND_HIGH:
        return severity in (Severity.MEDIUM, Severity.HIGH)

    if criteria == BlockingCriteria.ALL_SEVERITIES:
        return True

    if criteria == BlockingCriteria.CUSTOM:
        rules = policy.custom_rules or {}
        return rules.get(severity, False) is True

    # high_only, and the documented default for anything unrecognised
    return severity == Severity.HIGH


def decide(overall_severity: Severity, policy: BranchPolicy) -> GateDecision:
    """Map the aggregated severity and branch policy to a GateDecision."""
    severity = Severity(overall_severity)

    raise_report = severity_rank(severity) >= severity_rank(policy.severity_threshold)
    if not raise_report:
        return GateDecision(raise_report=False, block=False, overall_severity=severity)

    block = policy.blocking and _should_block(severity, policy)
    return GateDecision(raise_report=True, block=block, overall_severity=severity)


def no_policy_decision(overall_severity: Severity = Severity.LOW) -> GateDecision:
    """Decision used when the branch has no policy configured."""
    return GateDecision(raise_report=False, block=False, overall_severity=overall_severity)
