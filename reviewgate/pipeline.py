"""
Core review pipeline.

Orchestrates filter -> dispatch -> aggregate -> gate for one revision event.
Only configuration problems stop a run; every per-file failure degrades to
missing data so the rest of the change set is still reported and gated.
"""

import logging
import time
from typing import Optional, Sequence

from reviewgate.analyzer import make_analyzer
from reviewgate.config import ReviewConfig
from reviewgate.dispatcher import Analyzer, ContentFetcher, dispatch
from reviewgate.filters import filter_changes
from reviewgate.gate import decide, no_policy_decision
from reviewgate.models import ChangeRecord, FileVerdict, ReviewOutput, ReviewSummary, RunStats, Severity
from reviewgate.prompts import PROMPT_VERSION
from reviewgate.severity import aggregate

logger = logging.getLogger(__name__)


def summarize(verdicts: Sequence[FileVerdict], started: float) -> ReviewSummary:
    severity_counts = {Severity.LOW: 0, Severity.MEDIUM: 0, Severity.HIGH: 0}
    for verdict in verdicts:
        for issue in verdict.result.issues:
            severity_counts[issue.severity] += 1

    return ReviewSummary(
        total_issues=sum(severity_counts.values()),
        high_severity=severity_counts[Severity.HIGH],
        medium_severity=severity_counts[Severity.MEDIUM],
        low_severity=severity_counts[Severity.LOW],
        files_with_issues=sum(1 for verdict in verdicts if verdict.result.issues),
        review_time_seconds=round(time.time() - started, 2),
    )


async def run_review(
    changes: Sequence[ChangeRecord],
    config: ReviewConfig,
    branch: str,
    fetch_content: ContentFetcher,
    analyze: Optional[Analyzer] = None,
) -> ReviewOutput:
    """
    Review a change set for `branch`.

    Workflow:
    1. Look up the branch policy (none configured -> nothing to do)
    2. Filter the change set with the include/exclude rules
    3. Analyze the remaining files in barrier batches
    4. Aggregate one overall severity and apply the gate

    `analyze` defaults to the configured LLM analyzer for the branch.
    """
    start_time = time.time()
    stats = RunStats(files_total=len(changes))
    metadata = {"prompt_version": PROMPT_VERSION}

    policy = config.policy_for(branch)
    if policy is None:
        logger.info(
            f"No configuration found for branch: {branch} "
            f"(available: {', '.join(sorted(config.branches)) or 'none'})"
        )
        metadata["policy"] = None
        return ReviewOutput(
            branch=branch,
            verdicts=[],
            summary=summarize([], start_time),
            decision=no_policy_decision(),
            stats=stats,
            metadata=metadata,
        )

    settings = config.global_settings
    reviewable = filter_changes(changes, settings.rules)
    stats.files_filtered = len(reviewable)
    logger.info(f"Found {len(changes)} changed files, {len(reviewable)} to review after filtering")

    if analyze is None:
        analyze = make_analyzer(config.llm, policy)
        metadata["llm_provider"] = config.llm.provider
        metadata["model_name"] = config.llm.model

    verdicts = []
    if reviewable:
        verdicts = await dispatch(
            reviewable,
            settings.concurrency_limit,
            fetch_content,
            analyze,
            max_content_length=settings.max_content_length,
            stats=stats,
        )
    else:
        logger.info("No files to review")

    overall = aggregate(verdicts)
    decision = decide(overall, policy)
    summary = summarize(verdicts, start_time)

    logger.info(
        f"Review completed: {summary.total_issues} issue(s) in {summary.files_with_issues} file(s), "
        f"overall severity {overall.value}"
    )
    if decision.block:
        logger.info(f"BLOCKING: {overall.value} severity issues found on {branch}")

    metadata["policy"] = policy.model_dump(mode="json", exclude={"review_criteria"})
    return ReviewOutput(
        branch=branch,
        verdicts=verdicts,
        summary=summary,
        decision=decision,
        stats=stats,
        metadata=metadata,
    )
