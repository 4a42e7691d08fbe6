"""
Run filtered files through the analysis service in barrier batches.

Files are split into consecutive batches of `concurrency_limit`. Every file
in a batch is fetched and analyzed concurrently, and the next batch starts
only after the whole batch has settled. Peak in-flight calls therefore
equal the batch size; there is no sliding window.

Per-file failures (content unavailable, analysis error) produce no verdict
and are counted in RunStats. They never abort the batch or the run.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from reviewgate.models import AnalysisResult, ChangeRecord, ChangeStatus, FileVerdict, RunStats

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_LENGTH = 3000
TRUNCATION_MARKER = "\n... (truncated)"

ContentFetcher = Callable[[str], Awaitable[Optional[str]]]
Analyzer = Callable[[str, str], Awaitable[AnalysisResult]]

T = TypeVar("T")


def batched(items: Sequence[T], size: int) -> List[List[T]]:
    """Consecutive chunks of `size`; the last one may be shorter."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def truncate_content(content: str, max_length: int) -> str:
    if len(content) <= max_length:
        return content
    return content[:max_length] + TRUNCATION_MARKER


async def _resolve_content(change: ChangeRecord, fetch_content: ContentFetcher) -> Optional[str]:
    if change.inline_content:
        return change.inline_content

    if change.status == ChangeStatus.REMOVED:
        logger.info(f"Skipping {change.path}: file removed and no patch available")
        return None

    try:
        return await fetch_content(change.path)
    except Exception as e:
        logger.warning(f"Could not retrieve content for {change.path}: {e}")
        return None


async def _analyze_one(
    change: ChangeRecord,
    fetch_content: ContentFetcher,
    analyze: Analyzer,
    max_content_length: int,
    stats: RunStats,
) -> Optional[FileVerdict]:
    content = await _resolve_content(change, fetch_content)
    if not content:
        logger.info(f"Skipping {change.path}: no content available")
        stats.files_skipped += 1
        return None

    if len(content) > max_content_length:
        logger.info(f"Truncating {change.path} from {len(content)} to {max_content_length} characters")
        content = truncate_content(content, max_content_length)

    stats.analysis_calls += 1
    try:
        result = await analyze(change.path, content)
    except Exception as e:
        logger.warning(f"Analysis failed for {change.path}: {e}")
        stats.analysis_failures += 1
        return None

    stats.files_analyzed += 1
    logger.debug(f"Analyzed {change.path}: {len(result.issues)} issue(s), severity {result.severity.value}")
    return FileVerdict(path=change.path, result=result)


async def dispatch(
    files: Sequence[ChangeRecord],
    concurrency_limit: int,
    fetch_content: ContentFetcher,
    analyze: Analyzer,
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
    stats: Optional[RunStats] = None,
) -> List[FileVerdict]:
    """
    Analyze `files` in barrier-synchronized batches.

    Args:
        files: reviewable change records, in the order to process them
        concurrency_limit: batch size, i.e. max simultaneous service calls
        fetch_content: async content resolver, used when a record has no inline patch
        analyze: async analysis call returning an interpreted AnalysisResult
        max_content_length: longer content is truncated and marked
        stats: run-scoped counters, updated in place

    Returns:
        One FileVerdict per successfully analyzed file, in input order.
    """
    if stats is None:
        stats = RunStats()

    batches = batched(files, concurrency_limit)
    verdicts: List[FileVerdict] = []

    for number, batch in enumerate(batches, 1):
        stats.batch_sizes.append(len(batch))
        logger.info(f"Processing batch {number}/{len(batches)} ({len(batch)} file(s))")

        outcomes = await asyncio.gather(
            *(_analyze_one(change, fetch_content, analyze, max_content_length, stats) for change in batch),
            return_exceptions=True,
        )

        for change, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Unexpected failure for {change.path}: {outcome}")
                stats.analysis_failures += 1
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is not None:
                verdicts.append(outcome)

    return verdicts
