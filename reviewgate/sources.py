"""
Local collaborators for the pipeline: where changes and content come from,
and where the report goes.

Talking to a revision-control host is out of scope here; changes are read
from a JSON file (for example a saved compare-commits response) and file
content from a local checkout.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from reviewgate.filters import is_reviewable
from reviewgate.models import ChangeRecord, ChangeStatus, FilterRuleSet, ReviewOutput

logger = logging.getLogger(__name__)

# Hosts report more statuses than the pipeline distinguishes
_STATUS_ALIASES = {
    "renamed": ChangeStatus.MODIFIED,
    "changed": ChangeStatus.MODIFIED,
    "copied": ChangeStatus.ADDED,
    "deleted": ChangeStatus.REMOVED,
    "unchanged": ChangeStatus.MODIFIED,
}


class ContentUnavailableError(Exception):
    """File content could not be retrieved."""
    pass


class ChangeSetError(Exception):
    """The change set file could not be read."""
    pass


def _to_change_record(entry: dict) -> ChangeRecord:
    path = entry.get("path") or entry.get("filename")
    status = str(entry.get("status", "modified")).lower()
    status = _STATUS_ALIASES.get(status, status)
    inline = entry.get("inline_content") or entry.get("patch")
    return ChangeRecord(path=path, status=status, inline_content=inline)


def load_changes(filepath: Union[str, Path]) -> List[ChangeRecord]:
    """
    Load change records from a JSON file.

    Accepts either a list of entries or an object with a `files` list.
    Entries use `path` or `filename`, `status`, and an optional `patch`.
    Unrecognised entries are skipped with a warning.
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ChangeSetError(f"Could not read change set {filepath}: {e}") from e

    if isinstance(data, dict):
        data = data.get("files", [])
    if not isinstance(data, list):
        raise ChangeSetError(f"Change set {filepath} must be a list of files")

    records = []
    for index, entry in enumerate(data):
        try:
            records.append(_to_change_record(entry))
        except (AttributeError, ValidationError) as e:
            logger.warning(f"Skipping invalid change entry {index} in {filepath}: {e}")
    return records


def scan_workspace(root: Union[str, Path], rules: FilterRuleSet) -> List[ChangeRecord]:
    """
    Every reviewable file under `root`, as `added` records without content.

    Used when no base revision is known and the whole tree must be reviewed.
    """
    root = Path(root)
    records = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        relative = path.relative_to(root).as_posix()
        if is_reviewable(relative, rules):
            records.append(ChangeRecord(path=relative, status=ChangeStatus.ADDED))
    logger.info(f"Workspace scan found {len(records)} reviewable file(s) under {root}")
    return records


class LocalContentResolver:
    """Reads file content from a local checkout."""

    def __init__(self, root: Union[str, Path] = "."):
        self.root = Path(root).resolve()

    def _read(self, relative_path: str) -> str:
        path = (self.root / relative_path).resolve()
        if self.root not in path.parents:
            raise ContentUnavailableError(f"{relative_path} is outside {self.root}")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ContentUnavailableError(f"Cannot read {relative_path}: {e}") from e

    async def __call__(self, relative_path: str) -> str:
        return await asyncio.to_thread(self._read, relative_path)


def save_report(output: ReviewOutput, filepath: Union[str, Path]) -> bool:
    """Write the review output as JSON. Returns False instead of raising."""
    try:
        output_dir = Path(filepath).parent
        output_dir.mkdir(parents=True, exist_ok=True)

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(output.model_dump(mode="json"), f, indent=2)
    except OSError as e:
        logger.warning(f"Could not write report to {filepath}: {e}")
        return False

    logger.info(f"Review output saved to: {filepath}")
    return True
