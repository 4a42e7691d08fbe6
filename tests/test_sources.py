"""
Tests for local change and content sources.

Run with: pytest tests/
"""

import json
import logging

import pytest
from reviewgate.models import (
    ChangeStatus,
    FilterRuleSet,
    GateDecision,
    ReviewOutput,
    ReviewSummary,
    RunStats,
)
from reviewgate.sources import (
    ChangeSetError,
    ContentUnavailableError,
    LocalContentResolver,
    load_changes,
    save_report,
    scan_workspace,
)


def test_load_changes_list(tmp_path):
    """Should read a plain list of change entries."""
    path = tmp_path / "changes.json"
    path.write_text(json.dumps([
        {"path": "src/app.py", "status": "added"},
        {"path": "src/old.py", "status": "removed"},
    ]))

    changes = load_changes(path)
    assert [c.path for c in changes] == ["src/app.py", "src/old.py"]
    assert changes[1].status == ChangeStatus.REMOVED
    assert changes[0].inline_content is None


def test_load_changes_compare_shape(tmp_path):
    """Should accept a compare response with filename/patch entries."""
    path = tmp_path / "compare.json"
    path.write_text(json.dumps({"files": [
        {"filename": "lib/a.js", "status": "renamed", "patch": "@@ +1 @@"},
    ]}))

    changes = load_changes(path)
    assert changes[0].path == "lib/a.js"
    assert changes[0].status == ChangeStatus.MODIFIED
    assert changes[0].inline_content == "@@ +1 @@"


def test_load_changes_bad_json(tmp_path):
    """Unreadable change sets should raise ChangeSetError."""
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ChangeSetError):
        load_changes(path)


def test_load_changes_missing_path(tmp_path):
    """Entries without a path should be skipped."""
    path = tmp_path / "changes.json"
    path.write_text(json.dumps([{"status": "added"}, {"path": "src/app.py", "status": "added"}]))

    assert [c.path for c in load_changes(path)] == ["src/app.py"]


def test_load_changes_unchanged_and_unknown_status(tmp_path, caplog):
    """Unchanged entries should load as modified; unknown statuses are skipped."""
    path = tmp_path / "compare.json"
    path.write_text(json.dumps({"files": [
        {"filename": "src/a.py", "status": "modified", "patch": "@@ +1 @@"},
        {"filename": "src/b.py", "status": "unchanged"},
        {"filename": "src/c.py", "status": "exploded"},
    ]}))

    with caplog.at_level(logging.WARNING, logger="reviewgate.sources"):
        changes = load_changes(path)

    assert [c.path for c in changes] == ["src/a.py", "src/b.py"]
    assert changes[1].status == ChangeStatus.MODIFIED
    assert any("Skipping invalid change entry 2" in r.getMessage() for r in caplog.records)


def test_scan_workspace(tmp_path):
    """Should list reviewable files as added records."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("x = 1")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "lib.py").write_text("y = 2")
    (tmp_path / "notes.txt").write_text("hello")

    rules = FilterRuleSet(include_extensions=[".py"], exclude_patterns=["**/node_modules/**"])
    changes = scan_workspace(tmp_path, rules)

    assert [c.path for c in changes] == ["src/app.py"]
    assert changes[0].status == ChangeStatus.ADDED


@pytest.mark.asyncio
async def test_local_content_resolver(tmp_path):
    """Should read files relative to the root."""
    (tmp_path / "a.py").write_text("print('hi')")
    resolver = LocalContentResolver(tmp_path)
    assert await resolver("a.py") == "print('hi')"


@pytest.mark.asyncio
async def test_local_content_resolver_missing(tmp_path):
    """Missing files should raise ContentUnavailableError."""
    resolver = LocalContentResolver(tmp_path)
    with pytest.raises(ContentUnavailableError):
        await resolver("missing.py")


@pytest.mark.asyncio
async def test_local_content_resolver_outside_root(tmp_path):
    """Paths escaping the root should be refused."""
    root = tmp_path / "repo"
    root.mkdir()
    (tmp_path / "outside.py").write_text("secret")
    resolver = LocalContentResolver(root)
    with pytest.raises(ContentUnavailableError):
        await resolver("../outside.py")


def _output():
    return ReviewOutput(
        branch="main",
        verdicts=[],
        summary=ReviewSummary(
            total_issues=0, high_severity=0, medium_severity=0, low_severity=0,
            files_with_issues=0, review_time_seconds=0.1,
        ),
        decision=GateDecision(raise_report=True, block=False, overall_severity="low"),
        stats=RunStats(),
    )


def test_save_report(tmp_path):
    """Should write the output as JSON."""
    path = tmp_path / "out" / "review.json"
    assert save_report(_output(), path)
    data = json.loads(path.read_text())
    assert data["branch"] == "main"
    assert data["decision"]["overall_severity"] == "low"


def test_save_report_failure_is_not_fatal(tmp_path):
    """A write failure should return False instead of raising."""
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    assert save_report(_output(), blocker / "review.json") is False
