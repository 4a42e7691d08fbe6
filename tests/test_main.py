"""
Tests for the command line entry point.

Run with: pytest tests/
"""

import json

import pytest
from reviewgate import analyzer
from reviewgate.main import EXIT_BLOCKED, EXIT_CONFIG_ERROR, EXIT_OK, EXIT_RUNTIME_ERROR, main

CONFIG = """
global:
  include_extensions: [".py"]
  concurrency_limit: 2
llm:
  provider: local
branches:
  main:
    blocking: true
    severity_threshold: medium
    blocking_criteria: high_only
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    (tmp_path / "config.yml").write_text(CONFIG)
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("result = eval(user_input)\n")
    (tmp_path / "changes.json").write_text(json.dumps([{"path": "src/app.py", "status": "modified"}]))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _fake_llm(severity):
    async def fake(prompt, settings):
        return json.dumps({"issues": [{"description": "eval", "severity": severity}], "severity": severity})
    return fake


def _args(workspace, *extra):
    return [
        "main",
        "--config", str(workspace / "config.yml"),
        "--repo-root", str(workspace),
        "--output", str(workspace / "out" / "review.json"),
        *extra,
    ]


def test_blocked_run_exits_one(workspace, monkeypatch):
    """A blocking verdict should exit with status 1 and save the report."""
    monkeypatch.setattr(analyzer, "call_llm", _fake_llm("high"))

    code = main(_args(workspace, "--changes-file", str(workspace / "changes.json")))

    assert code == EXIT_BLOCKED
    report = json.loads((workspace / "out" / "review.json").read_text())
    assert report["decision"]["block"] is True
    assert report["verdicts"][0]["path"] == "src/app.py"


def test_passing_run_exits_zero(workspace, monkeypatch):
    """A low verdict should pass without writing a report."""
    monkeypatch.setattr(analyzer, "call_llm", _fake_llm("low"))

    code = main(_args(workspace, "--all-files"))

    assert code == EXIT_OK
    assert not (workspace / "out" / "review.json").exists()


def test_missing_config_exits_two(workspace):
    """A missing configuration file should exit with status 2."""
    code = main(["main", "--config", str(workspace / "nope.yml"), "--all-files"])
    assert code == EXIT_CONFIG_ERROR


def test_missing_credentials_exit_two(workspace, monkeypatch):
    """Missing provider credentials should stop the run before analysis."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("reviewgate.main.load_dotenv", lambda: None)

    code = main(_args(workspace, "--all-files", "--provider", "openai"))

    assert code == EXIT_CONFIG_ERROR


def test_failed_run_exits_three(workspace, monkeypatch):
    """An unexpected failure inside the run should not look like a block."""
    async def broken_run(*args, **kwargs):
        raise RuntimeError("event loop exploded")

    monkeypatch.setattr("reviewgate.main.run_review", broken_run)

    code = main(_args(workspace, "--changes-file", str(workspace / "changes.json")))

    assert code == EXIT_RUNTIME_ERROR
    assert code != EXIT_BLOCKED
    assert not (workspace / "out" / "review.json").exists()
