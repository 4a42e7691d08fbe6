"""
Tests for the REST API.

Run with: pytest tests/
"""

import pytest
from fastapi.testclient import TestClient
from reviewgate.api import app, config_dependency, llm_call_dependency


@pytest.fixture
def client(review_config):
    async def fake_llm(prompt, settings):
        if "FILE: src/app.py" in prompt:
            return '{"issues": [{"description": "eval on input", "severity": "high", "line": "1"}], "severity": "high"}'
        return '{"issues": [], "severity": "low"}'

    app.dependency_overrides[config_dependency] = lambda: review_config
    app.dependency_overrides[llm_call_dependency] = lambda: fake_llm
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    """Health endpoint should report ok."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_interpret(client):
    """Interpret endpoint should return a structured result."""
    response = client.post("/interpret", json={"raw_text": 'noise "description": "Leaky handle" noise'})
    assert response.status_code == 200
    body = response.json()
    assert body["issues"][0]["description"] == "Leaky handle"
    assert body["issues"][0]["severity"] == "medium"


def test_gate(client):
    """Gate endpoint should apply the policy."""
    response = client.post("/gate", json={
        "severity": "medium",
        "policy": {"blocking": True, "severity_threshold": "low", "blocking_criteria": "medium_and_high"},
    })
    assert response.status_code == 200
    assert response.json() == {"raise_report": True, "block": True, "overall_severity": "medium"}


def test_review_blocks_on_high(client):
    """Review endpoint should run the pipeline and gate the result."""
    response = client.post("/review", json={
        "branch": "main",
        "files": [
            {"path": "src/app.py", "status": "modified", "inline_content": "+eval(x)"},
            {"path": "src/ok.py", "status": "modified", "inline_content": "+x = 1"},
            {"path": "src/no_content.py", "status": "modified"},
        ],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["decision"]["block"] is True
    assert [v["path"] for v in body["verdicts"]] == ["src/app.py", "src/ok.py"]
    assert body["stats"]["files_skipped"] == 1


def test_review_unknown_branch(client):
    """Unknown branches should be a 404."""
    response = client.post("/review", json={
        "branch": "feature/x",
        "files": [{"path": "a.py", "inline_content": "x"}],
    })
    assert response.status_code == 404


def test_review_requires_files(client):
    """An empty file list should be rejected."""
    response = client.post("/review", json={"branch": "main", "files": []})
    assert response.status_code == 400
