"""
FastAPI wrapper for the review gate.

Exposes response interpretation, the gate decision and the review pipeline
as a REST API. Serve with: uvicorn reviewgate.api:app
"""

import os
from functools import lru_cache
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from reviewgate.analyzer import call_llm, make_analyzer
from reviewgate.config import DEFAULT_CONFIG_PATH, ConfigError, ReviewConfig, load_config
from reviewgate.gate import decide
from reviewgate.interpreter import interpret
from reviewgate.models import AnalysisResult, BranchPolicy, ChangeRecord, GateDecision, ReviewOutput, Severity
from reviewgate.pipeline import run_review
from reviewgate.prompts import PROMPT_VERSION
from reviewgate.sources import ContentUnavailableError

VERSION = "2.0.0"

app = FastAPI(
    title="Review Gate",
    description="LLM code review with per-branch gating",
    version=VERSION
)

# ── Request / Response models ───────────────────────────────────────────────

class InterpretRequest(BaseModel):
    raw_text: str

class GateRequest(BaseModel):
    severity: Severity
    policy: BranchPolicy

class ReviewRequest(BaseModel):
    branch: str
    files: List[ChangeRecord] = Field(default_factory=list)

class HealthResponse(BaseModel):
    status: str
    version: str
    prompt_version: str

# ── Dependencies ────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_config() -> ReviewConfig:
    return load_config(os.getenv("REVIEWGATE_CONFIG", str(DEFAULT_CONFIG_PATH)))


def config_dependency() -> ReviewConfig:
    try:
        return get_config()
    except ConfigError as e:
        raise HTTPException(status_code=503, detail=f"Configuration unavailable: {e}")


def llm_call_dependency():
    return call_llm


async def no_content(path: str) -> str:
    """Requests carry their own content; nothing is read from disk."""
    raise ContentUnavailableError(f"No inline content supplied for {path}")

# ── Endpoints ───────────────────────────────────────────────────────────────

@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "version": VERSION, "prompt_version": PROMPT_VERSION}


@app.post("/interpret", response_model=AnalysisResult)
def interpret_response(request: InterpretRequest):
    return interpret(request.raw_text)


@app.post("/gate", response_model=GateDecision)
def gate(request: GateRequest):
    return decide(request.severity, request.policy)


@app.post("/review", response_model=ReviewOutput)
async def review(
    request: ReviewRequest,
    config: ReviewConfig = Depends(config_dependency),
    llm_call=Depends(llm_call_dependency),
):
    policy = config.policy_for(request.branch)
    if policy is None:
        raise HTTPException(status_code=404, detail=f"No policy configured for branch: {request.branch}")
    if not request.files:
        raise HTTPException(status_code=400, detail="files is required")

    analyze = make_analyzer(config.llm, policy, llm_call=llm_call)
    return await run_review(request.files, config, request.branch, fetch_content=no_content, analyze=analyze)
