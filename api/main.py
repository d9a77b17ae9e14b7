"""FastAPI service for Legal Shield.

Run with::

    uvicorn api.main:app --reload

Endpoints
---------
POST /analyze          -- Redact, analyse and restore a contract's text
GET  /session          -- Session status (and the report while viewing)
POST /session/destroy  -- Destroy the viewing session immediately
POST /session/reset    -- Wipe everything and return to idle
POST /session/browse   -- Enter the informational side-state
POST /session/return   -- Leave it (back to viewing if still live)
GET  /health           -- Health check
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from legal_shield.analysis_client import GeminiAnalysisClient
from legal_shield.config import configure_logging, load_settings
from legal_shield.errors import (
    ExternalServiceError,
    InputError,
    InvalidTransitionError,
    SessionBusyError,
    SessionCancelledError,
)
from legal_shield.models import AnalysisResult
from legal_shield.pipeline import ContractAnalysisPipeline
from legal_shield.session import DESTRUCT_WINDOW_SECONDS, SessionStatus

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(load_settings().log_level)
    yield


app = FastAPI(
    title="Legal Shield API",
    description="Contract risk analysis with local PII masking and a fixed self-destruct window.",
    version="0.1.0",
    lifespan=lifespan,
)

_pipeline: ContractAnalysisPipeline | None = None


def get_pipeline() -> ContractAnalysisPipeline:
    """The process-wide pipeline, built from the environment on first use."""
    global _pipeline
    if _pipeline is None:
        settings = load_settings()
        _pipeline = ContractAnalysisPipeline(
            client=GeminiAnalysisClient.from_settings(settings),
            max_payload_chars=settings.max_payload_chars,
        )
    return _pipeline


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    text: str = Field(..., description="Text extracted from the contract document.")


class SessionResponse(BaseModel):
    status: SessionStatus
    result: dict | None = Field(
        None,
        description="Restored risk report (camelCase keys); only present while viewing.",
    )


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    destruct_window_seconds: float = DESTRUCT_WINDOW_SECONDS
    analysis: dict[str, str | float] = Field(
        default_factory=dict, description="Provider and model used for analysis."
    )


def _session_response(status: SessionStatus, result: AnalysisResult | None) -> SessionResponse:
    return SessionResponse(
        status=status,
        result=result.to_wire() if result is not None else None,
    )


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    """Health check."""
    return HealthResponse(analysis=pl.client.get_model_info())


@app.post("/analyze", response_model=SessionResponse, tags=["analysis"])
async def analyze(req: AnalyzeRequest, pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    """Run the redaction -> analysis -> restoration pipeline."""
    try:
        result = await pl.analyze(req.text)
    except InputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ExternalServiceError as exc:
        logger.warning("Analysis failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except (SessionBusyError, SessionCancelledError) as exc:
        raise _conflict(exc) from exc
    return _session_response(pl.status(), result)


@app.get("/session", response_model=SessionResponse, tags=["session"])
async def session_status(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    """Current session status, with the report while it is still viewable."""
    return _session_response(pl.status(), pl.result)


@app.post("/session/destroy", response_model=SessionResponse, tags=["session"])
async def destroy(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    try:
        status = pl.destroy()
    except InvalidTransitionError as exc:
        raise _conflict(exc) from exc
    return _session_response(status, None)


@app.post("/session/reset", response_model=SessionResponse, tags=["session"])
async def reset(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    return _session_response(pl.reset(), None)


@app.post("/session/browse", response_model=SessionResponse, tags=["session"])
async def browse(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    try:
        status = pl.browse()
    except InvalidTransitionError as exc:
        raise _conflict(exc) from exc
    return _session_response(status, None)


@app.post("/session/return", response_model=SessionResponse, tags=["session"])
async def leave_browsing(pl: ContractAnalysisPipeline = Depends(get_pipeline)):
    try:
        status = pl.leave_browsing()
    except InvalidTransitionError as exc:
        raise _conflict(exc) from exc
    return _session_response(status, pl.result)
