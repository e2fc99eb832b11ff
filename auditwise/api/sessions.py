"""
Session & Scan Endpoints
========================
Upload step, scan start and progress polling for one audit session.

Routes:
    POST   /api/sessions                 — upload step, creates a session
    GET    /api/sessions/{id}            — summary with issues and score
    DELETE /api/sessions/{id}            — back to upload (cancels a running scan)
    POST   /api/sessions/{id}/scan       — start the scan in the background
    GET    /api/sessions/{id}/progress   — progress snapshot for polling

The SessionStore, GeminiClient and AssetResolver are created once by the app
and read from ``request.app.state``.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from auditwise.agents.scan_orchestrator import ScanOrchestrator
from auditwise.core.config import GEMINI_API_KEY
from auditwise.core.constants import AuditDepth, DesignType
from auditwise.core.errors import ScanAlreadyStarted, SessionNotFound
from auditwise.models.design_input import DesignInput, derive_audit_title, is_ready
from auditwise.models.issue import Issue
from auditwise.state.audit_session import AuditSession, score_label
from auditwise.state.scan_progress import ScanPhase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class UploadRequest(BaseModel):
    type: DesignType
    url: Optional[str] = None
    figma_token: Optional[str] = None
    file_data_url: Optional[str] = None
    file_name: Optional[str] = None
    audit_depth: AuditDepth = "Standard"
    api_key: Optional[str] = None


class SessionSummary(BaseModel):
    id: str
    title: str
    design_type: DesignType
    audit_depth: AuditDepth
    design_url: Optional[str] = None
    design_image_url: Optional[str] = None
    phase: ScanPhase
    issues: List[Issue]
    score: int
    score_label: str
    open_count: int
    resolved_count: int
    created_at: datetime


class ProgressResponse(BaseModel):
    phase: ScanPhase
    percent: float
    step_index: int
    step_label: str
    message: str
    done: bool
    cancelled: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_session(request: Request, session_id: str) -> AuditSession:
    """Look the session up in the app's store, 404 when unknown."""
    try:
        return request.app.state.sessions.get(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


def summarize(session: AuditSession) -> SessionSummary:
    score = session.score()
    return SessionSummary(
        id=session.id,
        title=session.title,
        design_type=session.design_input.type,
        audit_depth=session.design_input.audit_depth,
        design_url=session.design_input.url,
        design_image_url=session.design_image_url,
        phase=session.progress.phase,
        issues=session.issues,
        score=score,
        score_label=score_label(score),
        open_count=len(session.open_issues()),
        resolved_count=len(session.resolved_issues()),
        created_at=session.created_at,
    )


def _ready_for_review(session: AuditSession) -> None:
    logger.info("Session %s ready for review (%d issues)", session.id, len(session.issues))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("", response_model=SessionSummary, status_code=201)
async def create_session(body: UploadRequest, request: Request):
    """Upload step: validate the submission and open a session for it."""
    if not is_ready(body.type, body.url, has_file=bool(body.file_data_url)):
        raise HTTPException(
            status_code=422,
            detail=f"Submission for '{body.type}' is incomplete",
        )

    design_input = DesignInput(
        type=body.type,
        url=body.url,
        figma_token=body.figma_token,
        file_data_url=body.file_data_url,
        file_name=body.file_name,
        audit_depth=body.audit_depth,
        api_key=body.api_key or GEMINI_API_KEY,
    )
    title = derive_audit_title(body.type, body.url, body.file_name)
    session = request.app.state.sessions.create(design_input, title=title)
    return summarize(session)


@router.get("/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str, request: Request):
    return summarize(load_session(request, session_id))


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, request: Request):
    try:
        request.app.state.sessions.discard(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")


@router.post("/{session_id}/scan", response_model=ProgressResponse, status_code=202)
async def start_scan(session_id: str, request: Request):
    """
    Start the scan as a background task and return immediately.

    The client polls /progress until ``done`` and then loads the session.
    """
    session = load_session(request, session_id)
    orchestrator = ScanOrchestrator(
        session,
        gemini=request.app.state.gemini,
        resolver=request.app.state.resolver,
        on_complete=_ready_for_review,
    )
    try:
        orchestrator.start()
    except ScanAlreadyStarted as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _progress(session)


@router.get("/{session_id}/progress", response_model=ProgressResponse)
async def get_progress(session_id: str, request: Request):
    return _progress(load_session(request, session_id))


def _progress(session: AuditSession) -> ProgressResponse:
    progress = session.progress
    return ProgressResponse(
        phase=progress.phase,
        percent=progress.percent,
        step_index=progress.step_index,
        step_label=progress.step_label,
        message=progress.display_message,
        done=progress.done,
        cancelled=progress.cancelled,
    )
