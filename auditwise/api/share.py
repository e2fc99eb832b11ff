"""
Share, Export & Save Endpoints
==============================
Routes:
    GET  /api/sessions/{id}/share        — link carrying the whole audit
    GET  /api/shared?data=...            — decode a link (never an HTTP error)
    GET  /api/sessions/{id}/export/html  — printable report
    GET  /api/sessions/{id}/export/text  — plain-text download
    POST /api/sessions/{id}/save         — persist for the user in X-User-Id
"""
import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel

from auditwise.api.sessions import load_session
from auditwise.core.config import PUBLIC_BASE_URL
from auditwise.services.audit_store import StoredAudit, save_session
from auditwise.services.report_exporter import (
    render_print_html,
    render_text_report,
    text_report_filename,
)
from auditwise.services.share_link import build_share_url, decode_share_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Share"])


class ShareResponse(BaseModel):
    url: str


@router.get("/sessions/{session_id}/share", response_model=ShareResponse)
async def share_session(session_id: str, request: Request):
    session = load_session(request, session_id)
    return ShareResponse(url=build_share_url(session, PUBLIC_BASE_URL))


@router.get("/shared")
async def open_shared(data: Optional[str] = None):
    """
    Decode a share link.

    An invalid or missing ``data`` value is reported in the body with a
    recovery route back to the start, not as an HTTP error.
    """
    payload = decode_share_payload(data)
    if payload is None:
        return {
            "valid": False,
            "error": "This share link is invalid or has expired.",
            "recovery": "/",
        }
    return {"valid": True, "audit": payload.model_dump(by_alias=True)}


@router.get("/sessions/{session_id}/export/html", response_class=HTMLResponse)
async def export_html(session_id: str, request: Request):
    return HTMLResponse(render_print_html(load_session(request, session_id)))


@router.get("/sessions/{session_id}/export/text", response_class=PlainTextResponse)
async def export_text(session_id: str, request: Request):
    session = load_session(request, session_id)
    filename = text_report_filename(session.title)
    return PlainTextResponse(
        render_text_report(session),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sessions/{session_id}/save", response_model=StoredAudit, status_code=201)
async def save_audit(
    session_id: str,
    request: Request,
    x_user_id: Optional[str] = Header(default=None),
):
    session = load_session(request, session_id)
    try:
        return save_session(request.app.state.audit_store, x_user_id, session)
    except PermissionError as e:
        raise HTTPException(status_code=401, detail=str(e))
