"""
Review Endpoints
================
Pin selection, focused mode and the pan/zoom canvas of the review screen.

Pins:
    POST /pins/{issue_id}/click      — select and focus
    POST /issues/{issue_id}/select   — toggle list selection
    POST /focus/next | prev | exit
    GET  /review                     — markers, selection, focus, neighbours

Canvas:
    POST /canvas/wheel | zoom-in | zoom-out | reset
    POST /canvas/pointer-down | pointer-move | pointer-up
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from auditwise.api.sessions import load_session
from auditwise.core.errors import IssueNotFound
from auditwise.review.canvas import CanvasTransform
from auditwise.review.pins import PinMarker
from auditwise.state.audit_session import AuditSession

router = APIRouter(prefix="/api/sessions/{session_id}", tags=["Review"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------
class ReviewState(BaseModel):
    markers: List[PinMarker]
    selected_id: Optional[int] = None
    focused_id: Optional[int] = None
    focus_mode: bool
    prev_id: Optional[int] = None
    next_id: Optional[int] = None
    canvas: CanvasTransform


class WheelRequest(BaseModel):
    delta_y: float


class PointerRequest(BaseModel):
    x: float
    y: float


def _review_state(session: AuditSession) -> ReviewState:
    pins = session.pins
    prev_id, next_id = pins.neighbours(session.issues)
    return ReviewState(
        markers=pins.pin_markers(session.issues),
        selected_id=pins.selected_id,
        focused_id=pins.focused_id,
        focus_mode=pins.in_focus_mode,
        prev_id=prev_id,
        next_id=next_id,
        canvas=session.canvas.transform,
    )


def _require_issue(session: AuditSession, issue_id: int) -> None:
    try:
        session.get_issue(issue_id)
    except IssueNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ---------------------------------------------------------------------------
# Pins & focus
# ---------------------------------------------------------------------------
@router.get("/review", response_model=ReviewState)
async def get_review(session_id: str, request: Request):
    return _review_state(load_session(request, session_id))


@router.post("/pins/{issue_id}/click", response_model=ReviewState)
async def click_pin(session_id: str, issue_id: int, request: Request):
    session = load_session(request, session_id)
    _require_issue(session, issue_id)
    session.pins.click_pin(issue_id)
    return _review_state(session)


@router.post("/issues/{issue_id}/select", response_model=ReviewState)
async def select_issue(session_id: str, issue_id: int, request: Request):
    session = load_session(request, session_id)
    _require_issue(session, issue_id)
    session.pins.select_from_list(issue_id)
    return _review_state(session)


@router.post("/focus/next", response_model=ReviewState)
async def focus_next(session_id: str, request: Request):
    session = load_session(request, session_id)
    session.pins.focus_next(session.issues)
    return _review_state(session)


@router.post("/focus/prev", response_model=ReviewState)
async def focus_prev(session_id: str, request: Request):
    session = load_session(request, session_id)
    session.pins.focus_prev(session.issues)
    return _review_state(session)


@router.post("/focus/exit", response_model=ReviewState)
async def exit_focus(session_id: str, request: Request):
    session = load_session(request, session_id)
    session.pins.exit_focus()
    return _review_state(session)


# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------
@router.post("/canvas/wheel", response_model=CanvasTransform)
async def canvas_wheel(session_id: str, body: WheelRequest, request: Request):
    return load_session(request, session_id).canvas.wheel(body.delta_y)


@router.post("/canvas/zoom-in", response_model=CanvasTransform)
async def canvas_zoom_in(session_id: str, request: Request):
    return load_session(request, session_id).canvas.zoom_in()


@router.post("/canvas/zoom-out", response_model=CanvasTransform)
async def canvas_zoom_out(session_id: str, request: Request):
    return load_session(request, session_id).canvas.zoom_out()


@router.post("/canvas/reset", response_model=CanvasTransform)
async def canvas_reset(session_id: str, request: Request):
    return load_session(request, session_id).canvas.reset()


@router.post("/canvas/pointer-down", response_model=CanvasTransform)
async def canvas_pointer_down(session_id: str, body: PointerRequest, request: Request):
    canvas = load_session(request, session_id).canvas
    canvas.pointer_down(body.x, body.y)
    return canvas.transform


@router.post("/canvas/pointer-move", response_model=CanvasTransform)
async def canvas_pointer_move(session_id: str, body: PointerRequest, request: Request):
    return load_session(request, session_id).canvas.pointer_move(body.x, body.y)


@router.post("/canvas/pointer-up", response_model=CanvasTransform)
async def canvas_pointer_up(session_id: str, request: Request):
    canvas = load_session(request, session_id).canvas
    canvas.pointer_up()
    return canvas.transform
