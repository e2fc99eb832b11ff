"""
Issue Endpoints
Filtered issue lists, resolve/reopen and per-issue comments.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from auditwise.core.constants import CATEGORY_FILTER_ALL
from auditwise.core.errors import IssueNotFound
from auditwise.models.issue import Comment, Issue
from auditwise.api.sessions import SessionSummary, load_session, summarize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions/{session_id}/issues", tags=["Issues"])


class CommentRequest(BaseModel):
    body: str = Field(min_length=1)
    author: str = "You"


def _not_found(e: IssueNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


@router.get("", response_model=List[Issue])
async def list_issues(
    session_id: str,
    request: Request,
    tab: str = "open",
    category: str = CATEGORY_FILTER_ALL,
):
    """Issues for one tab (``open`` or ``resolved``), optionally one category."""
    if tab not in ("open", "resolved"):
        raise HTTPException(status_code=422, detail=f"Unknown tab '{tab}'")
    return load_session(request, session_id).filtered(tab, category)


@router.post("/{issue_id}/resolve", response_model=SessionSummary)
async def resolve_issue(session_id: str, issue_id: int, request: Request):
    session = load_session(request, session_id)
    try:
        session.resolve(issue_id)
    except IssueNotFound as e:
        raise _not_found(e)
    return summarize(session)


@router.post("/{issue_id}/reopen", response_model=SessionSummary)
async def reopen_issue(session_id: str, issue_id: int, request: Request):
    session = load_session(request, session_id)
    try:
        session.reopen(issue_id)
    except IssueNotFound as e:
        raise _not_found(e)
    return summarize(session)


@router.get("/{issue_id}/comments", response_model=List[Comment])
async def list_comments(session_id: str, issue_id: int, request: Request):
    session = load_session(request, session_id)
    try:
        return session.comments_for(issue_id)
    except IssueNotFound as e:
        raise _not_found(e)


@router.post("/{issue_id}/comments", response_model=Comment, status_code=201)
async def add_comment(session_id: str, issue_id: int, body: CommentRequest, request: Request):
    session = load_session(request, session_id)
    try:
        return session.add_comment(issue_id, body.body, author=body.author)
    except IssueNotFound as e:
        raise _not_found(e)
