"""
Audit Session
=============
Explicit per-audit state object that replaces ambient global UI state.

Lifecycle:
    created   — by the upload step (SessionStore.create)
    scanning  — owned by the ScanOrchestrator, which commits issues and the
                preview image in one assignment when it finishes
    reviewing — issues resolved/reopened, commented, pins focused
    discarded — returning to upload (SessionStore.discard), which also
                cancels a scan that is still running

A new scan replaces the issue list wholesale; nothing is merged.
"""
import logging
import math
import time
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from auditwise.core.config import SESSION_IDLE_TTL_SECONDS, SESSION_MAX_COUNT
from auditwise.core.constants import (
    CATEGORY_FILTER_ALL,
    DEFAULT_AUDIT_TITLE,
    SCORE_BASE,
    SCORE_RESOLVED_WEIGHT,
)
from auditwise.core.errors import IssueNotFound, SessionNotFound
from auditwise.models.design_input import DesignInput
from auditwise.models.issue import Comment, Issue
from auditwise.review.canvas import CanvasController
from auditwise.review.pins import PinController
from auditwise.state.scan_progress import ScanProgress

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


def compute_score(issues: List[Issue]) -> int:
    """74 plus up to 20 points for the share of resolved issues."""
    if not issues:
        return SCORE_BASE
    resolved = sum(1 for i in issues if i.status == "resolved")
    # half-up, so 76.5 shows as 77
    return math.floor(SCORE_BASE + resolved / len(issues) * SCORE_RESOLVED_WEIGHT + 0.5)


def score_label(score: int) -> str:
    if score >= 80:
        return "Good"
    if score >= 60:
        return "Needs Attention"
    return "Critical Issues"


class AuditSession:

    def __init__(
        self,
        design_input: DesignInput,
        title: str = DEFAULT_AUDIT_TITLE,
        session_id: Optional[str] = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.title = title
        self.design_input = design_input
        self.design_image_url: Optional[str] = None
        self.issues: List[Issue] = []
        self.comments: List[Comment] = []
        self.created_at = datetime.now(timezone.utc)

        self.progress = ScanProgress()
        self.canvas = CanvasController()
        self.pins = PinController()
        self.scan: Optional[Cancellable] = None

    # -----------------------------------------------------------------------
    # Issue list
    # -----------------------------------------------------------------------
    def replace_issues(self, issues: List[Issue], design_image_url: Optional[str] = None) -> None:
        self.issues = list(issues)
        self.design_image_url = design_image_url
        self.comments = []
        self.pins.reset(self.issues)

    def get_issue(self, issue_id: int) -> Issue:
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        raise IssueNotFound(f"Issue {issue_id} not in session {self.id}")

    def _set_status(self, issue_id: int, status: str) -> Issue:
        self.get_issue(issue_id)
        self.issues = [
            i.model_copy(update={"status": status}) if i.id == issue_id else i
            for i in self.issues
        ]
        return self.get_issue(issue_id)

    def resolve(self, issue_id: int) -> Issue:
        issue = self._set_status(issue_id, "resolved")
        self.pins.after_resolve(issue_id, self.issues)
        return issue

    def reopen(self, issue_id: int) -> Issue:
        return self._set_status(issue_id, "open")

    def open_issues(self) -> List[Issue]:
        return [i for i in self.issues if i.status == "open"]

    def resolved_issues(self) -> List[Issue]:
        return [i for i in self.issues if i.status == "resolved"]

    def filtered(self, tab: str = "open", category: str = CATEGORY_FILTER_ALL) -> List[Issue]:
        pool = self.open_issues() if tab == "open" else self.resolved_issues()
        return [i for i in pool if category == CATEGORY_FILTER_ALL or i.category == category]

    def score(self) -> int:
        return compute_score(self.issues)

    # -----------------------------------------------------------------------
    # Comments
    # -----------------------------------------------------------------------
    def add_comment(self, issue_id: int, body: str, author: str = "You") -> Comment:
        self.get_issue(issue_id)
        comment = Comment(id=len(self.comments) + 1, issue_id=issue_id, author=author, body=body)
        self.comments.append(comment)
        return comment

    def comments_for(self, issue_id: int) -> List[Comment]:
        self.get_issue(issue_id)
        return [c for c in self.comments if c.issue_id == issue_id]


class SessionStore:
    """
    In-process registry of live sessions, one per browser tab.

    Bounded so abandoned tabs do not pin their preview images forever:
        - a session idle longer than ``idle_ttl`` seconds is evicted
        - beyond ``max_sessions`` the least recently used one is evicted
    Eviction cancels a running scan, like discard().
    """

    def __init__(
        self,
        max_sessions: int = SESSION_MAX_COUNT,
        idle_ttl: float = SESSION_IDLE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_sessions = max_sessions
        self.idle_ttl = idle_ttl
        self._clock = clock
        # session id → session, least recently used first
        self._sessions: "OrderedDict[str, AuditSession]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}

    def _evict(self, session_id: str, reason: str) -> None:
        session = self._sessions.pop(session_id)
        self._last_seen.pop(session_id, None)
        if session.scan is not None:
            session.scan.cancel()
        logger.info("Session %s evicted (%s)", session_id, reason)

    def prune(self) -> None:
        now = self._clock()
        expired = [sid for sid, seen in self._last_seen.items() if now - seen > self.idle_ttl]
        for session_id in expired:
            self._evict(session_id, "idle")
        while len(self._sessions) > self.max_sessions:
            self._evict(next(iter(self._sessions)), "capacity")

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self._clock()

    def create(self, design_input: DesignInput, title: str = DEFAULT_AUDIT_TITLE) -> AuditSession:
        session = AuditSession(design_input, title=title)
        self._sessions[session.id] = session
        self._touch(session.id)
        self.prune()
        logger.info("Session %s created (%s, %s)", session.id, design_input.type, title)
        return session

    def get(self, session_id: str) -> AuditSession:
        self.prune()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Unknown session {session_id}")
        self._touch(session_id)
        return session

    def discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(f"Unknown session {session_id}")
        self._last_seen.pop(session_id, None)
        if session.scan is not None:
            session.scan.cancel()
        logger.info("Session %s discarded", session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Cancel every running scan and forget all sessions (app shutdown)."""
        for session in self._sessions.values():
            if session.scan is not None:
                session.scan.cancel()
        self._sessions.clear()
        self._last_seen.clear()
