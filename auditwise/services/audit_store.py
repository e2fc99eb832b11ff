"""
Audit Store
===========
Persistence contract for saved audits and their issues.

The hosted backend (audits + issues tables keyed by the signed-in user) is an
external service; the app only depends on the AuditStore protocol below.
InMemoryAuditStore implements it for the running service and for tests.

Rules:
    - Creating or listing audits requires a user id (PermissionError otherwise)
    - New audits start with status "pending"; saving a completed session
      marks them "completed" with the session score
    - Issues created for an audit always start "open"
    - Listing returns newest first, each audit with its issues attached
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from auditwise.core.constants import AuditDepth, Category, DesignType, IssueStatus, Severity
from auditwise.models.issue import Issue
from auditwise.state.audit_session import AuditSession

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
class StoredIssue(BaseModel):
    id: str = Field(default_factory=_new_id)
    audit_id: str
    title: str
    category: Category
    severity: Severity
    status: IssueStatus = "open"
    explanation: str = ""
    how_to_fix: str = ""
    suggestion: str = ""
    position_x: float
    position_y: float
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_issue(cls, audit_id: str, issue: Issue) -> "StoredIssue":
        return cls(
            audit_id=audit_id,
            title=issue.title,
            category=issue.category,
            severity=issue.severity,
            explanation=issue.explanation,
            how_to_fix=issue.how_to_fix,
            suggestion=issue.suggestion,
            position_x=issue.x,
            position_y=issue.y,
        )


class StoredAudit(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    title: str
    design_type: DesignType
    design_url: Optional[str] = None
    design_image_url: Optional[str] = None
    audit_depth: AuditDepth = "Standard"
    audit_score: Optional[int] = None
    status: str = "pending"
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    issues: List[StoredIssue] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------
class AuditStore(Protocol):
    def create_audit(
        self,
        user_id: Optional[str],
        title: str,
        design_type: DesignType,
        audit_depth: AuditDepth = "Standard",
        design_url: Optional[str] = None,
        design_image_url: Optional[str] = None,
        audit_score: Optional[int] = None,
    ) -> StoredAudit: ...

    def list_audits(self, user_id: Optional[str]) -> List[StoredAudit]: ...

    def get_audit(self, audit_id: str) -> StoredAudit: ...

    def update_audit(self, audit_id: str, updates: Dict[str, Any]) -> StoredAudit: ...

    def delete_audit(self, audit_id: str) -> None: ...

    def create_issues(self, audit_id: str, issues: List[Issue]) -> List[StoredIssue]: ...

    def update_issue_status(self, issue_id: str, status: IssueStatus) -> StoredIssue: ...

    def delete_issue(self, issue_id: str) -> None: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------
class InMemoryAuditStore:
    """Dict-backed AuditStore. Lookups of unknown ids raise KeyError."""

    _READ_ONLY = {"id", "user_id", "created_at", "issues"}

    def __init__(self) -> None:
        self._audits: Dict[str, StoredAudit] = {}
        self._issues: Dict[str, StoredIssue] = {}

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise PermissionError("User must be authenticated")
        return user_id

    def _with_issues(self, audit: StoredAudit) -> StoredAudit:
        issues = [i for i in self._issues.values() if i.audit_id == audit.id]
        return audit.model_copy(update={"issues": issues})

    def create_audit(
        self,
        user_id: Optional[str],
        title: str,
        design_type: DesignType,
        audit_depth: AuditDepth = "Standard",
        design_url: Optional[str] = None,
        design_image_url: Optional[str] = None,
        audit_score: Optional[int] = None,
    ) -> StoredAudit:
        audit = StoredAudit(
            user_id=self._require_user(user_id),
            title=title,
            design_type=design_type,
            audit_depth=audit_depth,
            design_url=design_url,
            design_image_url=design_image_url,
            audit_score=audit_score,
        )
        self._audits[audit.id] = audit
        logger.info("Audit %s created for user %s", audit.id, audit.user_id)
        return audit

    def list_audits(self, user_id: Optional[str]) -> List[StoredAudit]:
        owner = self._require_user(user_id)
        audits = [a for a in self._audits.values() if a.user_id == owner]
        audits.sort(key=lambda a: a.created_at, reverse=True)
        return [self._with_issues(a) for a in audits]

    def get_audit(self, audit_id: str) -> StoredAudit:
        if audit_id not in self._audits:
            raise KeyError(f"Audit {audit_id} not found")
        return self._with_issues(self._audits[audit_id])

    def update_audit(self, audit_id: str, updates: Dict[str, Any]) -> StoredAudit:
        current = self.get_audit(audit_id)
        allowed = {k: v for k, v in updates.items() if k not in self._READ_ONLY}
        allowed["updated_at"] = _now()
        updated = StoredAudit.model_validate(
            {**current.model_dump(exclude={"issues"}), **allowed}
        )
        self._audits[audit_id] = updated
        return self._with_issues(updated)

    def delete_audit(self, audit_id: str) -> None:
        if self._audits.pop(audit_id, None) is None:
            raise KeyError(f"Audit {audit_id} not found")
        self._issues = {k: v for k, v in self._issues.items() if v.audit_id != audit_id}

    def create_issues(self, audit_id: str, issues: List[Issue]) -> List[StoredIssue]:
        self.get_audit(audit_id)
        stored = [StoredIssue.from_issue(audit_id, issue) for issue in issues]
        for record in stored:
            self._issues[record.id] = record
        return stored

    def update_issue_status(self, issue_id: str, status: IssueStatus) -> StoredIssue:
        if issue_id not in self._issues:
            raise KeyError(f"Issue {issue_id} not found")
        updated = self._issues[issue_id].model_copy(update={"status": status})
        self._issues[issue_id] = updated
        return updated

    def delete_issue(self, issue_id: str) -> None:
        if self._issues.pop(issue_id, None) is None:
            raise KeyError(f"Issue {issue_id} not found")


def save_session(store: AuditStore, user_id: Optional[str], session: AuditSession) -> StoredAudit:
    """
    Persist a reviewed session: the audit row, its issues, then the statuses
    the user already changed during review.
    """
    design_input = session.design_input
    audit = store.create_audit(
        user_id,
        title=session.title,
        design_type=design_input.type,
        audit_depth=design_input.audit_depth,
        design_url=design_input.url,
        design_image_url=session.design_image_url,
        audit_score=session.score(),
    )
    stored = store.create_issues(audit.id, session.issues)
    for record, issue in zip(stored, session.issues):
        if issue.status != "open":
            store.update_issue_status(record.id, issue.status)
    return store.update_audit(audit.id, {"status": "completed"})
