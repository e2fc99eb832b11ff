"""
Issue Model
===========
Pydantic models for a single detected design problem and the comments
users leave on it.

Fields:
    id          — 1-based position in the parsed batch (not globally unique)
    title       — short title, ≤60 chars by convention (not enforced)
    category    — Accessibility | UX | UI | Layout | Content
    severity    — High | Medium | Low
    status      — open | resolved (the only field mutated after parsing)
    explanation — what is wrong and why it matters
    how_to_fix  — remediation steps (wire name: howToFix)
    suggestion  — one concrete implementation suggestion
    x, y        — pin position in percent of the design frame, within [5, 95]

The wire shape uses the same camelCase keys the AI is prompted with, so
issues round-trip through share links and the browser client unchanged.
"""
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from auditwise.core.constants import Category, IssueStatus, Severity


class Issue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    category: Category
    severity: Severity
    status: IssueStatus = "open"
    explanation: str = ""
    how_to_fix: str = Field(default="", alias="howToFix")
    suggestion: str = ""
    x: float
    y: float


class Comment(BaseModel):
    id: int
    issue_id: int
    author: str = "You"
    body: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
