"""
Share Payload Model
Self-contained snapshot of an audit carried in a share link's query string.
Read-only once decoded; the URL is the only store.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from auditwise.models.issue import Issue


class SharePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    issues: List[Issue] = []
    score: int
    design_type: str = Field(default="unknown", alias="designType")
    created_at: str = Field(default="", alias="createdAt")
