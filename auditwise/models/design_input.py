"""
Design Input Model
==================
The user's submission descriptor, created by the upload step and consumed
exactly once by a scan. Frozen: the orchestrator never mutates it.

Also holds the upload-step helpers that decide whether a submission is
complete and what the audit is called.
"""
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict

from auditwise.core.constants import AuditDepth, DesignType


class DesignInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DesignType
    url: Optional[str] = None
    figma_token: Optional[str] = None
    file_data_url: Optional[str] = None   # data:<mime>;base64,<payload>
    file_name: Optional[str] = None
    audit_depth: AuditDepth = "Standard"   # advisory only
    api_key: str = ""


def is_ready(design_type: str, url: Optional[str], has_file: bool) -> bool:
    """Return True when the submission carries what its variant needs."""
    url = url or ""
    if design_type == "figma":
        return "figma.com" in url
    if design_type == "url":
        return url.startswith("http")
    if design_type in ("png", "pdf"):
        return has_file
    return False


def derive_audit_title(
    design_type: str,
    url: Optional[str] = None,
    file_name: Optional[str] = None,
) -> str:
    """
    Pick a human title for the audit.

    figma → last path segment of the share link, url → hostname without
    ``www.``, files → the file name.
    """
    if design_type == "figma":
        segments = [s for s in (url or "").split("/") if s]
        if segments:
            title = segments[-1].split("?")[0]
            if title:
                return title
        return "Figma Design"
    if design_type == "url":
        try:
            host = urlparse(url or "").hostname
        except ValueError:
            host = None
        if host:
            return host.replace("www.", "")
        return url or ""
    return file_name or "Uploaded Design"
