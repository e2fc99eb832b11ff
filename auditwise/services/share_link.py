"""
Share Link
==========
Link-based sharing without server storage: the whole audit travels in the URL.

Encoding:
    SharePayload → JSON (camelCase keys) → UTF-8 → base64 → percent-encoding
    placed in ``/audit/shared?data=<encoded>``.

Decoding reverses the chain. Any failure (not percent/base64 text, not JSON,
wrong shape, nesting too deep) yields None so callers render an explicit
invalid-link view; nothing is raised. A decoded payload gets its issue ids
renumbered and its pin positions clamped, as a freshly parsed batch would.
"""
import base64
import binascii
import json
import logging
from datetime import date
from typing import Optional
from urllib.parse import quote, unquote

from pydantic import ValidationError

from auditwise.models.share_payload import SharePayload
from auditwise.parser.issue_parser import clamp_position
from auditwise.state.audit_session import AuditSession

logger = logging.getLogger(__name__)

SHARED_PATH = "/audit/shared"


def format_share_date(day: date) -> str:
    """``Oct 18, 2026`` — short month, day without padding, year."""
    return f"{day.strftime('%b')} {day.day}, {day.year}"


def payload_from_session(session: AuditSession, today: Optional[date] = None) -> SharePayload:
    return SharePayload(
        title=session.title,
        issues=session.issues,
        score=session.score(),
        design_type=session.design_input.type if session.design_input else "unknown",
        created_at=format_share_date(today or date.today()),
    )


def encode_share_payload(payload: SharePayload) -> str:
    raw = json.dumps(payload.model_dump(by_alias=True), ensure_ascii=False)
    b64 = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    return quote(b64, safe="")


def build_share_url(session: AuditSession, base_url: str, today: Optional[date] = None) -> str:
    encoded = encode_share_payload(payload_from_session(session, today))
    return f"{base_url.rstrip('/')}{SHARED_PATH}?data={encoded}"


def decode_share_payload(data: Optional[str]) -> Optional[SharePayload]:
    """Return the payload, or None for a missing or invalid ``data`` value."""
    if not data:
        return None
    try:
        raw = base64.b64decode(unquote(data), validate=True)
        payload = SharePayload.model_validate(json.loads(raw.decode("utf-8")))
    except (
        binascii.Error, UnicodeDecodeError, ValueError, ValidationError, OverflowError, RecursionError,
    ) as e:
        logger.warning("Invalid share link: %s", e.__class__.__name__)
        return None
    return _renormalize(payload)


def _renormalize(payload: SharePayload) -> SharePayload:
    """Renumber ids 1..n and pull pins back into the frame; links can be hand-edited."""
    issues = [
        issue.model_copy(update={
            "id": index + 1,
            "x": clamp_position(issue.x),
            "y": clamp_position(issue.y),
        })
        for index, issue in enumerate(payload.issues)
    ]
    return payload.model_copy(update={"issues": issues})
