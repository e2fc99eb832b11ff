"""
Inline Image
Binary image payload ready for Gemini's inlineData part, plus data-URL helpers
used by uploads and the review canvas preview.
"""
import base64
import binascii
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: str  # base64, no data: prefix

    @classmethod
    def from_bytes(cls, content: bytes, mime_type: str) -> "InlineImage":
        return cls(mime_type=mime_type, data=base64.b64encode(content).decode("ascii"))

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def to_data_url(content: bytes, mime_type: str) -> str:
    return InlineImage.from_bytes(content, mime_type).to_data_url()


def parse_data_url(data_url: Optional[str]) -> Optional[InlineImage]:
    """
    Split ``data:<mime>;base64,<payload>`` into an InlineImage.

    Returns None for anything that is not a base64 data URL with a
    decodable payload.
    """
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        return None
    header, payload = data_url.split(",", 1)
    meta = header[len("data:"):].split(";")
    if "base64" not in meta[1:]:
        return None
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    mime_type = meta[0] or "application/octet-stream"
    return InlineImage(mime_type=mime_type, data=payload)
