"""
Errors
======
Domain exceptions raised by the scan pipeline and the session layer.

Only GeminiAPIError escapes the model-fallback caller; the orchestrator
catches it and substitutes the fallback issue set. Figma errors never leave
the asset resolver. The API layer maps the lookup errors to HTTP statuses.
"""
from typing import Optional


class AuditwiseError(Exception):
    """Base class for all Auditwise errors."""


class GeminiAPIError(AuditwiseError):
    """Non-retryable HTTP status from the generateContent endpoint."""

    def __init__(self, status_code: int, model: str) -> None:
        self.status_code = status_code
        self.model = model
        super().__init__(f"Gemini API error {status_code} ({model})")


class FigmaAPIError(AuditwiseError):
    """Figma metadata, render or image download failed."""

    def __init__(self, status_code: Optional[int], step: str) -> None:
        self.status_code = status_code
        self.step = step
        super().__init__(f"Figma {step} API: {status_code}")


class InvalidFigmaURL(AuditwiseError):
    pass


class ScanAlreadyStarted(AuditwiseError):
    """A scan was requested while the orchestrator was not idle."""


class SessionNotFound(AuditwiseError):
    pass


class IssueNotFound(AuditwiseError):
    pass
