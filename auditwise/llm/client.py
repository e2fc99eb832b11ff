"""
Gemini Client
=============
Asynchronous model-fallback caller for the Gemini generateContent endpoint.

Model Fallback:
    - Models are tried strictly in the configured order, one POST each
    - HTTP 429 (rate limit)      → next model immediately, no delay
    - HTTP 500 / 503 (transient) → wait TRANSIENT_RETRY_DELAY_SECONDS, next model
    - Network / transport error  → next model (the loop simply ends after the last)
    - Any other non-2xx          → GeminiAPIError, no further models
    - 2xx                        → candidates[0].content.parts[0].text, returned at once

    Exhausting the chain through retryable paths is not an error: the caller
    gets None and substitutes the fallback issue set.

Status Callback:
    Before every attempt a human-readable line is emitted to ``on_status``
    ("Running Gemini AI analysis…" first, "Retrying with <model>…" after),
    which drives the scanning screen's status text.
"""
import asyncio
import logging
from typing import Callable, Optional, Sequence

import httpx

from auditwise.core.config import (
    GEMINI_BASE_URL,
    GEMINI_MODELS,
    GEMINI_TIMEOUT_SECONDS,
    TRANSIENT_RETRY_DELAY_SECONDS,
)
from auditwise.core.errors import GeminiAPIError

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]
BodyBuilder = Callable[[str], dict]

_TRANSIENT_STATUSES = (500, 503)


def status_message(index: int, model: str) -> str:
    """Status line shown before attempt ``index`` (0-based)."""
    if index == 0:
        return "Running Gemini AI analysis…"
    return f"Retrying with {model}…"


def extract_text(data: dict) -> str:
    """Return candidates[0].content.parts[0].text, or "" when absent."""
    try:
        candidates = data.get("candidates") or []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            if parts:
                text = parts[0].get("text", "")
                return text if isinstance(text, str) else ""
    except (AttributeError, IndexError, KeyError, TypeError):
        pass
    return ""


class GeminiClient:
    """
    Async HTTP client that walks a model chain until one answers.

    Usage:
        client = GeminiClient()
        text = await client.call_with_fallback(api_key, lambda m: body, on_status)
        await client.close()
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: str = GEMINI_BASE_URL,
        models: Optional[Sequence[str]] = None,
        retry_delay: float = TRANSIENT_RETRY_DELAY_SECONDS,
    ) -> None:
        self._http = http
        self._owns_http = http is None
        self.base_url = base_url.rstrip("/")
        self.models = list(models) if models is not None else list(GEMINI_MODELS)
        self.retry_delay = retry_delay

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(GEMINI_TIMEOUT_SECONDS))
            self._owns_http = True
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http and self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def call_with_fallback(
        self,
        api_key: str,
        build_body: BodyBuilder,
        on_status: Optional[StatusCallback] = None,
        models: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """
        Call generateContent across the model chain.

        Parameters
        ----------
        api_key : str
            Gemini API key, sent as the ``key`` query parameter.
        build_body : Callable[[str], dict]
            Builds the JSON request body for a given model id.
        on_status : Callable[[str], None], optional
            Receives one status line before each attempt.
        models : Sequence[str], optional
            Overrides the configured model chain for this call.

        Returns
        -------
        str or None
            Raw text of the first successful response, or None when every
            model failed through a retryable path.

        Raises
        ------
        GeminiAPIError
            On a non-retryable HTTP status.
        """
        http = await self._get_http()
        chain = list(models) if models is not None else self.models

        for index, model in enumerate(chain):
            if on_status is not None:
                on_status(status_message(index, model))

            url = f"{self.base_url}/{model}:generateContent"
            try:
                resp = await http.post(url, params={"key": api_key}, json=build_body(model))
            except httpx.TransportError as e:
                logger.warning("Gemini %s failed: %s", model, e)
                continue

            if resp.status_code == 429:
                logger.warning("Gemini %s rate-limited (429), trying next model", model)
                continue
            if resp.status_code in _TRANSIENT_STATUSES:
                logger.warning(
                    "Gemini %s transient error (%d), retrying in %.1fs",
                    model, resp.status_code, self.retry_delay,
                )
                await asyncio.sleep(self.retry_delay)
                continue
            if not resp.is_success:
                logger.error("Gemini %s returned HTTP %d", model, resp.status_code)
                raise GeminiAPIError(resp.status_code, model)

            try:
                data = resp.json()
            except ValueError as e:
                logger.warning("Gemini %s returned an unreadable body: %s", model, e)
                continue

            logger.info("Gemini %s answered", model)
            return extract_text(data)

        logger.warning("All %d Gemini models exhausted without a result", len(chain))
        return None
