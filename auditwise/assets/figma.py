"""
Figma Client
============
Resolves a Figma share link into a rendered PNG suitable for Gemini vision.

Flow:
    1. parse_figma_url → file key (segment after file|design|proto) + optional node-id
    2. No node id → GET /files/{key}, take the first child of the first page
    3. GET /images/{key}?ids={node}&format=png&scale=2 → temporary render URL
    4. Download the render and wrap it as an InlineImage

Every request carries the user's personal access token in X-Figma-Token.
Failures raise FigmaAPIError; the asset resolver downgrades them to a
text-only audit.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse

import httpx

from auditwise.assets.inline_image import InlineImage
from auditwise.core.config import FIGMA_API_BASE, FIGMA_RENDER_SCALE, HTTP_TIMEOUT_SECONDS
from auditwise.core.errors import FigmaAPIError, InvalidFigmaURL

logger = logging.getLogger(__name__)

_KEY_MARKERS = ("file", "design", "proto")


@dataclass(frozen=True)
class FigmaTarget:
    file_key: str
    node_id: Optional[str] = None


def parse_figma_url(url: str) -> Optional[FigmaTarget]:
    """Extract the file key and optional node id from a Figma share URL."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    parts = parsed.path.split("/")
    key_index = next((i for i, p in enumerate(parts) if p in _KEY_MARKERS), -1)
    if key_index == -1 or key_index + 1 >= len(parts) or not parts[key_index + 1]:
        return None

    node_ids = parse_qs(parsed.query).get("node-id")
    return FigmaTarget(file_key=parts[key_index + 1], node_id=node_ids[0] if node_ids else None)


def require_figma_target(url: str) -> FigmaTarget:
    target = parse_figma_url(url)
    if target is None:
        raise InvalidFigmaURL(f"Not a Figma file link: {url}")
    return target


class FigmaClient:
    """
    Thin async wrapper over the Figma REST API.

    Usage:
        client = FigmaClient()
        image = await client.fetch_design_image(target, token)
        await client.close()
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: str = FIGMA_API_BASE,
        scale: int = FIGMA_RENDER_SCALE,
    ) -> None:
        self._http = http
        self._owns_http = http is None
        self.base_url = base_url.rstrip("/")
        self.scale = scale

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS))
            self._owns_http = True
        return self._http

    async def close(self) -> None:
        if self._owns_http and self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def first_frame_id(self, file_key: str, token: str) -> Optional[str]:
        """Return the id of the first child on the file's first page."""
        http = await self._get_http()
        resp = await http.get(f"{self.base_url}/files/{file_key}", headers={"X-Figma-Token": token})
        if not resp.is_success:
            raise FigmaAPIError(resp.status_code, "files")
        document = resp.json().get("document") or {}
        pages = document.get("children") or []
        frames = (pages[0].get("children") or []) if pages else []
        if frames and frames[0].get("id"):
            return frames[0]["id"]
        return None

    async def render_url(self, file_key: str, node_id: str, token: str) -> Optional[str]:
        """Ask Figma to render ``node_id`` as PNG and return the temporary URL."""
        http = await self._get_http()
        resp = await http.get(
            f"{self.base_url}/images/{file_key}",
            params={"ids": node_id, "format": "png", "scale": self.scale},
            headers={"X-Figma-Token": token},
        )
        if not resp.is_success:
            raise FigmaAPIError(resp.status_code, "images")
        images = resp.json().get("images") or {}
        # Share links use "1-2" while the API keys renders by "1:2"
        return images.get(node_id) or images.get(node_id.replace("-", ":"))

    async def download(self, url: str) -> InlineImage:
        http = await self._get_http()
        resp = await http.get(url)
        if not resp.is_success:
            raise FigmaAPIError(resp.status_code, "render download")
        mime_type = resp.headers.get("content-type", "image/png").split(";")[0].strip()
        return InlineImage.from_bytes(resp.content, mime_type or "image/png")

    async def fetch_design_image(self, target: FigmaTarget, token: str) -> Optional[InlineImage]:
        """Resolve, render and download the target frame. None if the file has no frame."""
        node_id = target.node_id
        if not node_id:
            node_id = await self.first_frame_id(target.file_key, token)
            if not node_id:
                logger.info("Figma file %s has no frame to render", target.file_key)
                return None

        image_url = await self.render_url(target.file_key, node_id, token)
        if not image_url:
            logger.info("Figma returned no render for node %s", node_id)
            return None
        return await self.download(image_url)
