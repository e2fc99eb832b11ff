"""
Asset Resolver
==============
Turns a DesignInput into what the AI call needs, before the call is made.

Variants:
    figma — share link + token → rendered PNG via the Figma API (2x).
            Missing token, bad link or any Figma failure → no image, the
            audit continues text-only.
    png   — uploaded data URL used as-is; also becomes the canvas preview
    pdf   — uploaded data URL kept, but audited text-only and not previewed
    url   — no fetch at all; the URL itself becomes the prompt context and
            the browser shows it live in a sandboxed frame
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from auditwise.assets.figma import FigmaClient, require_figma_target
from auditwise.assets.inline_image import InlineImage, parse_data_url
from auditwise.models.design_input import DesignInput

logger = logging.getLogger(__name__)


@dataclass
class ResolvedAsset:
    design_type: str
    image: Optional[InlineImage] = None
    preview_url: Optional[str] = None   # data URL for the review canvas
    context_url: Optional[str] = None   # live site URL for text-only prompts

    @property
    def use_vision(self) -> bool:
        return self.image is not None and self.design_type != "pdf"


class AssetResolver:

    def __init__(self, figma: Optional[FigmaClient] = None) -> None:
        self.figma = figma or FigmaClient()

    async def close(self) -> None:
        await self.figma.close()

    async def resolve(
        self,
        design_input: DesignInput,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> ResolvedAsset:
        asset = ResolvedAsset(design_type=design_input.type)

        if design_input.type == "figma":
            if design_input.url and design_input.figma_token:
                if on_status is not None:
                    on_status("Fetching Figma design…")
                asset.image = await self._resolve_figma(design_input.url, design_input.figma_token)
                if asset.image is not None:
                    asset.preview_url = asset.image.to_data_url()
            else:
                logger.info("Figma link without access token, auditing text-only")

        elif design_input.type in ("png", "pdf"):
            asset.image = parse_data_url(design_input.file_data_url)
            if asset.image is None:
                logger.warning("Uploaded %s is not a readable data URL", design_input.file_name or "file")
            elif design_input.type == "png":
                asset.preview_url = design_input.file_data_url

        elif design_input.type == "url":
            asset.context_url = design_input.url

        return asset

    async def _resolve_figma(self, url: str, token: str) -> Optional[InlineImage]:
        try:
            target = require_figma_target(url)
            return await self.figma.fetch_design_image(target, token)
        except Exception as e:
            logger.warning("Figma fetch error: %s", e)
            return None
