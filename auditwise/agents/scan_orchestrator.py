"""
Scan Orchestrator
=================
Drives one end-to-end scan: DesignInput → committed Issue list → review hand-off.

State Machine:
    idle → resolving_asset → calling_ai → parsing → complete

    There is no failure terminal state. Missing API key, an exhausted model
    chain, a fatal Gemini status or any unexpected exception all converge on
    the fallback issue set and still reach ``complete``.

Run-once Guard:
    A scan may only begin from ``idle``. A second start/run raises
    ScanAlreadyStarted instead of launching a concurrent scan.

Progress:
    A ProgressTicker task animates 0 → 90% over a fixed duration, cycling
    through SCAN_STEPS, independently of real work. When the work finishes
    the ticker is stopped and progress is forced to 100% whatever its value.

Cancellation:
    cancel() sets a flag and stops the ticker. In-flight HTTP requests are
    not aborted; their results are discarded: no commit, no hand-off.

Hand-off:
    After committing, the orchestrator waits SCAN_COMPLETION_DELAY_SECONDS so
    the completed state is visible, then calls ``on_complete(session)``.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from auditwise.assets.resolver import AssetResolver, ResolvedAsset
from auditwise.core.config import (
    SCAN_COMPLETION_DELAY_SECONDS,
    SCAN_PROGRESS_CEILING,
    SCAN_PROGRESS_DURATION_SECONDS,
    SCAN_PROGRESS_INTERVAL_SECONDS,
)
from auditwise.core.constants import AI_STEP_INDEX, SCAN_STEPS
from auditwise.core.errors import ScanAlreadyStarted
from auditwise.llm.client import GeminiClient
from auditwise.llm.prompts import DESIGN_PROMPT, build_text_body, build_vision_body, url_prompt
from auditwise.models.issue import Issue
from auditwise.parser.issue_parser import fallback_issues, parse_issues
from auditwise.state.audit_session import AuditSession
from auditwise.state.scan_progress import ScanPhase, ScanProgress

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Progress animation
# ---------------------------------------------------------------------------
class ProgressTicker:
    """Time-based progress bar, capped below 100% until the scan really ends."""

    def __init__(
        self,
        progress: ScanProgress,
        duration: float = SCAN_PROGRESS_DURATION_SECONDS,
        interval: float = SCAN_PROGRESS_INTERVAL_SECONDS,
        ceiling: float = SCAN_PROGRESS_CEILING,
    ) -> None:
        self.progress = progress
        self.interval = interval
        self.ceiling = ceiling
        self.steps = max(duration / interval, 1.0)
        self.tick = 0
        self._task: Optional[asyncio.Task] = None

    def advance(self) -> None:
        self.tick += 1
        percent = min(self.tick / self.steps * self.ceiling, self.ceiling)
        last_animated = len(SCAN_STEPS) - 2
        step = min(int(percent / self.ceiling * last_animated), last_animated)
        self.progress.percent = percent
        self.progress.step_index = max(self.progress.step_index, step)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.advance()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._loop())

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
class ScanOrchestrator:
    """
    Sequences asset resolution → AI call → parsing → commit for one session.

    Usage:
        orchestrator = ScanOrchestrator(session, gemini, resolver, on_complete=cb)
        issues = await orchestrator.run()      # or orchestrator.start()
    """

    def __init__(
        self,
        session: AuditSession,
        gemini: Optional[GeminiClient] = None,
        resolver: Optional[AssetResolver] = None,
        on_complete: Optional[Callable[[AuditSession], None]] = None,
        progress_duration: float = SCAN_PROGRESS_DURATION_SECONDS,
        progress_interval: float = SCAN_PROGRESS_INTERVAL_SECONDS,
        progress_ceiling: float = SCAN_PROGRESS_CEILING,
        completion_delay: float = SCAN_COMPLETION_DELAY_SECONDS,
    ) -> None:
        self.session = session
        self.gemini = gemini or GeminiClient()
        self.resolver = resolver or AssetResolver()
        self.on_complete = on_complete
        self.completion_delay = completion_delay
        self.ticker = ProgressTicker(
            session.progress,
            duration=progress_duration,
            interval=progress_interval,
            ceiling=progress_ceiling,
        )
        self._cancelled = False
        self._preview_url: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    # -----------------------------------------------------------------------
    # State
    # -----------------------------------------------------------------------
    @property
    def progress(self) -> ScanProgress:
        return self.session.progress

    @property
    def phase(self) -> ScanPhase:
        return self.progress.phase

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _set_phase(self, phase: ScanPhase) -> None:
        if not self._cancelled:
            self.progress.phase = phase

    def _set_status(self, message: str) -> None:
        if not self._cancelled:
            self.progress.status_message = message

    def _begin(self) -> None:
        if self.phase is not ScanPhase.IDLE:
            raise ScanAlreadyStarted(
                f"Scan for session {self.session.id} already {self.phase.value}"
            )
        self.progress.phase = ScanPhase.RESOLVING_ASSET
        self.session.scan = self
        self.ticker.start()
        logger.info("[SCAN] Session %s started (%s)", self.session.id, self.session.design_input.type)

    def cancel(self) -> None:
        """Stop the ticker and discard whatever the scan produces from now on."""
        if self._cancelled:
            return
        self._cancelled = True
        self.progress.cancelled = True
        self.ticker.stop()
        logger.info("[SCAN] Session %s cancelled", self.session.id)

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------
    def start(self) -> asyncio.Task:
        """Begin synchronously (guard + ticker) and run the rest as a background task."""
        self._begin()
        self._task = asyncio.get_running_loop().create_task(self._execute())
        return self._task

    async def run(self) -> List[Issue]:
        self._begin()
        return await self._execute()

    # -----------------------------------------------------------------------
    # Pipeline
    # -----------------------------------------------------------------------
    async def _execute(self) -> List[Issue]:
        try:
            try:
                issues = await self._analyse()
            except Exception as e:
                logger.warning("[SCAN] Unexpected error, using fallback issues: %s", e, exc_info=True)
                issues = fallback_issues()

            if self._cancelled:
                logger.info("[SCAN] Result for session %s discarded after cancel", self.session.id)
                return issues

            self._commit(issues)
        finally:
            self.ticker.stop()

        await asyncio.sleep(self.completion_delay)
        if not self._cancelled and self.on_complete is not None:
            self.on_complete(self.session)
        return issues

    async def _analyse(self) -> List[Issue]:
        design_input = self.session.design_input

        asset = await self.resolver.resolve(design_input, on_status=self._set_status)
        self._preview_url = asset.preview_url

        if not design_input.api_key:
            logger.info("[SCAN] No API key, using fallback issues")
            return fallback_issues()

        self._set_phase(ScanPhase.CALLING_AI)
        if not self._cancelled:
            self.progress.step_index = max(self.progress.step_index, AI_STEP_INDEX)

        build_body, mode = self._request_builder(asset)
        logger.info("[SCAN] Calling Gemini in %s mode", mode)
        text = await self.gemini.call_with_fallback(
            design_input.api_key, build_body, on_status=self._set_status
        )

        self._set_phase(ScanPhase.PARSING)
        if text is None:
            return fallback_issues()
        return parse_issues(text)

    @staticmethod
    def _request_builder(asset: ResolvedAsset) -> Tuple[Callable[[str], dict], str]:
        if asset.use_vision:
            image = asset.image
            return (lambda _model: build_vision_body(image.mime_type, image.data)), "vision"
        prompt = url_prompt(asset.context_url) if asset.context_url else DESIGN_PROMPT
        return (lambda _model: build_text_body(prompt)), "text"

    def _commit(self, issues: List[Issue]) -> None:
        self.session.replace_issues(issues, design_image_url=self._preview_url)
        self.progress.percent = 100.0
        self.progress.step_index = len(SCAN_STEPS) - 1
        self.progress.phase = ScanPhase.COMPLETE
        self.progress.done = True
        logger.info("[SCAN] Session %s complete with %d issues", self.session.id, len(issues))
