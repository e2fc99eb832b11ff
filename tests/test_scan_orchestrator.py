"""
Scan Orchestrator Tests
=======================
End-to-end scan sequencing with the Gemini client mocked and the asset
resolver fed real data URLs. Progress timing is shrunk so every test runs
in milliseconds.
"""
import asyncio
import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from auditwise.agents.scan_orchestrator import ProgressTicker, ScanOrchestrator
from auditwise.assets.figma import FigmaClient
from auditwise.assets.resolver import AssetResolver
from auditwise.core.constants import SCAN_STEPS
from auditwise.core.errors import GeminiAPIError, ScanAlreadyStarted
from auditwise.llm.client import GeminiClient
from auditwise.models.design_input import DesignInput
from auditwise.state.audit_session import AuditSession, SessionStore
from auditwise.state.scan_progress import ScanPhase, ScanProgress

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
AI_TEXT = json.dumps([
    {"title": "Cramped header", "category": "Layout", "severity": "High", "x": 10, "y": 10},
    {"title": "Vague CTA", "category": "Content", "severity": "Low", "x": 60, "y": 70},
])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def gemini():
    client = MagicMock(spec=GeminiClient)
    client.call_with_fallback = AsyncMock(return_value=AI_TEXT)
    return client


@pytest.fixture
def resolver():
    return AssetResolver(figma=MagicMock(spec=FigmaClient))


def _session(**overrides) -> AuditSession:
    fields = {"type": "png", "file_data_url": PNG_DATA_URL, "file_name": "home.png", "api_key": "key"}
    fields.update(overrides)
    return AuditSession(DesignInput(**fields), title="home.png")


def _orchestrator(session, gemini, resolver, on_complete=None) -> ScanOrchestrator:
    return ScanOrchestrator(
        session,
        gemini=gemini,
        resolver=resolver,
        on_complete=on_complete,
        progress_duration=0.05,
        progress_interval=0.001,
        completion_delay=0,
    )


# ===================================================================
# Happy path
# ===================================================================
def test_vision_scan_commits_parsed_issues(gemini, resolver):
    session = _session()
    handoff = MagicMock()
    orchestrator = _orchestrator(session, gemini, resolver, on_complete=handoff)

    issues = asyncio.run(orchestrator.run())

    assert [i.title for i in issues] == ["Cramped header", "Vague CTA"]
    assert session.issues == issues
    assert session.design_image_url == PNG_DATA_URL
    assert session.progress.phase is ScanPhase.COMPLETE
    assert session.progress.done
    assert session.progress.percent == 100.0
    assert session.progress.step_index == len(SCAN_STEPS) - 1
    assert session.pins.selected_id == 1
    handoff.assert_called_once_with(session)
    assert not orchestrator.ticker.running

    api_key, build_body = gemini.call_with_fallback.call_args.args[:2]
    assert api_key == "key"
    parts = build_body("gemini-2.0-flash")["contents"][0]["parts"]
    assert parts[0]["inlineData"]["mimeType"] == "image/png"


def test_url_scan_uses_text_prompt_with_url(gemini, resolver):
    session = _session(type="url", url="https://shop.example.com", file_data_url=None)
    asyncio.run(_orchestrator(session, gemini, resolver).run())

    build_body = gemini.call_with_fallback.call_args.args[1]
    parts = build_body("any")["contents"][0]["parts"]
    assert len(parts) == 1
    assert "https://shop.example.com" in parts[0]["text"]
    assert session.design_image_url is None


def test_pdf_scan_is_text_only(gemini, resolver):
    pdf = "data:application/pdf;base64," + base64.b64encode(b"%PDF").decode()
    session = _session(type="pdf", file_data_url=pdf, file_name="deck.pdf")
    asyncio.run(_orchestrator(session, gemini, resolver).run())

    build_body = gemini.call_with_fallback.call_args.args[1]
    parts = build_body("any")["contents"][0]["parts"]
    assert "inlineData" not in parts[0]


def test_status_messages_reach_progress(gemini, resolver):
    seen = []

    async def fake_call(api_key, build_body, on_status=None):
        on_status("Retrying with gemini-1.5-flash…")
        seen.append(session.progress.display_message)
        seen.append(session.progress.phase)
        return AI_TEXT

    gemini.call_with_fallback = AsyncMock(side_effect=fake_call)
    session = _session()
    asyncio.run(_orchestrator(session, gemini, resolver).run())

    assert seen == ["Retrying with gemini-1.5-flash…", ScanPhase.CALLING_AI]
    assert session.progress.display_message == "Opening your results…"


# ===================================================================
# Fallback paths
# ===================================================================
def test_missing_api_key_uses_fallback_without_ai_call(gemini, resolver):
    session = _session(api_key="")
    issues = asyncio.run(_orchestrator(session, gemini, resolver).run())

    assert len(issues) == 6
    gemini.call_with_fallback.assert_not_called()
    assert session.progress.done


def test_exhausted_models_use_fallback(gemini, resolver):
    gemini.call_with_fallback = AsyncMock(return_value=None)
    session = _session()
    issues = asyncio.run(_orchestrator(session, gemini, resolver).run())

    assert len(issues) == 6
    assert session.progress.phase is ScanPhase.COMPLETE


def test_fatal_ai_error_uses_fallback(gemini, resolver):
    gemini.call_with_fallback = AsyncMock(side_effect=GeminiAPIError(400, "gemini-2.0-flash"))
    session = _session()
    issues = asyncio.run(_orchestrator(session, gemini, resolver).run())

    assert len(issues) == 6
    assert session.issues == issues
    assert session.progress.done


# ===================================================================
# Guard & cancellation
# ===================================================================
def test_second_run_is_rejected(gemini, resolver):
    session = _session()
    orchestrator = _orchestrator(session, gemini, resolver)
    asyncio.run(orchestrator.run())

    with pytest.raises(ScanAlreadyStarted):
        asyncio.run(orchestrator.run())
    with pytest.raises(ScanAlreadyStarted):
        asyncio.run(_orchestrator(session, gemini, resolver).run())
    assert gemini.call_with_fallback.await_count == 1


def test_cancel_during_ai_call_discards_result(gemini, resolver):
    session = _session()
    handoff = MagicMock()
    orchestrator = _orchestrator(session, gemini, resolver, on_complete=handoff)

    async def slow_call(api_key, build_body, on_status=None):
        orchestrator.cancel()
        return AI_TEXT

    gemini.call_with_fallback = AsyncMock(side_effect=slow_call)
    asyncio.run(orchestrator.run())

    assert session.issues == []
    assert session.progress.cancelled
    assert not session.progress.done
    assert session.progress.phase is not ScanPhase.COMPLETE
    handoff.assert_not_called()


def test_discarding_session_cancels_running_scan(gemini, resolver):
    store = SessionStore()
    session = store.create(
        DesignInput(type="png", file_data_url=PNG_DATA_URL, api_key="key"), title="x"
    )

    async def run_test():
        gate = asyncio.Event()

        async def blocked_call(api_key, build_body, on_status=None):
            await gate.wait()
            return AI_TEXT

        gemini.call_with_fallback = AsyncMock(side_effect=blocked_call)
        task = _orchestrator(session, gemini, resolver).start()
        await asyncio.sleep(0.01)
        store.discard(session.id)
        gate.set()
        await task

    asyncio.run(run_test())

    assert session.progress.cancelled
    assert session.issues == []
    assert len(store) == 0


def test_start_runs_in_background(gemini, resolver):
    session = _session()

    async def run_test():
        task = _orchestrator(session, gemini, resolver).start()
        assert session.progress.phase is not ScanPhase.IDLE
        return await task

    issues = asyncio.run(run_test())
    assert len(issues) == 2
    assert session.progress.done


# ===================================================================
# Progress ticker
# ===================================================================
def test_ticker_caps_at_ceiling_and_penultimate_step():
    progress = ScanProgress()
    ticker = ProgressTicker(progress, duration=6.0, interval=0.08, ceiling=90.0)

    for _ in range(200):
        ticker.advance()

    assert progress.percent == 90.0
    assert progress.step_index == len(SCAN_STEPS) - 2


def test_ticker_step_index_never_moves_backwards():
    progress = ScanProgress(step_index=7)
    ticker = ProgressTicker(progress, duration=6.0, interval=0.08, ceiling=90.0)

    ticker.advance()

    assert progress.step_index == 7
    assert 0 < progress.percent < 90.0
