"""
Scan Progress
Phase enum and the progress snapshot the scanning screen polls.
"""
from enum import Enum

from pydantic import BaseModel

from auditwise.core.constants import SCAN_STEPS


class ScanPhase(str, Enum):
    IDLE = "idle"
    RESOLVING_ASSET = "resolving_asset"
    CALLING_AI = "calling_ai"
    PARSING = "parsing"
    COMPLETE = "complete"


class ScanProgress(BaseModel):
    phase: ScanPhase = ScanPhase.IDLE
    percent: float = 0.0
    step_index: int = 0
    status_message: str = ""
    done: bool = False
    cancelled: bool = False

    @property
    def step_label(self) -> str:
        return SCAN_STEPS[self.step_index]

    @property
    def display_message(self) -> str:
        """What the status line shows: real status first, phase label otherwise."""
        if self.done:
            return "Opening your results…"
        return self.status_message or self.step_label
