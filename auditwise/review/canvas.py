"""
Canvas Controller
=================
Pan/zoom transform state for the design preview on the review screen.

Zoom:
    - wheel: ×1.08 when scrolling up (delta_y < 0), ×0.93 otherwise
    - buttons: ×1.2 / ×0.8
    - always multiplicative, scale clamped to [0.1, 5.0]
    - fixed transform origin, so pan-then-zoom and zoom-then-pan differ

Pan:
    pointer_down captures the pointer; each pointer_move adds the delta from
    the last seen point and then moves the anchor to the new point.
    pointer_up / pointer_leave release the capture.
"""
from typing import Optional, Tuple

from pydantic import BaseModel

from auditwise.core.constants import (
    BUTTON_ZOOM_IN,
    BUTTON_ZOOM_OUT,
    SCALE_MAX,
    SCALE_MIN,
    WHEEL_ZOOM_IN,
    WHEEL_ZOOM_OUT,
)


class CanvasTransform(BaseModel):
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


def clamp_scale(scale: float) -> float:
    return min(max(scale, SCALE_MIN), SCALE_MAX)


class CanvasController:

    def __init__(self) -> None:
        self.transform = CanvasTransform()
        self._anchor: Optional[Tuple[float, float]] = None

    @property
    def is_panning(self) -> bool:
        return self._anchor is not None

    def _zoom(self, factor: float) -> CanvasTransform:
        self.transform = self.transform.model_copy(
            update={"scale": clamp_scale(self.transform.scale * factor)}
        )
        return self.transform

    def wheel(self, delta_y: float) -> CanvasTransform:
        return self._zoom(WHEEL_ZOOM_IN if delta_y < 0 else WHEEL_ZOOM_OUT)

    def zoom_in(self) -> CanvasTransform:
        return self._zoom(BUTTON_ZOOM_IN)

    def zoom_out(self) -> CanvasTransform:
        return self._zoom(BUTTON_ZOOM_OUT)

    def reset(self) -> CanvasTransform:
        self.transform = CanvasTransform()
        return self.transform

    def pointer_down(self, x: float, y: float) -> None:
        self._anchor = (x, y)

    def pointer_move(self, x: float, y: float) -> CanvasTransform:
        if self._anchor is None:
            return self.transform
        dx = x - self._anchor[0]
        dy = y - self._anchor[1]
        self.transform = self.transform.model_copy(
            update={"x": self.transform.x + dx, "y": self.transform.y + dy}
        )
        self._anchor = (x, y)
        return self.transform

    def pointer_up(self) -> None:
        self._anchor = None

    pointer_leave = pointer_up
