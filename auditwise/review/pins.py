"""
Pin Controller
==============
Selection and focus state for the issue pins overlaid on the canvas.

    click_pin         → selects the issue AND enters focused mode
    select_from_list  → toggles selection, never enters focused mode
    focus_next / prev → walk the OPEN issues only; resolved ones are skipped
    after_resolve     → select the next open issue, leave focused mode

Focused mode replaces the issue list with a single-issue view. When the
focused issue itself is not open (it was resolved elsewhere), "next" lands
on the first open issue and there is no "previous".
"""
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from auditwise.models.issue import Issue


class PinMarker(BaseModel):
    id: int
    x: float
    y: float
    severity: str
    resolved: bool
    selected: bool
    focused: bool


def _open_ids(issues: Sequence[Issue]) -> List[int]:
    return [i.id for i in issues if i.status == "open"]


class PinController:

    def __init__(self, selected_id: Optional[int] = None) -> None:
        self.selected_id = selected_id
        self.focused_id: Optional[int] = None

    @property
    def in_focus_mode(self) -> bool:
        return self.focused_id is not None

    def reset(self, issues: Sequence[Issue]) -> None:
        self.selected_id = issues[0].id if issues else None
        self.focused_id = None

    def click_pin(self, issue_id: int) -> None:
        self.selected_id = issue_id
        self.focused_id = issue_id

    def select_from_list(self, issue_id: int) -> None:
        self.selected_id = None if self.selected_id == issue_id else issue_id

    def exit_focus(self) -> None:
        self.focused_id = None

    def neighbours(self, issues: Sequence[Issue]) -> Tuple[Optional[int], Optional[int]]:
        """(previous, next) open issue ids around the focused issue."""
        if self.focused_id is None:
            return None, None
        open_ids = _open_ids(issues)
        if self.focused_id in open_ids:
            idx = open_ids.index(self.focused_id)
            prev_id = open_ids[idx - 1] if idx > 0 else None
            next_id = open_ids[idx + 1] if idx + 1 < len(open_ids) else None
            return prev_id, next_id
        return None, (open_ids[0] if open_ids else None)

    def focus_next(self, issues: Sequence[Issue]) -> Optional[int]:
        _, next_id = self.neighbours(issues)
        if next_id is not None:
            self.focused_id = self.selected_id = next_id
        return next_id

    def focus_prev(self, issues: Sequence[Issue]) -> Optional[int]:
        prev_id, _ = self.neighbours(issues)
        if prev_id is not None:
            self.focused_id = self.selected_id = prev_id
        return prev_id

    def after_resolve(self, issue_id: int, issues: Sequence[Issue]) -> None:
        nxt = next((i for i in issues if i.id != issue_id and i.status == "open"), None)
        self.selected_id = nxt.id if nxt else None
        self.focused_id = None

    def pin_markers(self, issues: Sequence[Issue]) -> List[PinMarker]:
        return [
            PinMarker(
                id=i.id,
                x=i.x,
                y=i.y,
                severity=i.severity,
                resolved=i.status == "resolved",
                selected=i.id == self.selected_id,
                focused=i.id == self.focused_id,
            )
            for i in issues
        ]
