"""
Unit Tests — Review Controllers
===============================
Canvas pan/zoom transform and pin selection/focus traversal.
"""
import random

import pytest

from auditwise.models.issue import Issue
from auditwise.review.canvas import CanvasController, clamp_scale
from auditwise.review.pins import PinController


def _issue(issue_id: int, status: str = "open") -> Issue:
    return Issue(id=issue_id, title=f"Issue {issue_id}", category="UI", severity="Medium",
                 status=status, x=10 * issue_id, y=20)


# ===========================================================================
# 1. Canvas
# ===========================================================================
class TestCanvasController:

    def test_wheel_up_zooms_in_and_down_zooms_out(self):
        canvas = CanvasController()
        assert canvas.wheel(-120).scale == pytest.approx(1.08)
        canvas.reset()
        assert canvas.wheel(120).scale == pytest.approx(0.93)

    def test_buttons_zoom_multiplicatively(self):
        canvas = CanvasController()
        canvas.zoom_in()
        assert canvas.zoom_in().scale == pytest.approx(1.44)
        assert canvas.zoom_out().scale == pytest.approx(1.152)

    def test_scale_stays_within_bounds_for_any_wheel_sequence(self):
        rng = random.Random(7)
        canvas = CanvasController()
        for _ in range(500):
            scale = canvas.wheel(rng.choice([-1, 1]) * rng.randint(1, 200)).scale
            assert 0.1 <= scale <= 5.0

    def test_scale_saturates_at_limits(self):
        canvas = CanvasController()
        for _ in range(100):
            canvas.zoom_in()
        assert canvas.transform.scale == 5.0
        for _ in range(100):
            canvas.zoom_out()
        assert canvas.transform.scale == 0.1

    def test_clamp_scale(self):
        assert clamp_scale(0.01) == 0.1
        assert clamp_scale(9) == 5.0
        assert clamp_scale(2.5) == 2.5

    def test_pan_is_incremental_from_last_point(self):
        canvas = CanvasController()
        canvas.pointer_down(100, 100)
        canvas.pointer_move(110, 105)
        t = canvas.pointer_move(130, 100)
        assert (t.x, t.y) == (30, 0)
        assert canvas.is_panning

    def test_move_without_capture_does_nothing(self):
        canvas = CanvasController()
        t = canvas.pointer_move(50, 50)
        assert (t.x, t.y) == (0, 0)

    def test_pointer_up_and_leave_release_capture(self):
        canvas = CanvasController()
        canvas.pointer_down(0, 0)
        canvas.pointer_up()
        assert canvas.pointer_move(40, 40).x == 0

        canvas.pointer_down(0, 0)
        canvas.pointer_leave()
        assert not canvas.is_panning

    def test_reset_restores_identity(self):
        canvas = CanvasController()
        canvas.zoom_in()
        canvas.pointer_down(0, 0)
        canvas.pointer_move(15, 25)
        t = canvas.reset()
        assert (t.x, t.y, t.scale) == (0, 0, 1)


# ===========================================================================
# 2. Pins
# ===========================================================================
class TestPinController:

    def test_click_selects_and_focuses(self):
        pins = PinController()
        pins.click_pin(3)
        assert pins.selected_id == 3
        assert pins.focused_id == 3
        assert pins.in_focus_mode

    def test_list_selection_toggles_without_focus(self):
        pins = PinController()
        pins.select_from_list(2)
        assert pins.selected_id == 2
        assert not pins.in_focus_mode
        pins.select_from_list(2)
        assert pins.selected_id is None

    def test_exit_focus_keeps_selection(self):
        pins = PinController()
        pins.click_pin(2)
        pins.exit_focus()
        assert pins.selected_id == 2
        assert not pins.in_focus_mode

    def test_focus_traversal_skips_resolved_issues(self):
        issues = [_issue(1), _issue(2, "resolved"), _issue(3), _issue(4)]
        pins = PinController()
        pins.click_pin(1)

        assert pins.focus_next(issues) == 3
        assert pins.selected_id == 3
        assert pins.neighbours(issues) == (1, 4)
        assert pins.focus_next(issues) == 4
        assert pins.focus_next(issues) is None
        assert pins.focused_id == 4
        assert pins.focus_prev(issues) == 3
        assert pins.focus_prev(issues) == 1
        assert pins.focus_prev(issues) is None

    def test_neighbours_of_resolved_focus_point_to_first_open(self):
        issues = [_issue(1, "resolved"), _issue(2), _issue(3)]
        pins = PinController()
        pins.click_pin(1)
        assert pins.neighbours(issues) == (None, 2)

    def test_neighbours_without_focus(self):
        assert PinController().neighbours([_issue(1)]) == (None, None)

    def test_after_resolve_selects_next_open_and_leaves_focus(self):
        issues = [_issue(1, "resolved"), _issue(2), _issue(3)]
        pins = PinController()
        pins.click_pin(2)
        issues[1] = issues[1].model_copy(update={"status": "resolved"})
        pins.after_resolve(2, issues)
        assert pins.selected_id == 3
        assert not pins.in_focus_mode

    def test_after_resolve_last_open_clears_selection(self):
        issues = [_issue(1, "resolved")]
        pins = PinController(selected_id=1)
        pins.after_resolve(1, issues)
        assert pins.selected_id is None

    def test_pin_markers(self):
        issues = [_issue(1), _issue(2, "resolved")]
        pins = PinController()
        pins.click_pin(2)
        markers = pins.pin_markers(issues)
        assert [(m.id, m.x, m.y) for m in markers] == [(1, 10, 20), (2, 20, 20)]
        assert markers[1].resolved and markers[1].selected and markers[1].focused
        assert not markers[0].selected
