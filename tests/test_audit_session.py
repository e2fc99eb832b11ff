"""
Unit Tests — Audit Session
==========================
Session state (issues, score, comments), the session store lifecycle and
the upload-step helpers on DesignInput.
"""
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from auditwise.core.errors import IssueNotFound, SessionNotFound
from auditwise.models.design_input import DesignInput, derive_audit_title, is_ready
from auditwise.models.issue import Issue
from auditwise.parser.issue_parser import fallback_issues
from auditwise.state.audit_session import AuditSession, SessionStore, compute_score, score_label


def _session_with(issues) -> AuditSession:
    session = AuditSession(DesignInput(type="url", url="https://example.com"), title="example.com")
    session.replace_issues(issues)
    return session


def _issue(issue_id: int, category: str = "UI", status: str = "open") -> Issue:
    return Issue(id=issue_id, title=f"I{issue_id}", category=category, severity="Low",
                 status=status, x=50, y=50)


# ===========================================================================
# 1. Score
# ===========================================================================
class TestScore:

    def test_no_issues_scores_base(self):
        assert compute_score([]) == 74

    def test_all_resolved_scores_94(self):
        assert compute_score([_issue(1, status="resolved"), _issue(2, status="resolved")]) == 94

    def test_rounds_half_up(self):
        # 74 + 1/8 * 20 = 76.5
        issues = [_issue(1, status="resolved")] + [_issue(i) for i in range(2, 9)]
        assert compute_score(issues) == 77

    @pytest.mark.parametrize("score,label", [
        (94, "Good"), (80, "Good"), (79, "Needs Attention"), (60, "Needs Attention"), (59, "Critical Issues"),
    ])
    def test_labels(self, score, label):
        assert score_label(score) == label


# ===========================================================================
# 2. Issues
# ===========================================================================
class TestAuditSessionIssues:

    def test_replace_selects_first_issue(self):
        session = _session_with(fallback_issues())
        assert session.pins.selected_id == 1
        assert not session.pins.in_focus_mode

    def test_resolve_updates_score_and_selection(self):
        session = _session_with(fallback_issues())
        session.pins.click_pin(1)

        resolved = session.resolve(1)

        assert resolved.status == "resolved"
        assert session.score() == 77  # 74 + 1/6 * 20 = 77.33
        assert session.pins.selected_id == 2
        assert not session.pins.in_focus_mode
        assert [i.id for i in session.resolved_issues()] == [1]

    def test_reopen(self):
        session = _session_with(fallback_issues())
        session.resolve(3)
        session.reopen(3)
        assert session.get_issue(3).status == "open"
        assert session.score() == 74

    def test_unknown_issue_raises(self):
        session = _session_with(fallback_issues())
        with pytest.raises(IssueNotFound):
            session.resolve(99)

    def test_filtered_by_tab_and_category(self):
        session = _session_with([
            _issue(1, "UX"), _issue(2, "Layout"), _issue(3, "UX", "resolved"),
        ])
        assert [i.id for i in session.filtered("open", "All")] == [1, 2]
        assert [i.id for i in session.filtered("open", "UX")] == [1]
        assert [i.id for i in session.filtered("resolved", "UX")] == [3]
        assert session.filtered("resolved", "Layout") == []

    def test_new_scan_replaces_not_merges(self):
        session = _session_with(fallback_issues())
        session.add_comment(1, "looks off")
        session.replace_issues([_issue(1)], design_image_url="data:image/png;base64,AA==")
        assert len(session.issues) == 1
        assert session.comments == []
        assert session.design_image_url == "data:image/png;base64,AA=="


# ===========================================================================
# 3. Comments
# ===========================================================================
class TestComments:

    def test_comments_are_sequential_and_scoped_to_issue(self):
        session = _session_with(fallback_issues())
        first = session.add_comment(1, "Contrast is 3.2:1")
        second = session.add_comment(2, "Agree", author="Dana")
        third = session.add_comment(1, "Fixed in v2")

        assert (first.id, second.id, third.id) == (1, 2, 3)
        assert [c.body for c in session.comments_for(1)] == ["Contrast is 3.2:1", "Fixed in v2"]
        assert session.comments_for(2)[0].author == "Dana"

    def test_comment_on_unknown_issue_raises(self):
        session = _session_with(fallback_issues())
        with pytest.raises(IssueNotFound):
            session.add_comment(42, "?")


# ===========================================================================
# 4. Store
# ===========================================================================
class TestSessionStore:

    def test_create_get_discard(self):
        store = SessionStore()
        session = store.create(DesignInput(type="url", url="https://a.io"), title="a.io")
        assert store.get(session.id) is session
        store.discard(session.id)
        with pytest.raises(SessionNotFound):
            store.get(session.id)

    def test_discard_unknown_raises(self):
        with pytest.raises(SessionNotFound):
            SessionStore().discard("missing")

    def test_discard_and_clear_cancel_scans(self):
        store = SessionStore()
        a = store.create(DesignInput(type="url", url="https://a.io"))
        b = store.create(DesignInput(type="url", url="https://b.io"))
        a.scan, b.scan = MagicMock(), MagicMock()

        store.discard(a.id)
        a.scan.cancel.assert_called_once()

        store.clear()
        b.scan.cancel.assert_called_once()
        assert len(store) == 0

    def test_idle_sessions_are_evicted(self):
        now = [1000.0]
        store = SessionStore(max_sessions=10, idle_ttl=60, clock=lambda: now[0])
        stale = store.create(DesignInput(type="url", url="https://a.io"))
        stale.scan = MagicMock()
        now[0] += 30
        fresh = store.create(DesignInput(type="url", url="https://b.io"))

        now[0] += 45
        assert store.get(fresh.id) is fresh
        with pytest.raises(SessionNotFound):
            store.get(stale.id)
        stale.scan.cancel.assert_called_once()
        assert len(store) == 1

    def test_capacity_evicts_least_recently_used(self):
        now = [0.0]
        store = SessionStore(max_sessions=2, idle_ttl=3600, clock=lambda: now[0])
        a = store.create(DesignInput(type="url", url="https://a.io"))
        now[0] += 1
        b = store.create(DesignInput(type="url", url="https://b.io"))
        now[0] += 1
        store.get(a.id)
        now[0] += 1
        c = store.create(DesignInput(type="url", url="https://c.io"))

        assert len(store) == 2
        assert store.get(a.id) is a
        assert store.get(c.id) is c
        with pytest.raises(SessionNotFound):
            store.get(b.id)


# ===========================================================================
# 5. Upload helpers
# ===========================================================================
class TestDesignInput:

    @pytest.mark.parametrize("design_type,url,has_file,ready", [
        ("figma", "https://www.figma.com/file/abc/App", False, True),
        ("figma", "https://example.com/file/abc", False, False),
        ("url", "https://example.com", False, True),
        ("url", "example.com", False, False),
        ("png", None, True, True),
        ("pdf", None, False, False),
    ])
    def test_is_ready(self, design_type, url, has_file, ready):
        assert is_ready(design_type, url, has_file) is ready

    def test_titles(self):
        assert derive_audit_title("figma", "https://figma.com/file/abc/Landing-Page?node-id=1-2") == "Landing-Page"
        assert derive_audit_title("figma", "") == "Figma Design"
        assert derive_audit_title("url", "https://www.stripe.com/pricing") == "stripe.com"
        assert derive_audit_title("url", "not a url") == "not a url"
        assert derive_audit_title("png", file_name="home.png") == "home.png"
        assert derive_audit_title("pdf") == "Uploaded Design"

    def test_design_input_is_frozen(self):
        design = DesignInput(type="url", url="https://example.com")
        with pytest.raises(ValidationError):
            design.url = "https://other.com"
        assert design.audit_depth == "Standard"
