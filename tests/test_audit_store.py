"""
Audit Store Tests
=================
InMemoryAuditStore CRUD, ownership rules and saving a reviewed session.
"""
import time

import pytest

from auditwise.models.design_input import DesignInput
from auditwise.parser.issue_parser import fallback_issues
from auditwise.services.audit_store import InMemoryAuditStore, save_session
from auditwise.state.audit_session import AuditSession


@pytest.fixture
def store():
    return InMemoryAuditStore()


def test_create_requires_user(store):
    with pytest.raises(PermissionError):
        store.create_audit(None, title="x", design_type="url")
    with pytest.raises(PermissionError):
        store.list_audits("")


def test_new_audit_is_pending(store):
    audit = store.create_audit("user-1", title="Home", design_type="png", audit_depth="Quick")
    assert audit.status == "pending"
    assert audit.user_id == "user-1"
    assert store.get_audit(audit.id).title == "Home"


def test_list_is_per_user_and_newest_first(store):
    first = store.create_audit("u1", title="First", design_type="url")
    time.sleep(0.001)
    second = store.create_audit("u1", title="Second", design_type="url")
    store.create_audit("u2", title="Other", design_type="url")

    assert [a.id for a in store.list_audits("u1")] == [second.id, first.id]


def test_update_cannot_change_owner(store):
    audit = store.create_audit("u1", title="Old", design_type="url")
    updated = store.update_audit(audit.id, {"title": "New", "user_id": "intruder"})
    assert updated.title == "New"
    assert updated.user_id == "u1"


def test_issues_lifecycle(store):
    audit = store.create_audit("u1", title="Home", design_type="png")
    created = store.create_issues(audit.id, fallback_issues())

    assert len(created) == 6
    assert all(i.status == "open" for i in created)
    assert created[0].position_x == 70.0

    store.update_issue_status(created[0].id, "resolved")
    store.delete_issue(created[1].id)
    issues = store.get_audit(audit.id).issues
    assert len(issues) == 5
    assert issues[0].status == "resolved"


def test_delete_audit_removes_its_issues(store):
    audit = store.create_audit("u1", title="Home", design_type="png")
    issue = store.create_issues(audit.id, fallback_issues())[0]
    store.delete_audit(audit.id)

    with pytest.raises(KeyError):
        store.get_audit(audit.id)
    with pytest.raises(KeyError):
        store.update_issue_status(issue.id, "open")


def test_save_session_persists_score_and_statuses(store):
    session = AuditSession(
        DesignInput(type="url", url="https://example.com", audit_depth="Deep"), title="example.com"
    )
    session.replace_issues(fallback_issues())
    session.resolve(1)
    session.resolve(2)

    saved = save_session(store, "u1", session)

    assert saved.status == "completed"
    assert saved.audit_score == session.score()
    assert saved.design_url == "https://example.com"
    assert saved.audit_depth == "Deep"
    assert sorted(i.status for i in saved.issues).count("resolved") == 2
