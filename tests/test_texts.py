from fastapi.testclient import TestClient

from peer_review.core.phase import Phase
from peer_review.core.texts import edit_text, submit_text
from peer_review.main import app
from peer_review.models.audit_event import AuditEvent
from peer_review.models.text import Text
from tests.helpers import TEXT_BODY, create_assignment, create_students, create_teacher, headers, set_phase

EDITED = TEXT_BODY + " Edited after a second read, with a stronger closing line."


def test_submit_then_update_text(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)
    client = TestClient(app)

    empty = client.get(f"/assignments/{a.id}/my-text", headers=headers(s0))
    assert empty.status_code == 200
    assert empty.json() == {"text": None, "can_edit": True, "can_submit": True}

    r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": TEXT_BODY})
    assert r.status_code == 201, r.text
    text_id = r.json()["id"]

    r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": EDITED})
    assert r.status_code == 200
    assert r.json()["id"] == text_id
    assert r.json()["content"] == EDITED

    r = client.put(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": TEXT_BODY})
    assert r.status_code == 200
    assert r.json()["content"] == TEXT_BODY

    assert db_session.query(AuditEvent).filter(AuditEvent.action == "TEXT_SUBMITTED").count() == 1


def test_text_too_short(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)

    client = TestClient(app)
    r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": "Too short."})
    assert r.status_code == 422


def test_no_submission_after_writing_deadline(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher, phase=Phase.REVIEW)

    client = TestClient(app)
    r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": TEXT_BODY})
    assert r.status_code == 403

    me = client.get(f"/assignments/{a.id}/my-text", headers=headers(s0))
    assert me.json()["can_submit"] is False


def test_distribution_freezes_texts(db_session):
    teacher = create_teacher(db_session)
    s0, s1 = create_students(db_session, 2)
    a = create_assignment(db_session, created_by=teacher)
    client = TestClient(app)

    for s in (s0, s1):
        r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s), json={"content": TEXT_BODY})
        assert r.status_code == 201

    assert client.post(f"/assignments/{a.id}/distribute", headers=headers(teacher)).status_code == 200

    put = client.put(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": EDITED})
    assert put.status_code == 403

    post = client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": EDITED})
    assert post.status_code == 403

    me = client.get(f"/assignments/{a.id}/my-text", headers=headers(s0))
    assert me.json()["can_edit"] is False
    assert me.json()["text"]["content"] == TEXT_BODY


def test_edit_without_text(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)

    client = TestClient(app)
    r = client.put(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": TEXT_BODY})
    assert r.status_code == 404


def test_closed_assignment_is_read_only(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)
    client = TestClient(app)
    client.post(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": TEXT_BODY})

    set_phase(db_session, a, Phase.CLOSED)

    r = client.put(f"/assignments/{a.id}/my-text", headers=headers(s0), json={"content": EDITED})
    assert r.status_code == 403
    me = client.get(f"/assignments/{a.id}/my-text", headers=headers(s0))
    assert me.json()["text"]["content"] == TEXT_BODY


def test_missing_header_is_unauthorized(db_session):
    teacher = create_teacher(db_session)
    a = create_assignment(db_session, created_by=teacher)

    client = TestClient(app)
    r = client.get(f"/assignments/{a.id}/my-text")
    assert r.status_code == 401


def test_every_text_change_is_audited(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)

    text, created = submit_text(db_session, a, s0, TEXT_BODY)
    assert created is True
    _, created = submit_text(db_session, a, s0, EDITED)
    assert created is False
    edit_text(db_session, a, s0, TEXT_BODY)
    db_session.commit()

    events = (
        db_session.query(AuditEvent)
        .filter(AuditEvent.entity_id == text.id)
        .all()
    )
    assert sorted(e.action for e in events) == ["TEXT_SUBMITTED", "TEXT_UPDATED", "TEXT_UPDATED"]
    assert all(e.actor_user_id == s0.id for e in events)


def test_new_rows_get_timezone_aware_timestamps(db_session):
    teacher = create_teacher(db_session)
    (s0,) = create_students(db_session, 1)
    a = create_assignment(db_session, created_by=teacher)

    t = Text(assignment_id=a.id, author_id=s0.id, content=TEXT_BODY)
    db_session.add(t)
    db_session.flush()

    assert t.created_at.tzinfo is not None
    assert t.updated_at.tzinfo is not None
