import random

from fastapi.testclient import TestClient

from peer_review.core.distribution import reconcile_deactivation
from peer_review.core.phase import Phase
from peer_review.main import app
from peer_review.models.audit_event import AuditEvent
from peer_review.models.review_assignment import ReviewAssignment
from tests.helpers import (
    create_assignment,
    create_review,
    create_review_assignment,
    create_students,
    create_teacher,
    create_text,
    headers,
)


def setup_review_phase(db, n_students):
    teacher = create_teacher(db)
    students = create_students(db, n_students)
    a = create_assignment(db, created_by=teacher, phase=Phase.REVIEW, distribution_done=True)
    texts = [create_text(db, a, s) for s in students]
    return teacher, students, a, texts


def test_pending_work_on_deactivated_text_is_rerouted(db_session):
    _, students, a, texts = setup_review_phase(db_session, 4)
    s0, s1, s2, s3 = students
    pending = create_review_assignment(db_session, a, texts[3], s0)
    done = create_review_assignment(db_session, a, texts[3], s1)
    create_review(db_session, done)
    unrelated = create_review_assignment(db_session, a, texts[0], s2)

    s3.is_active = False
    db_session.commit()

    reassigned = reconcile_deactivation(db_session, s3.id, rng=random.Random(11))
    db_session.commit()

    assert reassigned == 1

    db_session.refresh(pending)
    db_session.refresh(done)
    db_session.refresh(unrelated)
    assert pending.is_active is False
    assert done.is_active is True and done.completed is True
    assert unrelated.is_active is True

    replacement = (
        db_session.query(ReviewAssignment)
        .filter(ReviewAssignment.reviewer_id == s0.id, ReviewAssignment.is_active.is_(True))
        .one()
    )
    assert replacement.text_id in {texts[1].id, texts[2].id}
    assert replacement.completed is False


def test_replacements_never_exceed_retired_assignments(db_session):
    _, students, a, texts = setup_review_phase(db_session, 3)
    s0, s1, s2 = students
    create_review_assignment(db_session, a, texts[2], s0)
    create_review_assignment(db_session, a, texts[2], s1)
    # s0 already holds the only other text, so only s1 can be rerouted
    create_review_assignment(db_session, a, texts[1], s0)

    s2.is_active = False
    db_session.commit()

    reassigned = reconcile_deactivation(db_session, s2.id)
    db_session.commit()

    assert reassigned == 1
    retired = db_session.query(ReviewAssignment).filter(ReviewAssignment.is_active.is_(False)).count()
    assert retired == 2


def test_no_replacement_available(db_session):
    _, students, a, texts = setup_review_phase(db_session, 2)
    ra = create_review_assignment(db_session, a, texts[1], students[0])
    students[1].is_active = False
    db_session.commit()

    assert reconcile_deactivation(db_session, students[1].id) == 0
    db_session.commit()

    db_session.refresh(ra)
    assert ra.is_active is False


def test_nothing_pending_is_a_no_op(db_session):
    _, students, _, _ = setup_review_phase(db_session, 3)

    assert reconcile_deactivation(db_session, students[0].id) == 0
    assert db_session.query(AuditEvent).filter(AuditEvent.action == "REVIEWS_REASSIGNED").count() == 0


def test_deactivate_endpoint(db_session):
    teacher, students, a, texts = setup_review_phase(db_session, 3)
    create_review_assignment(db_session, a, texts[2], students[0])

    client = TestClient(app)
    r = client.patch(f"/users/{students[2].id}/deactivate", headers=headers(teacher))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["is_active"] is False
    assert body["reassigned"] == 1

    actions = {e.action for e in db_session.query(AuditEvent).all()}
    assert {"USER_DEACTIVATED", "REVIEWS_REASSIGNED"} <= actions

    # deactivated users can no longer act
    me = client.get(f"/assignments/{a.id}/my-text", headers=headers(students[2]))
    assert me.status_code == 401


def test_deactivate_endpoint_refuses_admins(db_session):
    teacher, _, _, _ = setup_review_phase(db_session, 2)

    client = TestClient(app)
    r = client.patch(f"/users/{teacher.id}/deactivate", headers=headers(teacher))
    assert r.status_code == 400


def test_deactivate_endpoint_teacher_only(db_session):
    _, students, _, _ = setup_review_phase(db_session, 2)

    client = TestClient(app)
    r = client.patch(f"/users/{students[1].id}/deactivate", headers=headers(students[0]))
    assert r.status_code == 403
