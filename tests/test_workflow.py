"""Whole-class run through the HTTP API: submit, distribute, review, moderate."""
from fastapi.testclient import TestClient

from peer_review.main import app
from tests.helpers import TEXT_BODY, create_assignment, create_students, create_teacher, headers


def queue(client, assignment_id, user):
    r = client.get(f"/assignments/{assignment_id}/my-review-assignments", headers=headers(user))
    assert r.status_code == 200, r.text
    return r.json()


def test_classroom_round(db_session):
    teacher = create_teacher(db_session)
    students = create_students(db_session, 4)
    a = create_assignment(db_session, created_by=teacher)
    client = TestClient(app)

    text_ids = {}
    for s in students:
        r = client.post(f"/assignments/{a.id}/my-text", headers=headers(s), json={"content": TEXT_BODY})
        assert r.status_code == 201
        text_ids[s.id] = r.json()["id"]
    author_of = {tid: uid for uid, tid in text_ids.items()}

    r = client.post(f"/assignments/{a.id}/distribute", headers=headers(teacher))
    assert r.json()["assignments_created"] == 4

    r = client.post(f"/assignments/{a.id}/phase", headers=headers(teacher), json={"phase": "review"})
    assert r.json()["phase"] == "review"

    # every student holds exactly one other student's text, every text is held once
    first_items = {s.id: queue(client, a.id, s) for s in students}
    assert all(len(items) == 1 for items in first_items.values())
    held = [items[0]["text_id"] for items in first_items.values()]
    assert sorted(held) == sorted(text_ids.values())
    assert all(author_of[items[0]["text_id"]] != sid for sid, items in first_items.items())

    s0 = students[0]
    first = first_items[s0.id][0]
    r = client.post(
        "/reviews",
        headers=headers(s0),
        json={"review_assignment_id": first["id"], "content": "Good structure, weak evidence in part two."},
    )
    assert r.status_code == 201
    review_id = r.json()["id"]

    r = client.post(f"/assignments/{a.id}/request-more", headers=headers(s0))
    assert r.status_code == 201
    extra_text = r.json()["text_id"]
    assert extra_text not in {first["text_id"], text_ids[s0.id]}

    # pick a pending reviewer whose text's author is not s0 and withdraw that author
    reviewer = next(
        s for s in students[1:]
        if author_of[first_items[s.id][0]["text_id"]] != s0.id
    )
    gone_id = author_of[first_items[reviewer.id][0]["text_id"]]
    r = client.patch(f"/users/{gone_id}/deactivate", headers=headers(teacher))
    assert r.status_code == 200
    assert r.json()["reassigned"] >= 1

    for item in queue(client, a.id, reviewer):
        assert author_of[item["text_id"]] != gone_id

    r = client.patch(f"/reviews/{review_id}/reject", headers=headers(teacher))
    assert r.status_code == 200

    reopened = next(i for i in queue(client, a.id, s0) if i["id"] == first["id"])
    assert reopened["completed"] is False
    assert reopened["review"] is None

    r = client.post(
        "/reviews",
        headers=headers(s0),
        json={"review_assignment_id": first["id"], "content": "Rewritten: the evidence in part two needs sources."},
    )
    assert r.status_code == 201
