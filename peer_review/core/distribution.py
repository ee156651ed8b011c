"""
Review distribution: who reviews which text.

Three entry points share the same pool rules (only texts whose author is
still active, never a reviewer's own text):

- distribute_reviews: the initial randomized matching, one text per reviewer,
  balancing how many reviewers each text gets.
- find_additional_text / request_additional_review: one more text for a
  reviewer who finished their queue, preferring texts with the fewest
  non-rejected reviews.
- reconcile_deactivation: retires pending work that points at a deactivated
  author's text and routes those reviewers to a replacement.
"""
from __future__ import annotations

import random
import uuid
from collections import defaultdict
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from peer_review.core.audit import log_event
from peer_review.core.errors import InsufficientSubmissions, NotFound, PendingReviewsRemain, PhaseViolation
from peer_review.core.logging import get_logger
from peer_review.core.phase import can_review, phase_of, utcnow
from peer_review.models.assignment import Assignment
from peer_review.models.review import Review
from peer_review.models.review_assignment import ReviewAssignment
from peer_review.models.text import Text
from peer_review.models.user import User

logger = get_logger(__name__)

MIN_TEXTS_FOR_DISTRIBUTION = 2


@dataclass(frozen=True)
class DistributionResult:
    created: int
    # Reviewers left without a text because every candidate was their own or already paired
    unassigned_reviewer_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def fully_covered(self) -> bool:
        return not self.unassigned_reviewer_ids


def _active_author_texts(db: Session, assignment_id: uuid.UUID) -> list[Text]:
    return (
        db.query(Text)
        .join(User, User.id == Text.author_id)
        .filter(Text.assignment_id == assignment_id, User.is_active.is_(True))
        .order_by(Text.created_at, Text.id)
        .all()
    )


def _new_row(assignment_id: uuid.UUID, text_id: uuid.UUID, reviewer_id: uuid.UUID, now: datetime) -> dict:
    return {
        "id": uuid.uuid4(),
        "assignment_id": assignment_id,
        "text_id": text_id,
        "reviewer_id": reviewer_id,
        "completed": False,
        "is_active": True,
        "created_at": now,
    }


def _swap_into_starved_text(
    reviewer_id: uuid.UUID,
    eligible_ids: set[uuid.UUID],
    starved: list[Text],
    load_by_text: dict[uuid.UUID, int],
    new_rows: list[dict],
    paired_texts_by_reviewer: dict[uuid.UUID, set[uuid.UUID]],
    rng: random.Random,
) -> tuple[uuid.UUID, uuid.UUID] | None:
    """
    Move an earlier reviewer of this pass onto a starved text and hand their
    text to `reviewer_id`. Returns (starved_text_id, text_id_for_reviewer), or
    None when no earlier pick can be traded.
    """
    lowest = min(load_by_text[t.id] for t in starved)
    targets = [t for t in starved if load_by_text[t.id] == lowest]
    rng.shuffle(targets)

    rows = list(new_rows)
    rng.shuffle(rows)

    for target in targets:
        for row in rows:
            other = row["reviewer_id"]
            taken_id = row["text_id"]
            if target.author_id == other or target.id in paired_texts_by_reviewer[other]:
                continue
            if taken_id not in eligible_ids:
                continue

            row["text_id"] = target.id
            paired_texts_by_reviewer[other].discard(taken_id)
            paired_texts_by_reviewer[other].add(target.id)
            return target.id, taken_id

    return None


def _insert_skipping_duplicates(db: Session, rows: list[dict]) -> int:
    """
    Batch insert; rows colliding with an existing active pairing are dropped.
    Returns how many rows were actually written.
    """
    table = ReviewAssignment.__table__
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(table).values(rows).on_conflict_do_nothing().returning(table.c.id)
    elif dialect == "sqlite":
        stmt = sqlite_insert(table).values(rows).on_conflict_do_nothing().returning(table.c.id)
    else:
        return db.execute(insert(table).values(rows)).rowcount
    return len(db.execute(stmt).all())


def distribute_reviews(
    db: Session,
    assignment_id: uuid.UUID,
    *,
    actor: User | None = None,
    rng: random.Random | None = None,
) -> DistributionResult:
    """
    Give every author of a submitted text one other text to review.

    Reviewers are visited in a uniformly shuffled order (random.shuffle is a
    Fisher-Yates shuffle). Each takes the eligible text with the lowest
    current load, ties broken at random, and the load is bumped at once so
    later reviewers in the same pass see it. Existing active assignments seed
    the loads and anyone already holding one is skipped, so running this again
    without new submissions creates nothing.

    When the only less-loaded texts are ones the reviewer may not take (their
    own, in practice), an earlier pick from this pass is traded so the
    least-loaded text still gets the reviewer. On a fresh run the per-text
    loads therefore end within 1 of each other. Seeded with uneven existing
    loads it is still a greedy pass, not a global optimum.
    """
    rng = rng or random.Random()

    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")

    texts = _active_author_texts(db, assignment_id)
    if len(texts) < MIN_TEXTS_FOR_DISTRIBUTION:
        raise InsufficientSubmissions()

    existing = (
        db.query(ReviewAssignment.text_id, ReviewAssignment.reviewer_id, ReviewAssignment.is_active)
        .filter(ReviewAssignment.assignment_id == assignment_id)
        .all()
    )

    load_by_text: dict[uuid.UUID, int] = defaultdict(int)
    paired_texts_by_reviewer: dict[uuid.UUID, set[uuid.UUID]] = defaultdict(set)
    reviewers_with_active: set[uuid.UUID] = set()
    for text_id, reviewer_id, is_active in existing:
        # inactive pairings still block a repeat within this run
        paired_texts_by_reviewer[reviewer_id].add(text_id)
        if is_active:
            load_by_text[text_id] += 1
            reviewers_with_active.add(reviewer_id)

    reviewers = [t.author_id for t in texts]
    rng.shuffle(reviewers)

    now = utcnow()
    new_rows: list[dict] = []
    unassigned: list[uuid.UUID] = []

    for reviewer_id in reviewers:
        if reviewer_id in reviewers_with_active:
            continue

        already_paired = paired_texts_by_reviewer[reviewer_id]
        eligible = [
            t for t in texts
            if t.author_id != reviewer_id and t.id not in already_paired
        ]
        if not eligible:
            unassigned.append(reviewer_id)
            continue

        min_load = min(load_by_text[t.id] for t in eligible)

        # Texts below that load are ones this reviewer may not take (usually their own).
        # Taking a busier text would widen the spread, so trade with an earlier reviewer instead.
        starved = [t for t in texts if load_by_text[t.id] < min_load]
        if starved:
            swapped = _swap_into_starved_text(
                reviewer_id, {t.id for t in eligible}, starved, load_by_text,
                new_rows, paired_texts_by_reviewer, rng,
            )
            if swapped is not None:
                starved_id, taken_id = swapped
                new_rows.append(_new_row(assignment_id, taken_id, reviewer_id, now))
                already_paired.add(taken_id)
                load_by_text[starved_id] += 1
                continue

        candidates = [t for t in eligible if load_by_text[t.id] == min_load]
        chosen = rng.choice(candidates)

        new_rows.append(_new_row(assignment_id, chosen.id, reviewer_id, now))
        already_paired.add(chosen.id)
        load_by_text[chosen.id] += 1

    # a concurrent run may already have written some of these pairings
    created = _insert_skipping_duplicates(db, new_rows) if new_rows else 0
    if created < len(new_rows):
        logger.info(
            "Distribution of assignment %s skipped %d pairing(s) that already exist",
            assignment_id, len(new_rows) - created,
        )

    assignment.distribution_done = True
    db.flush()

    log_event(
        db=db,
        actor=actor,
        action="REVIEWS_DISTRIBUTED",
        entity_type="assignment",
        entity_id=assignment.id,
        metadata={
            "texts": len(texts),
            "created": created,
            "unassigned_reviewer_ids": unassigned,
        },
    )

    logger.info(
        "Distributed assignment %s: %d texts, %d new review assignments",
        assignment_id, len(texts), created,
    )
    if unassigned:
        logger.warning(
            "Distribution of assignment %s left %d reviewer(s) without a text",
            assignment_id, len(unassigned),
        )

    return DistributionResult(created=created, unassigned_reviewer_ids=unassigned)


def find_additional_text(
    db: Session,
    assignment_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    *,
    rng: random.Random | None = None,
    exclude_author_ids: Collection[uuid.UUID] = (),
) -> Text | None:
    """
    Pick the least-reviewed text this reviewer may take on next.

    Only non-rejected reviews count towards a text's load. Returns None when
    nothing is left to review.
    """
    rng = rng or random.Random()

    held_text_ids = select(ReviewAssignment.text_id).where(
        ReviewAssignment.assignment_id == assignment_id,
        ReviewAssignment.reviewer_id == reviewer_id,
        ReviewAssignment.is_active.is_(True),
    )

    q = (
        db.query(Text)
        .join(User, User.id == Text.author_id)
        .filter(
            Text.assignment_id == assignment_id,
            Text.author_id != reviewer_id,
            User.is_active.is_(True),
            Text.id.not_in(held_text_ids),
        )
    )
    if exclude_author_ids:
        q = q.filter(Text.author_id.not_in(list(exclude_author_ids)))

    texts = q.order_by(Text.created_at, Text.id).all()
    if not texts:
        return None

    review_counts: dict[uuid.UUID, int] = dict(
        db.query(Review.text_id, func.count(Review.id))
        .filter(Review.text_id.in_([t.id for t in texts]), Review.rejected_at.is_(None))
        .group_by(Review.text_id)
        .all()
    )

    min_reviews = min(review_counts.get(t.id, 0) for t in texts)
    candidates = [t for t in texts if review_counts.get(t.id, 0) == min_reviews]
    return rng.choice(candidates)


def assign_text(
    db: Session,
    assignment_id: uuid.UUID,
    text_id: uuid.UUID,
    reviewer_id: uuid.UUID,
) -> ReviewAssignment:
    ra = ReviewAssignment(
        assignment_id=assignment_id,
        text_id=text_id,
        reviewer_id=reviewer_id,
        completed=False,
        is_active=True,
    )
    db.add(ra)
    db.flush()
    return ra


def request_additional_review(
    db: Session,
    assignment: Assignment,
    reviewer: User,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> ReviewAssignment | None:
    """Voluntary "request more": only in the review phase and with an empty queue."""
    if not can_review(phase_of(assignment, now)):
        raise PhaseViolation("The review period is not active")

    incomplete = (
        db.query(ReviewAssignment)
        .filter(
            ReviewAssignment.assignment_id == assignment.id,
            ReviewAssignment.reviewer_id == reviewer.id,
            ReviewAssignment.is_active.is_(True),
            ReviewAssignment.completed.is_(False),
        )
        .count()
    )
    if incomplete > 0:
        raise PendingReviewsRemain()

    text = find_additional_text(db, assignment.id, reviewer.id, rng=rng)
    if text is None:
        logger.info("No more texts for reviewer %s in assignment %s", reviewer.id, assignment.id)
        return None

    ra = assign_text(db, assignment.id, text.id, reviewer.id)

    log_event(
        db=db,
        actor=reviewer,
        action="ADDITIONAL_REVIEW_ASSIGNED",
        entity_type="review_assignment",
        entity_id=ra.id,
        metadata={"assignment_id": assignment.id, "text_id": text.id},
    )
    return ra


def reconcile_deactivation(
    db: Session,
    user_id: uuid.UUID,
    *,
    actor: User | None = None,
    rng: random.Random | None = None,
) -> int:
    """
    Retire pending review assignments on a deactivated author's texts.

    Active, incomplete assignments pointing at the user's texts are
    soft-deleted in one UPDATE, then each affected reviewer gets a replacement
    from find_additional_text when one exists. Completed assignments are left
    alone. Returns the number of replacements created.
    """
    affected = (
        db.query(ReviewAssignment)
        .join(Text, Text.id == ReviewAssignment.text_id)
        .filter(
            Text.author_id == user_id,
            ReviewAssignment.is_active.is_(True),
            ReviewAssignment.completed.is_(False),
        )
        .all()
    )
    if not affected:
        return 0

    (
        db.query(ReviewAssignment)
        .filter(ReviewAssignment.id.in_([a.id for a in affected]))
        .update({ReviewAssignment.is_active: False}, synchronize_session="fetch")
    )
    db.flush()

    reassigned = 0
    for old in affected:
        text = find_additional_text(
            db,
            old.assignment_id,
            old.reviewer_id,
            rng=rng,
            exclude_author_ids=(user_id,),
        )
        if text is None:
            logger.info(
                "No replacement text for reviewer %s in assignment %s",
                old.reviewer_id, old.assignment_id,
            )
            continue
        assign_text(db, old.assignment_id, text.id, old.reviewer_id)
        reassigned += 1

    log_event(
        db=db,
        actor=actor,
        action="REVIEWS_REASSIGNED",
        entity_type="user",
        entity_id=user_id,
        metadata={"deactivated": len(affected), "reassigned": reassigned},
    )
    logger.info(
        "Deactivation of user %s: %d pending review assignment(s) retired, %d reassigned",
        user_id, len(affected), reassigned,
    )
    return reassigned
