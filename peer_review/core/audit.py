import uuid
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.orm import Session

from peer_review.models.audit_event import AuditEvent
from peer_review.models.user import User


def log_event(
    *,
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    event = AuditEvent(
        actor_user_id=actor.id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        # ids and timestamps go into a JSON column
        event_metadata=to_jsonable_python(metadata) if metadata is not None else None,
    )
    db.add(event)
    return event
