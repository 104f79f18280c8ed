from sqlalchemy.orm import Session

from ..db import models


def record(
    db: Session,
    action: str,
    actor_type: models.ActorType,
    actor_id: int | None = None,
    payload: dict | None = None,
) -> models.AuditLog:
    """Add an audit entry to the current transaction; the caller commits."""
    entry = models.AuditLog(actor_type=actor_type, actor_id=actor_id, action=action, payload=payload)
    db.add(entry)
    return entry


def actor_for(user: models.User | None) -> tuple[models.ActorType, int | None]:
    if user is None:
        return models.ActorType.guest, None
    if user.role in models.STAFF_ROLES:
        return models.ActorType.staff, user.id
    return models.ActorType.customer, user.id
