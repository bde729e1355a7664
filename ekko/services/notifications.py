"""Notification dispatch and inbox queries."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ekko.models.notification import Notification, NotificationType
from ekko.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleEvent:
    """Something one party did that the other party should hear about."""

    event_type: NotificationType
    actor_id: int | None
    recipient_id: int
    work_order_id: int
    entity_type: str = "workorder"


def dispatch(db: Session, events: Iterable[LifecycleEvent]) -> list[Notification]:
    """Persist notifications for already-committed lifecycle events.

    Fire-and-forget: a storage failure is logged and rolled back, never
    propagated to the command that produced the events.
    """

    created = [
        Notification(
            type=event.event_type,
            user_id=event.recipient_id,
            actor_id=event.actor_id,
            entity_id=event.work_order_id,
            entity_type=event.entity_type,
            read=False,
        )
        for event in events
        if event.recipient_id != event.actor_id
    ]
    if not created:
        return []
    try:
        db.add_all(created)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to persist notifications",
            extra={"events": [n.type.value for n in created]},
        )
        return []
    return created


def list_notifications(
    db: Session, user: User, *, cursor: int | None, limit: int
) -> tuple[list[Notification], int | None]:
    stmt = select(Notification).where(Notification.user_id == user.id)
    if cursor is not None:
        stmt = stmt.where(Notification.id < cursor)
    stmt = stmt.order_by(Notification.id.desc()).limit(limit + 1)
    items = list(db.scalars(stmt).all())
    next_cursor = None
    if len(items) > limit:
        items = items[:limit]
        next_cursor = items[-1].id
    return items, next_cursor


def unread_count(db: Session, user: User) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user.id, Notification.read.is_(False)
    )
    return int(db.scalar(stmt) or 0)


def mark_read(db: Session, user: User, notification_id: int) -> None:
    db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user.id)
        .values(read=True)
    )
    db.commit()


def mark_all_read(db: Session, user: User) -> None:
    db.execute(
        update(Notification)
        .where(Notification.user_id == user.id, Notification.read.is_(False))
        .values(read=True)
    )
    db.commit()


__all__ = [
    "LifecycleEvent",
    "dispatch",
    "list_notifications",
    "mark_all_read",
    "mark_read",
    "unread_count",
]
