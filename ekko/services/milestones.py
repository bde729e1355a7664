"""Milestone services scoped to one work order."""
import logging
from collections import Counter

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ekko.models.milestone import Milestone, MilestoneStatus
from ekko.models.notification import NotificationType
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.schemas.milestone import MilestoneCreate, MilestoneUpdate
from ekko.services import lifecycle, notifications
from ekko.services.access import (
    counterparty_id,
    get_milestone_for_update,
    get_work_order_for_update,
    require_participant,
    touch,
    unit_of_work,
)
from ekko.utils.audit import actor_from_user, log_audit
from ekko.utils.errors import unprocessable
from ekko.utils.money import to_decimal

logger = logging.getLogger(__name__)

# Statuses a milestone may leave when work is submitted against it.
SUBMITTABLE_STATES = (
    MilestoneStatus.PENDING,
    MilestoneStatus.IN_PROGRESS,
    MilestoneStatus.IN_REVISION,
)


def _ensure_editable(work_order: WorkOrder) -> None:
    lifecycle.ensure_active(work_order)


def _next_order(db: Session, work_order_id: int) -> int:
    current = db.scalar(select(func.max(Milestone.order)).where(Milestone.work_order_id == work_order_id))
    return 0 if current is None else current + 1


def list_milestones(db: Session, work_order_id: int) -> list[Milestone]:
    stmt = select(Milestone).where(Milestone.work_order_id == work_order_id).order_by(Milestone.order.asc())
    return list(db.scalars(stmt).all())


def add_milestone(db: Session, work_order_id: int, payload: MilestoneCreate, user: User) -> Milestone:
    """Append a PENDING milestone at the end of the sequence."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_participant(work_order, user)
        _ensure_editable(work_order)
        amount = to_decimal(payload.amount)
        if amount < 0:
            raise unprocessable("NEGATIVE_AMOUNT", "Milestone amount cannot be negative.")

        milestone = Milestone(
            work_order_id=work_order.id,
            title=payload.title,
            description=payload.description,
            amount=amount,
            due_date=payload.due_date,
            status=MilestoneStatus.PENDING,
            order=_next_order(db, work_order.id),
        )
        db.add(milestone)
        touch(work_order)
        db.flush()
        log_audit(
            db,
            actor=actor,
            action="MILESTONE_ADDED",
            entity="Milestone",
            entity_id=milestone.id,
            data={"work_order_id": work_order.id, "amount": str(amount), "order": milestone.order},
        )

    logger.info("Milestone added", extra={"work_order_id": work_order.id, "milestone_id": milestone.id})
    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.MILESTONE_UPDATE, user.id, counterparty_id(work_order, user), work_order.id
            )
        ],
    )
    return milestone


def update_milestone(db: Session, milestone_id: int, payload: MilestoneUpdate, user: User) -> Milestone:
    """Edit descriptive fields; status and order are never touched here."""

    actor = actor_from_user(user)
    changes = payload.model_dump(exclude_unset=True)
    with unit_of_work(db):
        milestone, work_order = get_milestone_for_update(db, milestone_id)
        require_participant(work_order, user)
        _ensure_editable(work_order)
        if "title" in changes and not changes["title"]:
            raise unprocessable("TITLE_REQUIRED", "Milestone title cannot be empty.")
        if "amount" in changes:
            if changes["amount"] is None:
                raise unprocessable("AMOUNT_REQUIRED", "Milestone amount cannot be cleared.")
            changes["amount"] = to_decimal(changes["amount"])
        for field, value in changes.items():
            setattr(milestone, field, value)
        touch(work_order)
        log_audit(
            db,
            actor=actor,
            action="MILESTONE_UPDATED",
            entity="Milestone",
            entity_id=milestone.id,
            data={"fields": sorted(changes)},
        )
    return milestone


def reorder_milestones(db: Session, work_order_id: int, ordered_ids: list[int], user: User) -> list[Milestone]:
    """Rewrite ``order`` to match ``ordered_ids``, which must be an exact permutation."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_participant(work_order, user)
        _ensure_editable(work_order)

        milestones = list_milestones(db, work_order.id)
        by_id = {milestone.id: milestone for milestone in milestones}
        duplicates = sorted(mid for mid, count in Counter(ordered_ids).items() if count > 1)
        foreign = sorted(set(ordered_ids) - set(by_id))
        missing = sorted(set(by_id) - set(ordered_ids))
        if duplicates or foreign or missing:
            raise unprocessable(
                "INVALID_MILESTONE_ORDER",
                "Milestone ids must be a permutation of this work order's milestones.",
                details={"duplicates": duplicates, "foreign": foreign, "missing": missing},
            )

        # Two passes so the (work_order_id, order) unique constraint never sees a collision.
        for position, milestone_id in enumerate(ordered_ids):
            by_id[milestone_id].order = -(position + 1)
        db.flush()
        for position, milestone_id in enumerate(ordered_ids):
            by_id[milestone_id].order = position
        touch(work_order)
        log_audit(
            db,
            actor=actor,
            action="MILESTONES_REORDERED",
            entity="WorkOrder",
            entity_id=work_order.id,
            data={"milestone_ids": list(ordered_ids)},
        )

    return [by_id[milestone_id] for milestone_id in ordered_ids]


__all__ = [
    "SUBMITTABLE_STATES",
    "add_milestone",
    "list_milestones",
    "reorder_milestones",
    "update_milestone",
]
