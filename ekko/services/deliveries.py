"""Delivery submission and client review."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from ekko.config import get_settings
from ekko.models.delivery import Delivery, DeliveryStatus
from ekko.models.milestone import Milestone, MilestoneStatus
from ekko.models.notification import NotificationType
from ekko.models.user import User
from ekko.models.work_order import WorkOrder, WorkOrderStatus
from ekko.schemas.delivery import DeliveryCreate
from ekko.services import escrow as escrow_service
from ekko.services import lifecycle, notifications, work_orders
from ekko.services.access import (
    get_delivery_for_update,
    get_work_order_for_update,
    require_client,
    require_creative,
    touch,
    unit_of_work,
)
from ekko.services.completion import CompletionPolicy, get_completion_policy
from ekko.services.milestones import SUBMITTABLE_STATES
from ekko.utils.audit import actor_from_user, log_audit
from ekko.utils.errors import conflict, not_found, unprocessable
from ekko.utils.time import utcnow

logger = logging.getLogger(__name__)


def _milestone_of(db: Session, work_order: WorkOrder, milestone_id: int) -> Milestone:
    milestone = db.get(Milestone, milestone_id)
    if milestone is None or milestone.work_order_id != work_order.id:
        raise not_found("MILESTONE_NOT_FOUND", "Milestone not found on this work order.")
    return milestone


def _ensure_pending_review(delivery: Delivery) -> None:
    if delivery.status != DeliveryStatus.PENDING_REVIEW:
        raise conflict(
            "DELIVERY_ALREADY_REVIEWED",
            "Delivery has already been reviewed.",
            details={"status": delivery.status.value},
        )


def submit_delivery(db: Session, work_order_id: int, payload: DeliveryCreate, user: User) -> Delivery:
    """Creative submits work; the order moves to DELIVERED."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_creative(work_order, user, "Only the creative can submit deliveries.")
        lifecycle.ensure_status(
            work_order,
            lifecycle.DELIVERABLE_STATES,
            "Deliveries can only be submitted while work is in progress or in revision.",
        )

        milestone = None
        if payload.milestone_id is not None:
            milestone = _milestone_of(db, work_order, payload.milestone_id)
            if milestone.status == MilestoneStatus.APPROVED:
                raise conflict(
                    "MILESTONE_ALREADY_APPROVED",
                    "Milestone has already been approved.",
                    details={"milestone_id": milestone.id},
                )

        delivery = Delivery(
            work_order_id=work_order.id,
            milestone_id=milestone.id if milestone else None,
            message=payload.message,
            attachments=[str(url) for url in payload.attachments],
            status=DeliveryStatus.PENDING_REVIEW,
        )
        db.add(delivery)
        if milestone is not None and milestone.status in SUBMITTABLE_STATES:
            milestone.status = MilestoneStatus.DELIVERED
        lifecycle.apply_transition(work_order, WorkOrderStatus.DELIVERED)
        db.flush()
        log_audit(
            db,
            actor=actor,
            action="DELIVERY_SUBMITTED",
            entity="Delivery",
            entity_id=delivery.id,
            data={
                "work_order_id": work_order.id,
                "milestone_id": delivery.milestone_id,
                "attachments": delivery.attachments,
            },
        )

    notifications.dispatch(
        db,
        [notifications.LifecycleEvent(NotificationType.DELIVERY, user.id, work_order.client_id, work_order.id)],
    )
    return delivery


def approve_delivery(
    db: Session,
    delivery_id: int,
    user: User,
    completion_policy: CompletionPolicy | None = None,
) -> tuple[Delivery, WorkOrder]:
    """Client accepts a delivery; the completion policy decides whether the order is done."""

    policy = completion_policy or get_completion_policy()
    actor = actor_from_user(user)
    released: Decimal | None = None
    with unit_of_work(db):
        delivery, work_order = get_delivery_for_update(db, delivery_id)
        require_client(work_order, user, "Only the client can approve deliveries.")
        lifecycle.ensure_active(work_order)
        _ensure_pending_review(delivery)

        delivery.status = DeliveryStatus.APPROVED
        delivery.reviewed_at = utcnow()
        milestone = delivery.milestone
        if milestone is not None:
            milestone.status = MilestoneStatus.APPROVED

        if policy(work_order, delivery):
            released = work_orders.complete(db, work_order, actor=actor)
        else:
            lifecycle.apply_transition(work_order, WorkOrderStatus.IN_PROGRESS)
            escrow = work_order.escrow
            if (
                milestone is not None
                and get_settings().ESCROW_RELEASE_PER_MILESTONE
                and escrow is not None
                and escrow.status in escrow_service.RELEASABLE_STATES
            ):
                released = escrow_service.release(db, escrow, actor=actor, amount=milestone.amount)
        touch(work_order)
        log_audit(
            db,
            actor=actor,
            action="DELIVERY_APPROVED",
            entity="Delivery",
            entity_id=delivery.id,
            data={
                "work_order_id": work_order.id,
                "work_order_status": work_order.status.value,
                "released_amount": str(released) if released is not None else None,
            },
        )

    events = [
        notifications.LifecycleEvent(NotificationType.DELIVERY, user.id, work_order.creative_id, work_order.id)
    ]
    if released is not None:
        events.append(
            notifications.LifecycleEvent(
                NotificationType.ESCROW_UPDATE, user.id, work_order.creative_id, work_order.id
            )
        )
    notifications.dispatch(db, events)
    return delivery, work_order


def request_revision(db: Session, delivery_id: int, revision_note: str, user: User) -> Delivery:
    """Client sends a delivery back with a mandatory note."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        delivery, work_order = get_delivery_for_update(db, delivery_id)
        require_client(work_order, user, "Only the client can request revisions.")
        note = (revision_note or "").strip()
        if not note:
            raise unprocessable("REVISION_NOTE_REQUIRED", "A revision note is required.")
        lifecycle.ensure_active(work_order)
        _ensure_pending_review(delivery)

        delivery.status = DeliveryStatus.REVISION_REQUESTED
        delivery.revision_note = note
        delivery.reviewed_at = utcnow()
        if delivery.milestone is not None:
            delivery.milestone.status = MilestoneStatus.IN_REVISION
        lifecycle.apply_transition(work_order, WorkOrderStatus.IN_REVISION)
        log_audit(
            db,
            actor=actor,
            action="DELIVERY_REVISION_REQUESTED",
            entity="Delivery",
            entity_id=delivery.id,
            data={"work_order_id": work_order.id},
        )

    notifications.dispatch(
        db,
        [notifications.LifecycleEvent(NotificationType.DELIVERY, user.id, work_order.creative_id, work_order.id)],
    )
    return delivery


__all__ = ["approve_delivery", "request_revision", "submit_delivery"]
