"""Work order lifecycle services."""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, aliased, selectinload

from ekko.models.escrow import EscrowStatus
from ekko.models.notification import NotificationType
from ekko.models.project import BudgetType
from ekko.models.user import User
from ekko.models.work_order import WorkOrder, WorkOrderStatus
from ekko.services import escrow as escrow_service
from ekko.services import lifecycle, notifications
from ekko.services.access import (
    counterparty_id,
    get_work_order_for_update,
    require_creative,
    require_participant,
    unit_of_work,
)
from ekko.utils.audit import actor_from_user, log_audit
from ekko.utils.errors import conflict, not_found, unprocessable
from ekko.utils.money import to_decimal

logger = logging.getLogger(__name__)


def create_work_order(
    db: Session,
    *,
    project_id: int,
    client_id: int,
    creative_id: int,
    agreed_rate: Decimal,
    agreed_budget_type: BudgetType,
    escrow_total: Decimal,
    deadline: datetime | None,
    actor: str,
) -> WorkOrder:
    """Create a PENDING work order with its PENDING escrow. Caller commits."""

    if client_id == creative_id:
        raise unprocessable("SAME_PARTY", "Client and creative must be different users.")
    rate = to_decimal(agreed_rate)
    if rate < 0:
        raise unprocessable("NEGATIVE_RATE", "Agreed rate cannot be negative.")

    work_order = WorkOrder(
        project_id=project_id,
        client_id=client_id,
        creative_id=creative_id,
        agreed_rate=rate,
        agreed_budget_type=agreed_budget_type,
        status=WorkOrderStatus.PENDING,
        deadline=deadline,
    )
    db.add(work_order)
    escrow_service.create_escrow(db, work_order, escrow_total)
    db.flush()
    log_audit(
        db,
        actor=actor,
        action="WORK_ORDER_CREATED",
        entity="WorkOrder",
        entity_id=work_order.id,
        data={
            "project_id": project_id,
            "agreed_rate": str(rate),
            "escrow_total": str(to_decimal(escrow_total)),
        },
    )
    return work_order


def get_work_order(db: Session, work_order_id: int, user: User) -> WorkOrder:
    """Return the full aggregate if the caller is one of its parties."""

    stmt = (
        select(WorkOrder)
        .where(WorkOrder.id == work_order_id)
        .options(
            selectinload(WorkOrder.milestones),
            selectinload(WorkOrder.deliveries),
            selectinload(WorkOrder.escrow),
        )
    )
    work_order = db.scalars(stmt).first()
    if work_order is None:
        raise not_found("WORK_ORDER_NOT_FOUND", "Work order not found.")
    require_participant(work_order, user)
    return work_order


def list_my_work_orders(
    db: Session,
    user: User,
    *,
    status: WorkOrderStatus | None = None,
    cursor: int | None = None,
    limit: int = 10,
) -> tuple[list[WorkOrder], int | None]:
    """Work orders where the caller is client or creative, most recently changed first.

    The cursor is the id of the last item of the previous page.
    """

    stmt = (
        select(WorkOrder)
        .where(or_(WorkOrder.client_id == user.id, WorkOrder.creative_id == user.id))
        .options(selectinload(WorkOrder.escrow))
    )
    if status is not None:
        stmt = stmt.where(WorkOrder.status == status)
    if cursor is not None:
        anchor = aliased(WorkOrder)
        cursor_updated_at = select(anchor.updated_at).where(anchor.id == cursor).scalar_subquery()
        stmt = stmt.where(
            or_(
                WorkOrder.updated_at < cursor_updated_at,
                and_(WorkOrder.updated_at == cursor_updated_at, WorkOrder.id < cursor),
            )
        )
    stmt = stmt.order_by(WorkOrder.updated_at.desc(), WorkOrder.id.desc()).limit(limit + 1)
    items = list(db.scalars(stmt).all())
    next_cursor = None
    if len(items) > limit:
        items = items[:limit]
        next_cursor = items[-1].id
    return items, next_cursor


def start(db: Session, work_order_id: int, user: User) -> WorkOrder:
    """Creative begins work once the client has funded escrow."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_creative(work_order, user, "Only the creative can start work.")
        lifecycle.ensure_status(
            work_order, {WorkOrderStatus.PENDING}, "Only pending work orders can be started."
        )
        escrow = work_order.escrow
        if escrow is None or escrow.status != EscrowStatus.FUNDED:
            raise conflict(
                "ESCROW_NOT_FUNDED",
                "Escrow must be funded before starting work.",
                details={"escrow_status": escrow.status.value if escrow else None},
            )
        lifecycle.apply_transition(work_order, WorkOrderStatus.IN_PROGRESS)
        log_audit(
            db,
            actor=actor,
            action="WORK_ORDER_STARTED",
            entity="WorkOrder",
            entity_id=work_order.id,
            data={"status": work_order.status.value},
        )

    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.WORK_ORDER_UPDATE, user.id, work_order.client_id, work_order.id
            )
        ],
    )
    return work_order


def cancel(db: Session, work_order_id: int, user: User) -> WorkOrder:
    """Either party cancels; any unreleased escrow goes back to the client."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_participant(work_order, user)
        lifecycle.apply_transition(work_order, WorkOrderStatus.CANCELLED)
        refunded = None
        escrow = work_order.escrow
        if escrow is not None and escrow.status in escrow_service.RELEASABLE_STATES:
            refunded = escrow_service.refund(db, escrow, actor=actor)
        log_audit(
            db,
            actor=actor,
            action="WORK_ORDER_CANCELLED",
            entity="WorkOrder",
            entity_id=work_order.id,
            data={"refunded_amount": str(refunded) if refunded is not None else None},
        )

    events = [
        notifications.LifecycleEvent(
            NotificationType.WORK_ORDER_UPDATE, user.id, counterparty_id(work_order, user), work_order.id
        )
    ]
    if refunded is not None:
        events.append(
            notifications.LifecycleEvent(
                NotificationType.ESCROW_UPDATE, user.id, work_order.creative_id, work_order.id
            )
        )
    notifications.dispatch(db, events)
    return work_order


def dispute(db: Session, work_order_id: int, *, actor: str, actor_user_id: int | None = None) -> WorkOrder:
    """Escalation path: freezes the order until it is resolved out of band."""

    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        lifecycle.apply_transition(work_order, WorkOrderStatus.DISPUTED)
        log_audit(
            db,
            actor=actor,
            action="WORK_ORDER_DISPUTED",
            entity="WorkOrder",
            entity_id=work_order.id,
            data={"status": work_order.status.value},
        )

    logger.warning("Work order disputed", extra={"work_order_id": work_order.id, "actor": actor})
    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.WORK_ORDER_UPDATE, actor_user_id, recipient, work_order.id
            )
            for recipient in (work_order.client_id, work_order.creative_id)
        ],
    )
    return work_order


def complete(db: Session, work_order: WorkOrder, *, actor: str) -> Decimal:
    """Finish the order and release everything still held in escrow. Does not commit."""

    lifecycle.apply_transition(work_order, WorkOrderStatus.COMPLETED)
    released = Decimal("0.00")
    escrow = work_order.escrow
    # Per-milestone releases may already have paid out everything.
    if escrow is not None and escrow.status in escrow_service.RELEASABLE_STATES:
        released = escrow_service.release(db, escrow, actor=actor)
    log_audit(
        db,
        actor=actor,
        action="WORK_ORDER_COMPLETED",
        entity="WorkOrder",
        entity_id=work_order.id,
        data={"released_amount": str(released)},
    )
    return released


__all__ = [
    "cancel",
    "complete",
    "create_work_order",
    "dispute",
    "get_work_order",
    "list_my_work_orders",
    "start",
]
