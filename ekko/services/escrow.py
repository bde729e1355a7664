"""Escrow ledger services."""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from ekko.models.escrow import Escrow, EscrowStatus
from ekko.models.notification import NotificationType
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.services import lifecycle, notifications
from ekko.services.access import get_work_order_for_update, require_client, touch, unit_of_work
from ekko.utils.audit import actor_from_user, log_audit
from ekko.utils.errors import conflict
from ekko.utils.money import to_decimal
from ekko.utils.time import utcnow

logger = logging.getLogger(__name__)

RELEASABLE_STATES = (EscrowStatus.FUNDED, EscrowStatus.PARTIALLY_RELEASED)


def create_escrow(db: Session, work_order: WorkOrder, total_amount: Decimal | int | str) -> Escrow:
    """Attach a PENDING ledger to a freshly created work order (caller commits)."""

    escrow = Escrow(
        work_order=work_order,
        total_amount=to_decimal(total_amount),
        funded_amount=Decimal("0.00"),
        released_amount=Decimal("0.00"),
        refunded_amount=Decimal("0.00"),
        status=EscrowStatus.PENDING,
    )
    db.add(escrow)
    return escrow


def check_ledger(escrow: Escrow) -> None:
    """Raise if the escrow amounts or status are inconsistent.

    Called after every mutation and before flush, so a bad write aborts the
    whole unit of work.
    """

    total = to_decimal(escrow.total_amount)
    funded = to_decimal(escrow.funded_amount)
    released = to_decimal(escrow.released_amount)
    refunded = to_decimal(escrow.refunded_amount)

    problems: list[str] = []
    if min(total, funded, released, refunded) < 0:
        problems.append("negative amount")
    if funded > total:
        problems.append("funded exceeds total")
    if released > funded:
        problems.append("released exceeds funded")
    if released + refunded > funded:
        problems.append("released plus refunded exceeds funded")

    status = escrow.status
    if status == EscrowStatus.PENDING and funded != 0:
        problems.append("pending escrow holds funds")
    if status == EscrowStatus.FUNDED and (released != 0 or refunded != 0):
        problems.append("funded escrow cannot have paid anything out")
    if status == EscrowStatus.PARTIALLY_RELEASED and not (0 < released < funded):
        problems.append("partial release must be strictly between zero and funded")
    if status == EscrowStatus.RELEASED and released != funded:
        problems.append("released escrow must have released everything funded")
    if status == EscrowStatus.REFUNDED and released + refunded != funded:
        problems.append("refunded escrow must account for all funds")

    if problems:
        logger.error(
            "Escrow invariant violated",
            extra={"escrow_id": escrow.id, "problems": problems, "status": status.value},
        )
        raise conflict(
            "ESCROW_INVARIANT_VIOLATION",
            "Escrow ledger would become inconsistent.",
            details={"problems": problems},
        )


def unreleased_amount(escrow: Escrow) -> Decimal:
    return to_decimal(escrow.funded_amount) - to_decimal(escrow.released_amount) - to_decimal(escrow.refunded_amount)


def fund_escrow(db: Session, work_order_id: int, user: User) -> Escrow:
    """Client commits the full escrow total in one step."""

    actor = actor_from_user(user)
    with unit_of_work(db):
        work_order = get_work_order_for_update(db, work_order_id)
        require_client(work_order, user, "Only the client can fund escrow.")
        lifecycle.ensure_active(work_order)
        escrow = work_order.escrow
        if escrow is None:
            raise conflict("ESCROW_MISSING", "No escrow found for this work order.")
        if escrow.status != EscrowStatus.PENDING:
            raise conflict(
                "ESCROW_ALREADY_FUNDED",
                "Escrow already funded.",
                details={"status": escrow.status.value},
            )

        escrow.funded_amount = to_decimal(escrow.total_amount)
        escrow.status = EscrowStatus.FUNDED
        escrow.funded_at = utcnow()
        check_ledger(escrow)
        touch(work_order)
        log_audit(
            db,
            actor=actor,
            action="ESCROW_FUNDED",
            entity="Escrow",
            entity_id=escrow.id,
            data={"work_order_id": work_order.id, "funded_amount": str(escrow.funded_amount)},
        )

    logger.info("Escrow funded", extra={"work_order_id": work_order.id, "escrow_id": escrow.id})
    notifications.dispatch(
        db,
        [
            notifications.LifecycleEvent(
                NotificationType.ESCROW_UPDATE, user.id, work_order.creative_id, work_order.id
            )
        ],
    )
    db.refresh(escrow)
    return escrow


def release(db: Session, escrow: Escrow, *, actor: str, amount: Decimal | None = None) -> Decimal:
    """Move funds to the creative; defaults to everything still held.

    Runs inside the caller's unit of work and does not commit.
    """

    if escrow.status not in RELEASABLE_STATES:
        raise conflict(
            "ESCROW_NOT_RELEASABLE",
            "Escrow has no funds to release.",
            details={"status": escrow.status.value},
        )
    available = unreleased_amount(escrow)
    to_release = available if amount is None else min(to_decimal(amount), available)
    if to_release < 0:
        raise conflict("ESCROW_INVALID_RELEASE", "Release amount cannot be negative.")

    escrow.released_amount = to_decimal(escrow.released_amount) + to_release
    if escrow.released_amount == to_decimal(escrow.funded_amount):
        escrow.status = EscrowStatus.RELEASED
        escrow.released_at = utcnow()
    elif escrow.released_amount > 0:
        escrow.status = EscrowStatus.PARTIALLY_RELEASED
    check_ledger(escrow)
    log_audit(
        db,
        actor=actor,
        action="ESCROW_RELEASED" if escrow.status == EscrowStatus.RELEASED else "ESCROW_PARTIALLY_RELEASED",
        entity="Escrow",
        entity_id=escrow.id,
        data={
            "work_order_id": escrow.work_order_id,
            "amount": str(to_release),
            "released_amount": str(escrow.released_amount),
        },
    )
    logger.info(
        "Escrow released",
        extra={"escrow_id": escrow.id, "amount": str(to_release), "status": escrow.status.value},
    )
    return to_release


def refund(db: Session, escrow: Escrow, *, actor: str) -> Decimal:
    """Return whatever has not been released to the client. Does not commit."""

    if escrow.status not in RELEASABLE_STATES:
        raise conflict(
            "ESCROW_NOT_REFUNDABLE",
            "Escrow has no funds to refund.",
            details={"status": escrow.status.value},
        )
    to_refund = unreleased_amount(escrow)
    escrow.refunded_amount = to_decimal(escrow.refunded_amount) + to_refund
    escrow.status = EscrowStatus.REFUNDED
    escrow.refunded_at = utcnow()
    check_ledger(escrow)
    log_audit(
        db,
        actor=actor,
        action="ESCROW_REFUNDED",
        entity="Escrow",
        entity_id=escrow.id,
        data={"work_order_id": escrow.work_order_id, "amount": str(to_refund)},
    )
    logger.info("Escrow refunded", extra={"escrow_id": escrow.id, "amount": str(to_refund)})
    return to_refund


__all__ = [
    "RELEASABLE_STATES",
    "check_ledger",
    "create_escrow",
    "fund_escrow",
    "refund",
    "release",
    "unreleased_amount",
]
