"""Loading work orders under lock and resolving the caller's role on them."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ekko.models.delivery import Delivery
from ekko.models.milestone import Milestone
from ekko.models.user import User
from ekko.models.work_order import WorkOrder
from ekko.utils.errors import conflict, forbidden, not_found
from ekko.utils.time import utcnow

logger = logging.getLogger(__name__)


class Party(str, Enum):
    CLIENT = "client"
    CREATIVE = "creative"


def get_work_order_for_update(db: Session, work_order_id: int) -> WorkOrder:
    """Load a work order with a row lock for the rest of the transaction."""

    stmt = (
        select(WorkOrder)
        .where(WorkOrder.id == work_order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    work_order = db.scalars(stmt).first()
    if work_order is None:
        raise not_found("WORK_ORDER_NOT_FOUND", "Work order not found.")
    return work_order


def _reload(db: Session, model, row_id: int):
    stmt = select(model).where(model.id == row_id).execution_options(populate_existing=True)
    return db.scalars(stmt).one()


def get_delivery_for_update(db: Session, delivery_id: int) -> tuple[Delivery, WorkOrder]:
    """Lock the owning work order first, then read the delivery under that lock."""

    work_order_id = db.scalar(select(Delivery.work_order_id).where(Delivery.id == delivery_id))
    if work_order_id is None:
        raise not_found("DELIVERY_NOT_FOUND", "Delivery not found.")
    work_order = get_work_order_for_update(db, work_order_id)
    return _reload(db, Delivery, delivery_id), work_order


def get_milestone_for_update(db: Session, milestone_id: int) -> tuple[Milestone, WorkOrder]:
    work_order_id = db.scalar(select(Milestone.work_order_id).where(Milestone.id == milestone_id))
    if work_order_id is None:
        raise not_found("MILESTONE_NOT_FOUND", "Milestone not found.")
    work_order = get_work_order_for_update(db, work_order_id)
    return _reload(db, Milestone, milestone_id), work_order


def party_of(work_order: WorkOrder, user: User) -> Party | None:
    if user.id == work_order.client_id:
        return Party.CLIENT
    if user.id == work_order.creative_id:
        return Party.CREATIVE
    return None


def require_participant(work_order: WorkOrder, user: User) -> Party:
    party = party_of(work_order, user)
    if party is None:
        logger.warning(
            "Non-participant attempted work order access",
            extra={"work_order_id": work_order.id, "user_id": user.id},
        )
        raise forbidden("NOT_A_PARTICIPANT", "You are not a participant in this work order.")
    return party


def require_client(work_order: WorkOrder, user: User, message: str) -> None:
    require_participant(work_order, user)
    if user.id != work_order.client_id:
        raise forbidden("CLIENT_ONLY", message)


def require_creative(work_order: WorkOrder, user: User, message: str) -> None:
    require_participant(work_order, user)
    if user.id != work_order.creative_id:
        raise forbidden("CREATIVE_ONLY", message)


def counterparty_id(work_order: WorkOrder, user: User) -> int:
    if user.id == work_order.client_id:
        return work_order.creative_id
    return work_order.client_id


def touch(work_order: WorkOrder) -> None:
    """Mark the aggregate dirty so the flush bumps its version."""

    work_order.updated_at = utcnow()


@contextmanager
def unit_of_work(db: Session) -> Iterator[None]:
    """Commit on success; roll back everything on any failure.

    A concurrent writer that bumped the work order version first makes the
    flush raise ``StaleDataError``; that is surfaced as a 409.
    """

    try:
        yield
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.info("Concurrent work order update rejected", extra={"error": str(exc)})
        raise conflict(
            "CONCURRENT_UPDATE",
            "The work order was modified by another request. Reload and try again.",
        ) from exc
    except Exception:
        db.rollback()
        raise


__all__ = [
    "Party",
    "counterparty_id",
    "get_delivery_for_update",
    "get_milestone_for_update",
    "get_work_order_for_update",
    "party_of",
    "require_client",
    "require_creative",
    "require_participant",
    "touch",
    "unit_of_work",
]
