"""Work order state machine.

The allowed transitions are data; every status change in the service layer
goes through :func:`apply_transition`, which rejects anything not listed and
stamps the lifecycle timestamps.
"""
from __future__ import annotations

import logging
from typing import Mapping

from ekko.models.work_order import WorkOrder, WorkOrderStatus as S
from ekko.utils.errors import conflict
from ekko.utils.time import utcnow

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({S.COMPLETED, S.CANCELLED})

# DISPUTED is resolved out of band; nothing in this service moves an order out of it.
LOCKED_STATES = TERMINAL_STATES | {S.DISPUTED}

ALLOWED_TRANSITIONS: Mapping[S, frozenset[S]] = {
    S.PENDING: frozenset({S.ACCEPTED, S.IN_PROGRESS, S.CANCELLED, S.DISPUTED}),
    S.ACCEPTED: frozenset({S.IN_PROGRESS, S.CANCELLED, S.DISPUTED}),
    S.IN_PROGRESS: frozenset({S.DELIVERED, S.CANCELLED, S.DISPUTED}),
    S.DELIVERED: frozenset({S.IN_PROGRESS, S.IN_REVISION, S.COMPLETED, S.CANCELLED, S.DISPUTED}),
    S.IN_REVISION: frozenset({S.DELIVERED, S.CANCELLED, S.DISPUTED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.DISPUTED: frozenset(),
}

if set(ALLOWED_TRANSITIONS) != set(S):  # pragma: no cover
    raise RuntimeError("ALLOWED_TRANSITIONS must list every WorkOrderStatus")

# States from which the creative may submit work.
DELIVERABLE_STATES = frozenset({S.IN_PROGRESS, S.IN_REVISION})


def can_transition(current: S, target: S) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_active(work_order: WorkOrder) -> None:
    """Reject any action on finalized or disputed work orders."""

    if work_order.status == S.DISPUTED:
        raise conflict("WORK_ORDER_DISPUTED", "Work order is under dispute.")
    if work_order.status in TERMINAL_STATES:
        raise conflict(
            "WORK_ORDER_FINALIZED",
            "Work order already finalized.",
            details={"status": work_order.status.value},
        )


def ensure_status(work_order: WorkOrder, allowed: frozenset[S] | set[S], message: str) -> None:
    ensure_active(work_order)
    if work_order.status not in allowed:
        raise conflict(
            "INVALID_WORK_ORDER_STATUS",
            message,
            details={"status": work_order.status.value, "allowed": sorted(s.value for s in allowed)},
        )


def ensure_transition(work_order: WorkOrder, target: S) -> None:
    ensure_active(work_order)
    if not can_transition(work_order.status, target):
        raise conflict(
            "INVALID_TRANSITION",
            f"Cannot move work order from {work_order.status.value} to {target.value}.",
            details={"from": work_order.status.value, "to": target.value},
        )


def apply_transition(work_order: WorkOrder, target: S) -> S:
    """Move ``work_order`` to ``target`` and stamp timestamps; returns the previous status."""

    ensure_transition(work_order, target)
    previous = work_order.status
    work_order.status = target
    now = utcnow()
    if target == S.IN_PROGRESS and work_order.start_date is None:
        work_order.start_date = now
    if target == S.COMPLETED:
        work_order.completed_at = now
    work_order.updated_at = now
    logger.info(
        "Work order transitioned",
        extra={"work_order_id": work_order.id, "from": previous.value, "to": target.value},
    )
    return previous


__all__ = [
    "ALLOWED_TRANSITIONS",
    "DELIVERABLE_STATES",
    "LOCKED_STATES",
    "TERMINAL_STATES",
    "apply_transition",
    "can_transition",
    "ensure_active",
    "ensure_status",
    "ensure_transition",
]
