"""Display descriptors for every lifecycle status.

Each table must cover its enum exactly; a missing member fails at import time
instead of silently rendering a default.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from ekko.models.delivery import DeliveryStatus
from ekko.models.escrow import EscrowStatus
from ekko.models.milestone import MilestoneStatus
from ekko.models.work_order import WorkOrderStatus


@dataclass(frozen=True)
class StatusDescriptor:
    label: str
    tone: str  # neutral | warning | info | accent | success | danger


WORK_ORDER_STATUS_LABELS: Mapping[WorkOrderStatus, StatusDescriptor] = {
    WorkOrderStatus.PENDING: StatusDescriptor("Pending", "warning"),
    WorkOrderStatus.ACCEPTED: StatusDescriptor("Accepted", "info"),
    WorkOrderStatus.IN_PROGRESS: StatusDescriptor("In Progress", "info"),
    WorkOrderStatus.DELIVERED: StatusDescriptor("Delivered", "accent"),
    WorkOrderStatus.IN_REVISION: StatusDescriptor("In Revision", "warning"),
    WorkOrderStatus.COMPLETED: StatusDescriptor("Completed", "success"),
    WorkOrderStatus.CANCELLED: StatusDescriptor("Cancelled", "danger"),
    WorkOrderStatus.DISPUTED: StatusDescriptor("Disputed", "danger"),
}

MILESTONE_STATUS_LABELS: Mapping[MilestoneStatus, StatusDescriptor] = {
    MilestoneStatus.PENDING: StatusDescriptor("Pending", "neutral"),
    MilestoneStatus.IN_PROGRESS: StatusDescriptor("In Progress", "info"),
    MilestoneStatus.DELIVERED: StatusDescriptor("Delivered", "accent"),
    MilestoneStatus.IN_REVISION: StatusDescriptor("Revision", "warning"),
    MilestoneStatus.APPROVED: StatusDescriptor("Approved", "success"),
}

DELIVERY_STATUS_LABELS: Mapping[DeliveryStatus, StatusDescriptor] = {
    DeliveryStatus.PENDING_REVIEW: StatusDescriptor("Pending Review", "warning"),
    DeliveryStatus.APPROVED: StatusDescriptor("Approved", "success"),
    DeliveryStatus.REVISION_REQUESTED: StatusDescriptor("Revision Requested", "warning"),
}

ESCROW_STATUS_LABELS: Mapping[EscrowStatus, StatusDescriptor] = {
    EscrowStatus.PENDING: StatusDescriptor("Pending", "warning"),
    EscrowStatus.FUNDED: StatusDescriptor("Funded", "info"),
    EscrowStatus.PARTIALLY_RELEASED: StatusDescriptor("Partially Released", "accent"),
    EscrowStatus.RELEASED: StatusDescriptor("Released", "success"),
    EscrowStatus.REFUNDED: StatusDescriptor("Refunded", "neutral"),
}

_TABLES: tuple[tuple[type[Enum], Mapping], ...] = (
    (WorkOrderStatus, WORK_ORDER_STATUS_LABELS),
    (MilestoneStatus, MILESTONE_STATUS_LABELS),
    (DeliveryStatus, DELIVERY_STATUS_LABELS),
    (EscrowStatus, ESCROW_STATUS_LABELS),
)


def _assert_exhaustive() -> None:
    for enum_cls, table in _TABLES:
        missing = set(enum_cls) - set(table)
        extra = set(table) - set(enum_cls)
        if missing or extra:
            raise RuntimeError(
                f"{enum_cls.__name__} labels out of sync: missing={sorted(m.value for m in missing)} "
                f"extra={sorted(str(e) for e in extra)}"
            )


_assert_exhaustive()


def describe(status: Enum) -> StatusDescriptor:
    """Return the descriptor for any lifecycle status; unknown types raise ``KeyError``."""

    for enum_cls, table in _TABLES:
        if isinstance(status, enum_cls):
            return table[status]
    raise KeyError(f"No status table for {type(status).__name__}")


__all__ = [
    "StatusDescriptor",
    "WORK_ORDER_STATUS_LABELS",
    "MILESTONE_STATUS_LABELS",
    "DELIVERY_STATUS_LABELS",
    "ESCROW_STATUS_LABELS",
    "describe",
]
