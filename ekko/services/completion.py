"""Policies deciding whether an approved delivery completes the work order."""
from __future__ import annotations

from typing import Callable

from ekko.config import get_settings
from ekko.models.delivery import Delivery
from ekko.models.milestone import MilestoneStatus
from ekko.models.work_order import WorkOrder

CompletionPolicy = Callable[[WorkOrder, Delivery], bool]


def all_milestones_approved(work_order: WorkOrder, delivery: Delivery) -> bool:
    """Complete when the order has no milestones or this approval closes the last open one."""

    return all(
        milestone.id == delivery.milestone_id or milestone.status == MilestoneStatus.APPROVED
        for milestone in work_order.milestones
    )


def any_approval(work_order: WorkOrder, delivery: Delivery) -> bool:
    """Fixed-price style: the first approved delivery completes the order."""

    return True


POLICIES: dict[str, CompletionPolicy] = {
    "all_milestones_approved": all_milestones_approved,
    "any_approval": any_approval,
}


def get_completion_policy() -> CompletionPolicy:
    """FastAPI dependency returning the configured policy."""

    return POLICIES[get_settings().WORK_ORDER_COMPLETION_POLICY]


__all__ = ["CompletionPolicy", "POLICIES", "all_milestones_approved", "any_approval", "get_completion_policy"]
