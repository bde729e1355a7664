"""Schema package exports."""
from .delivery import DeliveryCreate, DeliveryRead, RevisionRequest
from .escrow import EscrowRead
from .milestone import MilestoneCreate, MilestoneRead, MilestoneReorder, MilestoneUpdate
from .notification import NotificationPage, NotificationRead, UnreadCount
from .project import ApplicationCreate, ApplicationRead, ProjectCreate, ProjectRead
from .user import UserCreate, UserRead
from .work_order import (
    DeliveryReviewRead,
    WorkOrderDetail,
    WorkOrderPage,
    WorkOrderRead,
    WorkOrderSummary,
)

__all__ = [
    "ApplicationCreate",
    "ApplicationRead",
    "DeliveryCreate",
    "DeliveryRead",
    "DeliveryReviewRead",
    "EscrowRead",
    "MilestoneCreate",
    "MilestoneRead",
    "MilestoneReorder",
    "MilestoneUpdate",
    "NotificationPage",
    "NotificationRead",
    "ProjectCreate",
    "ProjectRead",
    "RevisionRequest",
    "UnreadCount",
    "UserCreate",
    "UserRead",
    "WorkOrderDetail",
    "WorkOrderPage",
    "WorkOrderRead",
    "WorkOrderSummary",
]
