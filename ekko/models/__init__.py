"""ORM models package."""
from .api_key import ApiKey, ApiScope
from .audit import AuditLog
from .base import Base
from .delivery import Delivery, DeliveryStatus
from .escrow import Escrow, EscrowStatus
from .milestone import Milestone, MilestoneStatus
from .notification import Notification, NotificationType
from .project import (
    Application,
    ApplicationStatus,
    BudgetType,
    OPEN_APPLICATION_STATES,
    Project,
    ProjectStatus,
)
from .user import User
from .work_order import WorkOrder, WorkOrderStatus

__all__ = [
    "ApiKey",
    "ApiScope",
    "Application",
    "ApplicationStatus",
    "AuditLog",
    "Base",
    "BudgetType",
    "Delivery",
    "DeliveryStatus",
    "Escrow",
    "EscrowStatus",
    "Milestone",
    "MilestoneStatus",
    "Notification",
    "NotificationType",
    "OPEN_APPLICATION_STATES",
    "Project",
    "ProjectStatus",
    "User",
    "WorkOrder",
    "WorkOrderStatus",
]
