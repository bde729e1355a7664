"""Work order schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field

from ekko.models.project import BudgetType
from ekko.models.work_order import WorkOrderStatus
from ekko.schemas.delivery import DeliveryRead
from ekko.schemas.escrow import EscrowRead
from ekko.schemas.milestone import MilestoneRead
from ekko.utils.money import contract_total
from ekko.services.status_labels import describe


class WorkOrderRead(BaseModel):
    id: int
    project_id: int
    client_id: int
    creative_id: int
    agreed_rate: Decimal
    agreed_budget_type: BudgetType
    status: WorkOrderStatus
    deadline: datetime | None
    start_date: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return describe(self.status).label


class WorkOrderDetail(WorkOrderRead):
    milestones: list[MilestoneRead]
    deliveries: list[DeliveryRead]
    escrow: EscrowRead | None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def contract_total(self) -> Decimal:
        return contract_total(
            self.agreed_budget_type,
            self.agreed_rate,
            [milestone.amount for milestone in self.milestones],
        )


class WorkOrderSummary(WorkOrderRead):
    escrow: EscrowRead | None


class WorkOrderPage(BaseModel):
    items: list[WorkOrderSummary]
    next_cursor: int | None = None


class DeliveryReviewRead(BaseModel):
    """Result of a client decision on a delivery."""

    delivery: DeliveryRead
    work_order: WorkOrderRead
    escrow: EscrowRead | None
