"""Schemas for milestone entities."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ekko.config import get_settings
from ekko.models.milestone import MilestoneStatus
from ekko.services.status_labels import describe

_settings = get_settings()


class MilestoneCreate(BaseModel):
    title: str = Field(min_length=1, max_length=_settings.MILESTONE_TITLE_MAX)
    description: str | None = Field(default=None, max_length=_settings.MILESTONE_DESCRIPTION_MAX)
    amount: Decimal = Field(ge=Decimal("0"), max_digits=18, decimal_places=2)
    due_date: datetime | None = None


class MilestoneUpdate(BaseModel):
    """Partial update; omitted fields are left untouched, explicit nulls clear them."""

    title: str | None = Field(default=None, min_length=1, max_length=_settings.MILESTONE_TITLE_MAX)
    description: str | None = Field(default=None, max_length=_settings.MILESTONE_DESCRIPTION_MAX)
    amount: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=18, decimal_places=2)
    due_date: datetime | None = None


class MilestoneReorder(BaseModel):
    milestone_ids: list[int]


class MilestoneRead(BaseModel):
    id: int
    work_order_id: int
    title: str
    description: str | None
    amount: Decimal
    due_date: datetime | None
    status: MilestoneStatus
    order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return describe(self.status).label
