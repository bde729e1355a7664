"""Project and application schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ekko.config import get_settings
from ekko.models.project import ApplicationStatus, BudgetType, ProjectStatus

_settings = get_settings()


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    budget_type: BudgetType = BudgetType.FIXED
    budget_min: Decimal | None = Field(default=None, ge=Decimal("0"))
    budget_max: Decimal | None = Field(default=None, ge=Decimal("0"))
    deadline: datetime | None = None
    target_creative_id: int | None = None

    @model_validator(mode="after")
    def _check_budget_range(self) -> "ProjectCreate":
        if self.budget_min is not None and self.budget_max is not None and self.budget_min > self.budget_max:
            raise ValueError("budget_min cannot exceed budget_max")
        return self


class ProjectRead(BaseModel):
    id: int
    client_id: int
    title: str
    description: str | None
    budget_type: BudgetType
    budget_min: Decimal | None
    budget_max: Decimal | None
    deadline: datetime | None
    is_direct: bool
    target_creative_id: int | None
    status: ProjectStatus

    model_config = ConfigDict(from_attributes=True)


class ApplicationCreate(BaseModel):
    proposed_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    cover_letter: str | None = Field(default=None, max_length=_settings.APPLICATION_COVER_LETTER_MAX)


class ApplicationRead(BaseModel):
    id: int
    project_id: int
    creative_id: int
    proposed_rate: Decimal | None
    cover_letter: str | None
    status: ApplicationStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
