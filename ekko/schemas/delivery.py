"""Delivery schemas."""
from datetime import datetime

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, computed_field

from ekko.config import get_settings
from ekko.models.delivery import DeliveryStatus
from ekko.services.status_labels import describe

_settings = get_settings()


class DeliveryCreate(BaseModel):
    message: str = Field(min_length=1, max_length=_settings.DELIVERY_MESSAGE_MAX)
    milestone_id: int | None = None
    attachments: list[AnyHttpUrl] = Field(default_factory=list)


class RevisionRequest(BaseModel):
    revision_note: str = Field(max_length=_settings.DELIVERY_MESSAGE_MAX)


class DeliveryRead(BaseModel):
    id: int
    work_order_id: int
    milestone_id: int | None
    message: str
    attachments: list[str]
    status: DeliveryStatus
    revision_note: str | None
    reviewed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return describe(self.status).label
