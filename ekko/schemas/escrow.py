"""Escrow schemas."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field

from ekko.models.escrow import EscrowStatus
from ekko.services.status_labels import describe


class EscrowRead(BaseModel):
    id: int
    work_order_id: int
    total_amount: Decimal
    funded_amount: Decimal
    released_amount: Decimal
    refunded_amount: Decimal
    status: EscrowStatus
    funded_at: datetime | None
    released_at: datetime | None
    refunded_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_label(self) -> str:
        return describe(self.status).label
