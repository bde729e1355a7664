"""Delivery model definitions."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum as SqlEnum, ForeignKey, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class DeliveryStatus(str, PyEnum):
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REVISION_REQUESTED = "REVISION_REQUESTED"


class Delivery(Base):
    """A creative's submission against a work order, optionally for one milestone."""

    __tablename__ = "deliveries"

    work_order_id: Mapped[int] = mapped_column(ForeignKey("work_orders.id"), nullable=False, index=True)
    milestone_id: Mapped[int | None] = mapped_column(ForeignKey("milestones.id"), nullable=True, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[DeliveryStatus] = mapped_column(
        SqlEnum(DeliveryStatus), nullable=False, default=DeliveryStatus.PENDING_REVIEW
    )
    revision_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    work_order = relationship("WorkOrder", back_populates="deliveries")
    milestone = relationship("Milestone", back_populates="deliveries")
