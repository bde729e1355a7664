"""Milestone model definitions."""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, Enum as SqlEnum, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class MilestoneStatus(str, PyEnum):
    """Possible statuses for a milestone."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DELIVERED = "DELIVERED"
    IN_REVISION = "IN_REVISION"
    APPROVED = "APPROVED"


class Milestone(Base):
    """A priced, ordered phase of a work order."""

    __tablename__ = "milestones"
    __table_args__ = (
        UniqueConstraint("work_order_id", "order", name="uq_milestone_order"),
        CheckConstraint("amount >= 0", name="ck_milestone_amount_non_negative"),
    )

    work_order_id: Mapped[int] = mapped_column(ForeignKey("work_orders.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[MilestoneStatus] = mapped_column(
        SqlEnum(MilestoneStatus), nullable=False, default=MilestoneStatus.PENDING
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)

    work_order = relationship("WorkOrder", back_populates="milestones")
    deliveries = relationship("Delivery", back_populates="milestone")
