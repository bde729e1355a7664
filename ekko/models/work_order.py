"""Work order aggregate root."""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, Enum as SqlEnum, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .project import BudgetType


class WorkOrderStatus(str, PyEnum):
    """Lifecycle states of a work order."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    DELIVERED = "DELIVERED"
    IN_REVISION = "IN_REVISION"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"


class WorkOrder(Base):
    """An accepted engagement between a client and a creative.

    Milestones, deliveries and the escrow ledger hang off the work order and
    are only ever mutated through it. ``version`` is bumped on every flush so
    concurrent writers on the same order are detected at commit time.
    """

    __tablename__ = "work_orders"
    __table_args__ = (
        CheckConstraint("client_id <> creative_id", name="ck_work_order_distinct_parties"),
        CheckConstraint("agreed_rate >= 0", name="ck_work_order_rate_non_negative"),
        Index("ix_work_orders_status", "status"),
    )

    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    creative_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    agreed_rate: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    agreed_budget_type: Mapped[BudgetType] = mapped_column(SqlEnum(BudgetType), nullable=False)
    status: Mapped[WorkOrderStatus] = mapped_column(
        SqlEnum(WorkOrderStatus), nullable=False, default=WorkOrderStatus.PENDING
    )
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    project = relationship("Project")
    client = relationship("User", foreign_keys=[client_id])
    creative = relationship("User", foreign_keys=[creative_id])
    milestones = relationship(
        "Milestone",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="Milestone.order",
    )
    deliveries = relationship(
        "Delivery",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="Delivery.id.desc()",
    )
    escrow = relationship("Escrow", back_populates="work_order", uselist=False, cascade="all, delete-orphan")
