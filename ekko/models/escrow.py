"""Escrow ledger model."""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, DateTime, Enum as SqlEnum, ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class EscrowStatus(str, PyEnum):
    """Status of an escrow ledger."""

    PENDING = "PENDING"
    FUNDED = "FUNDED"
    PARTIALLY_RELEASED = "PARTIALLY_RELEASED"
    RELEASED = "RELEASED"
    REFUNDED = "REFUNDED"


class Escrow(Base):
    """Funds committed by the client against a single work order."""

    __tablename__ = "escrows"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_escrow_total_non_negative"),
        CheckConstraint("funded_amount >= 0", name="ck_escrow_funded_non_negative"),
        CheckConstraint("released_amount >= 0", name="ck_escrow_released_non_negative"),
        CheckConstraint("refunded_amount >= 0", name="ck_escrow_refunded_non_negative"),
        CheckConstraint("funded_amount <= total_amount", name="ck_escrow_funded_within_total"),
        CheckConstraint(
            "released_amount + refunded_amount <= funded_amount",
            name="ck_escrow_outflow_within_funded",
        ),
    )

    work_order_id: Mapped[int] = mapped_column(ForeignKey("work_orders.id"), nullable=False, unique=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    funded_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    released_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    refunded_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=Decimal("0"))
    status: Mapped[EscrowStatus] = mapped_column(SqlEnum(EscrowStatus), nullable=False, default=EscrowStatus.PENDING)
    funded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    work_order = relationship("WorkOrder", back_populates="escrow")
