"""Notification model."""
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Enum as SqlEnum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class NotificationType(str, PyEnum):
    WORK_ORDER_UPDATE = "WORK_ORDER_UPDATE"
    DELIVERY = "DELIVERY"
    MILESTONE_UPDATE = "MILESTONE_UPDATE"
    ESCROW_UPDATE = "ESCROW_UPDATE"


class Notification(Base):
    """A user-facing alert about something another party did."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read"),)

    type: Mapped[NotificationType] = mapped_column(SqlEnum(NotificationType), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
