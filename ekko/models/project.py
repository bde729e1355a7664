"""Gig postings and the applications creatives submit against them."""
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum as SqlEnum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class BudgetType(str, PyEnum):
    FIXED = "FIXED"
    HOURLY = "HOURLY"
    MILESTONE = "MILESTONE"


class ProjectStatus(str, PyEnum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ApplicationStatus(str, PyEnum):
    PENDING = "PENDING"
    VIEWED = "VIEWED"
    SHORTLISTED = "SHORTLISTED"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


# Applications still awaiting a decision from the client.
OPEN_APPLICATION_STATES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.VIEWED,
    ApplicationStatus.SHORTLISTED,
)


class Project(Base):
    """A gig posted by a client, either public or addressed to one creative."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("budget_min IS NULL OR budget_min >= 0", name="ck_project_budget_min_non_negative"),
        CheckConstraint("budget_max IS NULL OR budget_max >= 0", name="ck_project_budget_max_non_negative"),
        Index("ix_projects_status", "status"),
    )

    client_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget_type: Mapped[BudgetType] = mapped_column(SqlEnum(BudgetType), nullable=False, default=BudgetType.FIXED)
    budget_min: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    budget_max: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_direct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    target_creative_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(SqlEnum(ProjectStatus), nullable=False, default=ProjectStatus.OPEN)

    applications = relationship("Application", back_populates="project", cascade="all, delete-orphan")


class Application(Base):
    """A creative's bid on a public project."""

    __tablename__ = "applications"
    __table_args__ = (
        CheckConstraint("proposed_rate IS NULL OR proposed_rate >= 0", name="ck_application_rate_non_negative"),
    )

    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False, index=True)
    creative_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    proposed_rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    cover_letter: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ApplicationStatus] = mapped_column(
        SqlEnum(ApplicationStatus), nullable=False, default=ApplicationStatus.PENDING
    )

    project = relationship("Project", back_populates="applications")
