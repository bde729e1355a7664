"""Initial work order schema.

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def _enums() -> dict[str, sa.Enum]:
    return {
        "apiscope": sa.Enum("user", "support", "admin", name="apiscope"),
        "budgettype": sa.Enum("FIXED", "HOURLY", "MILESTONE", name="budgettype"),
        "projectstatus": sa.Enum("OPEN", "ASSIGNED", "COMPLETED", "CANCELLED", name="projectstatus"),
        "applicationstatus": sa.Enum(
            "PENDING", "VIEWED", "SHORTLISTED", "ACCEPTED", "DECLINED", name="applicationstatus"
        ),
        "workorderstatus": sa.Enum(
            "PENDING",
            "ACCEPTED",
            "IN_PROGRESS",
            "DELIVERED",
            "IN_REVISION",
            "COMPLETED",
            "CANCELLED",
            "DISPUTED",
            name="workorderstatus",
        ),
        "milestonestatus": sa.Enum(
            "PENDING", "IN_PROGRESS", "DELIVERED", "IN_REVISION", "APPROVED", name="milestonestatus"
        ),
        "deliverystatus": sa.Enum("PENDING_REVIEW", "APPROVED", "REVISION_REQUESTED", name="deliverystatus"),
        "escrowstatus": sa.Enum(
            "PENDING", "FUNDED", "PARTIALLY_RELEASED", "RELEASED", "REFUNDED", name="escrowstatus"
        ),
        "notificationtype": sa.Enum(
            "WORK_ORDER_UPDATE", "DELIVERY", "MILESTONE_UPDATE", "ESCROW_UPDATE", name="notificationtype"
        ),
    }


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    enums = _enums()
    bind = op.get_bind()
    for enum in enums.values():
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        *_timestamps(),
        sa.Column("username", sa.String(length=100), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "api_keys",
        *_timestamps(),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("prefix", sa.String(length=32), nullable=False),
        sa.Column("key_hash", sa.String(length=128), nullable=False, unique=True),
        sa.Column("scope", enums["apiscope"], nullable=False, server_default="user"),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_api_keys_prefix", "api_keys", ["prefix"], unique=False)
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"], unique=False)

    op.create_table(
        "audit_logs",
        *_timestamps(),
        sa.Column("actor", sa.String(length=100), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity", sa.String(length=100), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("data_json", sa.JSON(), nullable=False),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity", "entity_id"], unique=False)

    op.create_table(
        "projects",
        *_timestamps(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("budget_type", enums["budgettype"], nullable=False, server_default="FIXED"),
        sa.Column("budget_min", sa.Numeric(18, 2, asdecimal=True), nullable=True),
        sa.Column("budget_max", sa.Numeric(18, 2, asdecimal=True), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_direct", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("target_creative_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("status", enums["projectstatus"], nullable=False, server_default="OPEN"),
        sa.CheckConstraint("budget_min IS NULL OR budget_min >= 0", name="ck_project_budget_min_non_negative"),
        sa.CheckConstraint("budget_max IS NULL OR budget_max >= 0", name="ck_project_budget_max_non_negative"),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"], unique=False)
    op.create_index("ix_projects_status", "projects", ["status"], unique=False)

    op.create_table(
        "applications",
        *_timestamps(),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("creative_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("proposed_rate", sa.Numeric(18, 2, asdecimal=True), nullable=True),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("status", enums["applicationstatus"], nullable=False, server_default="PENDING"),
        sa.CheckConstraint("proposed_rate IS NULL OR proposed_rate >= 0", name="ck_application_rate_non_negative"),
    )
    op.create_index("ix_applications_project_id", "applications", ["project_id"], unique=False)
    op.create_index("ix_applications_creative_id", "applications", ["creative_id"], unique=False)

    op.create_table(
        "work_orders",
        *_timestamps(),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("creative_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("agreed_rate", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("agreed_budget_type", enums["budgettype"], nullable=False),
        sa.Column("status", enums["workorderstatus"], nullable=False, server_default="PENDING"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("client_id <> creative_id", name="ck_work_order_distinct_parties"),
        sa.CheckConstraint("agreed_rate >= 0", name="ck_work_order_rate_non_negative"),
    )
    op.create_index("ix_work_orders_project_id", "work_orders", ["project_id"], unique=False)
    op.create_index("ix_work_orders_client_id", "work_orders", ["client_id"], unique=False)
    op.create_index("ix_work_orders_creative_id", "work_orders", ["creative_id"], unique=False)
    op.create_index("ix_work_orders_status", "work_orders", ["status"], unique=False)

    op.create_table(
        "milestones",
        *_timestamps(),
        sa.Column("work_order_id", sa.Integer(), sa.ForeignKey("work_orders.id"), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", enums["milestonestatus"], nullable=False, server_default="PENDING"),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.UniqueConstraint("work_order_id", "order", name="uq_milestone_order"),
        sa.CheckConstraint("amount >= 0", name="ck_milestone_amount_non_negative"),
    )
    op.create_index("ix_milestones_work_order_id", "milestones", ["work_order_id"], unique=False)

    op.create_table(
        "deliveries",
        *_timestamps(),
        sa.Column("work_order_id", sa.Integer(), sa.ForeignKey("work_orders.id"), nullable=False),
        sa.Column("milestone_id", sa.Integer(), sa.ForeignKey("milestones.id"), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("status", enums["deliverystatus"], nullable=False, server_default="PENDING_REVIEW"),
        sa.Column("revision_note", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_deliveries_work_order_id", "deliveries", ["work_order_id"], unique=False)
    op.create_index("ix_deliveries_milestone_id", "deliveries", ["milestone_id"], unique=False)

    op.create_table(
        "escrows",
        *_timestamps(),
        sa.Column("work_order_id", sa.Integer(), sa.ForeignKey("work_orders.id"), nullable=False, unique=True),
        sa.Column("total_amount", sa.Numeric(18, 2, asdecimal=True), nullable=False),
        sa.Column("funded_amount", sa.Numeric(18, 2, asdecimal=True), nullable=False, server_default="0"),
        sa.Column("released_amount", sa.Numeric(18, 2, asdecimal=True), nullable=False, server_default="0"),
        sa.Column("refunded_amount", sa.Numeric(18, 2, asdecimal=True), nullable=False, server_default="0"),
        sa.Column("status", enums["escrowstatus"], nullable=False, server_default="PENDING"),
        sa.Column("funded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("total_amount >= 0", name="ck_escrow_total_non_negative"),
        sa.CheckConstraint("funded_amount >= 0", name="ck_escrow_funded_non_negative"),
        sa.CheckConstraint("released_amount >= 0", name="ck_escrow_released_non_negative"),
        sa.CheckConstraint("refunded_amount >= 0", name="ck_escrow_refunded_non_negative"),
        sa.CheckConstraint("funded_amount <= total_amount", name="ck_escrow_funded_within_total"),
        sa.CheckConstraint(
            "released_amount + refunded_amount <= funded_amount",
            name="ck_escrow_outflow_within_funded",
        ),
    )

    op.create_table(
        "notifications",
        *_timestamps(),
        sa.Column("type", enums["notificationtype"], nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_notifications_user_read", "notifications", ["user_id", "read"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_user_read", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("escrows")
    op.drop_index("ix_deliveries_milestone_id", table_name="deliveries")
    op.drop_index("ix_deliveries_work_order_id", table_name="deliveries")
    op.drop_table("deliveries")
    op.drop_index("ix_milestones_work_order_id", table_name="milestones")
    op.drop_table("milestones")
    op.drop_index("ix_work_orders_status", table_name="work_orders")
    op.drop_index("ix_work_orders_creative_id", table_name="work_orders")
    op.drop_index("ix_work_orders_client_id", table_name="work_orders")
    op.drop_index("ix_work_orders_project_id", table_name="work_orders")
    op.drop_table("work_orders")
    op.drop_index("ix_applications_creative_id", table_name="applications")
    op.drop_index("ix_applications_project_id", table_name="applications")
    op.drop_table("applications")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index("ix_projects_client_id", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_api_keys_user_id", table_name="api_keys")
    op.drop_index("ix_api_keys_prefix", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in _enums().values():
        enum.drop(bind, checkfirst=True)
