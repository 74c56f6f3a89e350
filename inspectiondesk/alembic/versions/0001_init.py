"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "app_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("full_name", sa.String(length=160), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="buyer"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_app_users_email", "app_users", ["email"], unique=True)

    op.create_table(
        "field_agents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("whatsapp_number", sa.String(length=40), nullable=True),
        sa.Column("region_of_operation_json", sa.Text(), nullable=True),
        sa.Column("account_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_flagged", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_field_agents_user_id", "field_agents", ["user_id"], unique=True)

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("property_type", sa.String(length=60), nullable=False, server_default="buy"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("location_state", sa.String(length=80), nullable=False),
        sa.Column("location_lga", sa.String(length=120), nullable=False),
        sa.Column("location_area", sa.String(length=120), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reference", sa.String(length=80), nullable=False),
        sa.Column("payer_user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="NGN"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("transaction_type", sa.String(length=40), nullable=False, server_default="inspection"),
        sa.Column("payment_mode", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_reference", "transactions", ["reference"], unique=True)

    op.create_table(
        "inspection_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("requester_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="pending_transaction"),
        sa.Column("stage", sa.String(length=20), nullable=False, server_default="negotiation"),
        sa.Column("pending_response_from", sa.String(length=10), nullable=False, server_default="admin"),
        sa.Column("inspection_type", sa.String(length=10), nullable=False, server_default="price"),
        sa.Column("is_negotiating", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("negotiation_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_loi", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("letter_of_intention_url", sa.String(length=500), nullable=True),
        sa.Column("approve_loi", sa.Boolean(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("assigned_field_agent_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=True),
        sa.Column("inspection_date", sa.Date(), nullable=True),
        sa.Column("inspection_time", sa.String(length=20), nullable=True),
        sa.Column("inspection_mode", sa.String(length=20), nullable=False, server_default="in_person"),
        sa.Column("report_status", sa.String(length=20), nullable=False, server_default="not-started"),
        sa.Column("report_buyer_present", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("report_seller_present", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("report_buyer_interest", sa.String(length=20), nullable=True),
        sa.Column("report_notes", sa.Text(), nullable=True),
        sa.Column("report_was_successful", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("report_started_at", sa.DateTime(), nullable=True),
        sa.Column("report_completed_at", sa.DateTime(), nullable=True),
        sa.Column("report_submitted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_inspection_requests_property_id", "inspection_requests", ["property_id"])
    op.create_index("ix_inspection_requests_requester_id", "inspection_requests", ["requester_id"])
    op.create_index("ix_inspection_requests_owner_id", "inspection_requests", ["owner_id"])
    op.create_index(
        "ix_inspection_requests_assigned_field_agent_id", "inspection_requests", ["assigned_field_agent_id"]
    )
    op.create_index("ix_inspection_requests_status_stage", "inspection_requests", ["status", "stage"])

    op.create_table(
        "field_agent_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "field_agent_id",
            sa.Integer(),
            sa.ForeignKey("field_agents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "inspection_id",
            sa.Integer(),
            sa.ForeignKey("inspection_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("inspection_id", name="uq_field_agent_assignments_inspection"),
    )
    op.create_index("ix_field_agent_assignments_agent", "field_agent_assignments", ["field_agent_id"])

    # no FK on inspection_id: the trail outlives a deleted request
    op.create_table(
        "inspection_activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("inspection_id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("sender_model", sa.String(length=20), nullable=False),
        sa.Column("sender_role", sa.String(length=20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=True),
        sa.Column("stage", sa.String(length=20), nullable=True),
        sa.Column("meta_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_inspection_activity_logs_inspection_id", "inspection_activity_logs", ["inspection_id"])
    op.create_index("ix_inspection_activity_logs_property_id", "inspection_activity_logs", ["property_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("app_users.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("meta_json", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade():
    op.drop_table("notifications")
    op.drop_table("inspection_activity_logs")
    op.drop_table("field_agent_assignments")
    op.drop_table("inspection_requests")
    op.drop_table("transactions")
    op.drop_table("properties")
    op.drop_table("field_agents")
    op.drop_table("app_users")
