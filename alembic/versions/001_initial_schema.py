"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "responders",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="inactive"),
        sa.Column("current_latitude", sa.Float(), nullable=True),
        sa.Column("current_longitude", sa.Float(), nullable=True),
        sa.Column("location_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_heartbeat", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_inactive_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_emergency", sa.String(length=36), nullable=True),
        sa.Column("push_token", sa.String(length=255), nullable=True),
        sa.Column("push_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_responders")),
    )
    op.create_index(op.f("ix_responders_status"), "responders", ["status"], unique=False)

    op.create_table(
        "emergency_reports",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("details", sa.Text(), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("urgency", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("contact_method", sa.String(length=20), nullable=False, server_default="chat"),
        sa.Column("additional_info", sa.JSON(), nullable=False),
        sa.Column("creator_id", sa.String(length=128), nullable=False),
        sa.Column("display_code", sa.String(length=32), nullable=False, server_default="ANON"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_emergency_reports")),
    )
    op.create_index(op.f("ix_emergency_reports_creator_id"), "emergency_reports", ["creator_id"], unique=False)

    op.create_table(
        "alerts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("details", sa.Text(), nullable=False, server_default=""),
        sa.Column("urgency", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("display_code", sa.String(length=32), nullable=False, server_default="ANON"),
        sa.Column("assigned_responder", sa.String(length=128), nullable=True),
        sa.Column("responder_uid", sa.String(length=128), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("routed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["id"], ["emergency_reports.id"], ondelete="CASCADE", name=op.f("fk_alerts_id_emergency_reports")),
        sa.ForeignKeyConstraint(["assigned_responder"], ["responders.id"], name=op.f("fk_alerts_assigned_responder_responders")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_alerts")),
    )
    op.create_index(op.f("ix_alerts_assigned_responder"), "alerts", ["assigned_responder"], unique=False)

    op.create_table(
        "department_emergencies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_id", sa.String(length=36), nullable=False),
        sa.Column("department", sa.String(length=20), nullable=False),
        sa.Column("routed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["report_id"], ["emergency_reports.id"], ondelete="CASCADE", name=op.f("fk_department_emergencies_report_id_emergency_reports")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_department_emergencies")),
        sa.UniqueConstraint("report_id", name=op.f("uq_department_emergencies_report_id")),
    )
    op.create_index(op.f("ix_department_emergencies_department"), "department_emergencies", ["department"], unique=False)

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_accounts")),
    )
    op.create_index(op.f("ix_accounts_email"), "accounts", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("uid", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="student"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["uid"], ["accounts.id"], ondelete="CASCADE", name=op.f("fk_profiles_uid_accounts")),
        sa.PrimaryKeyConstraint("uid", name=op.f("pk_profiles")),
    )

    op.create_table(
        "otp_challenges",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("code_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("request_ip", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("email", name=op.f("pk_otp_challenges")),
    )
    op.create_table(
        "otp_rate_limits",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("window_reset_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("email", name=op.f("pk_otp_rate_limits")),
    )
    op.create_table(
        "otp_lockouts",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("failure_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("email", name=op.f("pk_otp_lockouts")),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("uid", sa.String(length=36), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_log")),
    )
    op.create_index(op.f("ix_audit_log_email"), "audit_log", ["email"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_log_email"), table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("otp_lockouts")
    op.drop_table("otp_rate_limits")
    op.drop_table("otp_challenges")
    op.drop_table("profiles")
    op.drop_index(op.f("ix_accounts_email"), table_name="accounts")
    op.drop_table("accounts")
    op.drop_index(op.f("ix_department_emergencies_department"), table_name="department_emergencies")
    op.drop_table("department_emergencies")
    op.drop_index(op.f("ix_alerts_assigned_responder"), table_name="alerts")
    op.drop_table("alerts")
    op.drop_index(op.f("ix_emergency_reports_creator_id"), table_name="emergency_reports")
    op.drop_table("emergency_reports")
    op.drop_index(op.f("ix_responders_status"), table_name="responders")
    op.drop_table("responders")
