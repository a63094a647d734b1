"""Store report and alert details as JSON (free text or a structured form).

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ("emergency_reports", "alerts")


def upgrade() -> None:
    for table_name in TABLES:
        # the text default cannot be cast, so drop it before changing the type
        op.alter_column(table_name, "details", existing_type=sa.Text(), server_default=None)
        op.alter_column(
            table_name,
            "details",
            existing_type=sa.Text(),
            type_=sa.JSON(),
            existing_nullable=False,
            postgresql_using="to_json(details)",
        )


def downgrade() -> None:
    for table_name in TABLES:
        op.alter_column(
            table_name,
            "details",
            existing_type=sa.JSON(),
            type_=sa.Text(),
            existing_nullable=False,
            postgresql_using="details::text",
        )
