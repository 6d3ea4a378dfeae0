"""Create reports table for generated reports and saved searches

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the reports table and its per-user indexes."""
    op.create_table(
        "reports",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("papers", sa.JSON(), nullable=True),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_reports_user_id", "reports", ["user_id"])
    op.create_index("idx_reports_user_created", "reports", ["user_id", "created_at"])


def downgrade() -> None:
    """Drop the reports table."""
    op.drop_index("idx_reports_user_created", table_name="reports")
    op.drop_index("idx_reports_user_id", table_name="reports")
    op.drop_table("reports")
