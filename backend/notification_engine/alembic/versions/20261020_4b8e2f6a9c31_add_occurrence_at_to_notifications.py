"""add occurrence_at to notifications

Revision ID: 4b8e2f6a9c31
Revises: 7d3e9a1c5b20
Create Date: 2026-10-20 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "4b8e2f6a9c31"
down_revision = "7d3e9a1c5b20"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "notifications",
        sa.Column("occurrence_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.execute("UPDATE notifications SET occurrence_at = scheduled_at")


def downgrade() -> None:
    op.drop_column("notifications", "occurrence_at")
