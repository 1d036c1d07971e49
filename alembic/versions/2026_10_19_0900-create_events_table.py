"""create events table

Revision ID: create_events_table
Revises:
Create Date: 2026-10-19 09:00:00

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "create_events_table"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: the events ledger and its window/setter indexes."""
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("channel_id", sa.String(64), nullable=False),
        sa.Column("message_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("set_date", sa.DateTime(), nullable=True),
        sa.Column("has_bill", sa.Boolean(), nullable=True),
        sa.Column("system_size", sa.Float(), nullable=True),
        sa.Column("setter_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_events_type_created_at", "events", ["type", "created_at"], unique=False
    )
    op.create_index(
        "ix_events_type_set_date", "events", ["type", "set_date"], unique=False
    )
    op.create_index("ix_events_setter_id", "events", ["setter_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_events_setter_id", table_name="events")
    op.drop_index("ix_events_type_set_date", table_name="events")
    op.drop_index("ix_events_type_created_at", table_name="events")
    op.drop_table("events")
