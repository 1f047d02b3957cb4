"""Durable key-value state table

Revision ID: 20261018_state_entries
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_state_entries"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "state_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("value_json", sa.JSON(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("state_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_state_entries_key"), ["key"], unique=True)


def downgrade():
    with op.batch_alter_table("state_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_state_entries_key"))
    op.drop_table("state_entries")
