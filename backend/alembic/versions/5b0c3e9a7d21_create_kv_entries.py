"""create kv_entries

Revision ID: 5b0c3e9a7d21
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5b0c3e9a7d21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kv_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("namespace", sa.String(length=64), nullable=False),
        sa.Column("key_hash", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("namespace", "key_hash", name="uq_kv_entries_namespace_key"),
    )
    op.create_index(op.f("ix_kv_entries_namespace"), "kv_entries", ["namespace"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_kv_entries_namespace"), table_name="kv_entries")
    op.drop_table("kv_entries")
