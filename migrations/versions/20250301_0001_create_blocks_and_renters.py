"""create rental blocks and renters

Revision ID: 20250301_0001
Revises:
Create Date: 2025-03-01

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20250301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "rental_blocks" not in tables:
        op.create_table(
            "rental_blocks",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        )

    if "renters" not in tables:
        op.create_table(
            "renters",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("block_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=150), nullable=False),
            sa.Column("phone_number", sa.String(length=30), server_default="", nullable=False),
            sa.Column("rent_price", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["block_id"], ["rental_blocks.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_renters_block_id", "renters", ["block_id"], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "renters" in tables:
        try:
            op.drop_index("ix_renters_block_id", table_name="renters")
        except Exception:
            pass
        op.drop_table("renters")

    if "rental_blocks" in tables:
        op.drop_table("rental_blocks")
