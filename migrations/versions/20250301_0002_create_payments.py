"""create payments ledger

Revision ID: 20250301_0002
Revises: 20250301_0001
Create Date: 2025-03-01

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20250301_0002"
down_revision = "20250301_0001"
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "payments" not in tables:
        op.create_table(
            "payments",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("renter_id", sa.Integer(), nullable=False),
            sa.Column("month", sa.Integer(), nullable=False),
            sa.Column("year", sa.Integer(), nullable=False),
            sa.Column("type", sa.String(length=20), server_default="rent", nullable=False),
            sa.Column("amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("is_paid", sa.Boolean(), server_default=sa.text("0"), nullable=False),
            sa.Column("paid_date", sa.DateTime(), nullable=True),
            sa.Column("whatsapp_sent_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
            sa.ForeignKeyConstraint(["renter_id"], ["renters.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("renter_id", "month", "year", "type", name="uq_payments_renter_period_type"),
            sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_payments_month"),
            sa.CheckConstraint("type IN ('rent', 'electricity', 'water')", name="ck_payments_type"),
        )
        op.create_index("ix_payments_renter_id", "payments", ["renter_id"], unique=False)
        op.create_index("ix_payments_period", "payments", ["year", "month"], unique=False)


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "payments" in tables:
        for ix in ("ix_payments_period", "ix_payments_renter_id"):
            try:
                op.drop_index(ix, table_name="payments")
            except Exception:
                pass
        op.drop_table("payments")
