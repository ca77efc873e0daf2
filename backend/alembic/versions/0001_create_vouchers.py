"""Create vouchers table

Revision ID: 0001_create_vouchers
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "0001_create_vouchers"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "vouchers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("discount_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "discount_percent >= 1 AND discount_percent <= 100",
            name="ck_vouchers_discount_percent_range",
        ),
    )
    op.create_index(
        "uq_vouchers_code_active",
        "vouchers",
        ["code"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_vouchers_expiry_date", "vouchers", ["expiry_date"], unique=False)
    op.create_index("ix_vouchers_deleted_at", "vouchers", ["deleted_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_vouchers_deleted_at", table_name="vouchers")
    op.drop_index("ix_vouchers_expiry_date", table_name="vouchers")
    op.drop_index("uq_vouchers_code_active", table_name="vouchers")
    op.drop_table("vouchers")
