from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from voucher_api.models.base import Base, TimestampMixin

CODE_MAX_LENGTH = 50


class Voucher(Base, TimestampMixin):
    __tablename__ = "vouchers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(CODE_MAX_LENGTH), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2, asdecimal=True), nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "discount_percent >= 1 AND discount_percent <= 100",
            name="ck_vouchers_discount_percent_range",
        ),
        # Codes are unique among active rows only; soft-deleted codes may be reused.
        Index(
            "uq_vouchers_code_active",
            "code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_vouchers_expiry_date", "expiry_date"),
        Index("ix_vouchers_deleted_at", "deleted_at"),
    )
