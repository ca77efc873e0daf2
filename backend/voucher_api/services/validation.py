from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from voucher_api.models.voucher import CODE_MAX_LENGTH
from voucher_api.services.errors import VoucherValidationError

DATE_FORMAT = "%Y-%m-%d"
DISCOUNT_MIN = Decimal("1")
DISCOUNT_MAX = Decimal("100")

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_CENTS = Decimal("0.01")
# Beyond this decimal exponent, error messages show discounts in scientific notation.
_PLAIN_DIGITS_LIMIT = 15


class ValidationReason:
    EMPTY_CODE = "EMPTY_CODE"
    CODE_TOO_LONG = "CODE_TOO_LONG"
    NOT_A_NUMBER = "NOT_A_NUMBER"
    DISCOUNT_OUT_OF_RANGE = "DISCOUNT_OUT_OF_RANGE"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    EXPIRY_IN_PAST = "EXPIRY_IN_PAST"
    INSUFFICIENT_COLUMNS = "INSUFFICIENT_COLUMNS"
    DUPLICATE_CODE = "DUPLICATE_CODE"


@dataclass(frozen=True)
class VoucherCandidate:
    code: str
    discount_percent: Any
    expiry_date: str


@dataclass(frozen=True)
class ValidatedVoucher:
    code: str
    discount_percent: Decimal
    expiry_date: date


def validate_code(code: str) -> str:
    if not code:
        raise VoucherValidationError("voucher code is required", code=ValidationReason.EMPTY_CODE)
    if len(code) > CODE_MAX_LENGTH:
        raise VoucherValidationError(
            f"voucher code exceeds {CODE_MAX_LENGTH} characters",
            code=ValidationReason.CODE_TOO_LONG,
        )
    return code


def parse_discount(raw: Any) -> Decimal:
    """Parse a discount from CSV text or an already-typed JSON number.

    Text must be a plain ASCII decimal or exponent literal, and values that
    overflow a float are rejected along with NaN and infinities.
    """
    if isinstance(raw, bool) or raw is None:
        raise _not_a_number(raw)
    if isinstance(raw, str):
        raw = raw.strip()
        if not _NUMBER_PATTERN.match(raw):
            raise _not_a_number(raw)
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise _not_a_number(raw) from exc
    if not value.is_finite() or math.isinf(float(value)):
        raise _not_a_number(raw)
    return value


def check_discount_range(value: Decimal) -> Decimal:
    if value < DISCOUNT_MIN or value > DISCOUNT_MAX:
        raise VoucherValidationError(
            f"discount percent {_render_discount(value)} out of range (must be 1-100)",
            code=ValidationReason.DISCOUNT_OUT_OF_RANGE,
        )
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def parse_expiry_date(raw: str) -> date:
    raw = (raw or "").strip()
    if not _DATE_PATTERN.match(raw):
        raise _invalid_date(raw)
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError as exc:
        raise _invalid_date(raw) from exc


def check_expiry_date(expiry: date, *, today: date | None = None) -> date:
    # Local calendar day; an expiry of today is still valid.
    today = today or date.today()
    if expiry < today:
        raise VoucherValidationError(
            f"expiry date {format_date(expiry)} must be today or in the future",
            code=ValidationReason.EXPIRY_IN_PAST,
        )
    return expiry


def validate_candidate(candidate: VoucherCandidate, *, today: date | None = None) -> ValidatedVoucher:
    """Check a candidate against the field rules, failing on the first violation.

    Order is code, then discount, then date; within each field parsing comes
    before the range check. Uniqueness is not checked here.
    """
    code = validate_code(candidate.code)
    discount = check_discount_range(parse_discount(candidate.discount_percent))
    expiry = check_expiry_date(parse_expiry_date(candidate.expiry_date), today=today)
    return ValidatedVoucher(code=code, discount_percent=discount, expiry_date=expiry)


def format_discount(value: Decimal | float) -> str:
    return f"{Decimal(str(value)):.2f}"


def format_date(value: date) -> str:
    return value.isoformat()


def _not_a_number(raw: Any) -> VoucherValidationError:
    return VoucherValidationError(
        f"invalid discount percent '{raw}': must be a number",
        code=ValidationReason.NOT_A_NUMBER,
    )


def _invalid_date(raw: str) -> VoucherValidationError:
    return VoucherValidationError(
        f"invalid date format '{raw}': expected YYYY-MM-DD",
        code=ValidationReason.INVALID_DATE_FORMAT,
    )


def _render_discount(value: Decimal) -> str:
    if abs(value.adjusted()) > _PLAIN_DIGITS_LIMIT:
        return f"{value:.2E}"
    return format_discount(value)
