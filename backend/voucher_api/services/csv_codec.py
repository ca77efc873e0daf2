from __future__ import annotations

import csv
import io
from typing import Iterable

from voucher_api.models import Voucher
from voucher_api.services.errors import MalformedInputError
from voucher_api.services.validation import format_date, format_discount

CSV_HEADER = ["voucher_code", "discount_percent", "expiry_date"]


def parse_rows(content: bytes) -> list[list[str]]:
    """Decode a CSV body into rows, header included. Blank lines are dropped."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedInputError("failed to read CSV file: not valid UTF-8") from exc

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        return [row for row in reader if row]
    except csv.Error as exc:
        raise MalformedInputError(f"failed to read CSV file: {exc}") from exc


def voucher_row(voucher: Voucher) -> list[str]:
    return [
        voucher.code,
        format_discount(voucher.discount_percent),
        format_date(voucher.expiry_date),
    ]


def render_vouchers(vouchers: Iterable[Voucher]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for voucher in vouchers:
        writer.writerow(voucher_row(voucher))
    return output.getvalue()
