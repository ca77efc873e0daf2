from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

import structlog

from voucher_api.models import Voucher
from voucher_api.repositories.vouchers import VoucherRepository
from voucher_api.services.csv_codec import parse_rows, render_vouchers
from voucher_api.services.duplicates import DuplicateResolver
from voucher_api.services.errors import EmptyImportError, VoucherValidationError
from voucher_api.services.validation import (
    ValidatedVoucher,
    ValidationReason,
    VoucherCandidate,
    check_discount_range,
    check_expiry_date,
    parse_discount,
    parse_expiry_date,
    validate_candidate,
    validate_code,
)

logger = structlog.get_logger(__name__)

CSV_MIN_COLUMNS = 3
# Row numbers are 1-based and the header occupies row 1.
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class ImportRowError:
    row: int
    error: str


@dataclass
class ImportResult:
    total_rows: int
    success: int = 0
    failed: int = 0
    errors: list[ImportRowError] = field(default_factory=list)


@dataclass
class BatchImportResult:
    total_received: int
    inserted: int = 0
    duplicates: int = 0
    duplicate_codes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class VoucherImporter:
    """Bulk ingestion and export of vouchers.

    The CSV path looks up each row's code on its own so that errors can carry
    the row number. The structured batch path resolves every code against
    storage in one query up front. In both, a bad record is reported and
    skipped, and the accepted records are written with a single bulk insert.
    """

    def __init__(self, repository: VoucherRepository, *, export_max_rows: int = 100_000) -> None:
        self.repository = repository
        self.duplicates = DuplicateResolver(repository)
        self.export_max_rows = export_max_rows

    def import_csv(self, content: bytes, *, today: date | None = None) -> ImportResult:
        rows = parse_rows(content)
        if len(rows) < 2:
            raise EmptyImportError()

        data_rows = rows[1:]
        result = ImportResult(total_rows=len(data_rows))
        accepted: list[ValidatedVoucher] = []
        first_seen: dict[str, int] = {}

        for offset, row in enumerate(data_rows):
            row_number = offset + FIRST_DATA_ROW
            try:
                validated = self._parse_csv_row(row, first_seen, today=today)
            except VoucherValidationError as exc:
                result.errors.append(ImportRowError(row=row_number, error=exc.message))
                result.failed += 1
                continue
            first_seen[validated.code] = row_number
            accepted.append(validated)

        self.repository.insert_many([_to_voucher(item) for item in accepted])
        result.success = len(accepted)

        logger.info(
            "voucher_csv_import_completed",
            total_rows=result.total_rows,
            success=result.success,
            failed=result.failed,
        )
        return result

    def import_batch(self, candidates: Sequence[VoucherCandidate], *, today: date | None = None) -> BatchImportResult:
        result = BatchImportResult(total_received=len(candidates))
        existing = self.duplicates.resolve(candidate.code for candidate in candidates)

        accepted: list[ValidatedVoucher] = []
        accepted_codes: set[str] = set()
        for candidate in candidates:
            if candidate.code in existing:
                result.duplicates += 1
                result.duplicate_codes.append(candidate.code)
                continue
            # Storage uniqueness was settled above; repeats inside this batch are rejected here.
            if candidate.code in accepted_codes:
                result.errors.append(f"{candidate.code}: duplicate code within batch")
                continue
            try:
                validated = validate_candidate(candidate, today=today)
            except VoucherValidationError as exc:
                result.errors.append(f"{candidate.code}: {exc.message}")
                continue
            accepted_codes.add(validated.code)
            accepted.append(validated)

        self.repository.insert_many([_to_voucher(item) for item in accepted])
        result.inserted = len(accepted)

        logger.info(
            "voucher_batch_import_completed",
            total_received=result.total_received,
            inserted=result.inserted,
            duplicates=result.duplicates,
            failed=len(result.errors),
        )
        return result

    def export_csv(self) -> str:
        vouchers, total = self.repository.find_paged(
            1,
            self.export_max_rows,
            sort_by="created_at",
            sort_order="asc",
        )
        if total > len(vouchers):
            logger.warning("voucher_export_truncated", total=total, exported=len(vouchers))
        return render_vouchers(vouchers)

    def _parse_csv_row(
        self,
        row: list[str],
        first_seen: dict[str, int],
        *,
        today: date | None = None,
    ) -> ValidatedVoucher:
        if len(row) < CSV_MIN_COLUMNS:
            raise VoucherValidationError(
                "insufficient columns (expected 3: voucher_code, discount_percent, expiry_date)",
                code=ValidationReason.INSUFFICIENT_COLUMNS,
            )

        code = validate_code(row[0].strip())
        if self.repository.find_by_code(code) is not None:
            raise VoucherValidationError(f"voucher code '{code}' already exists", code=ValidationReason.DUPLICATE_CODE)
        if code in first_seen:
            raise VoucherValidationError(
                f"voucher code '{code}' is duplicated in file (first seen at row {first_seen[code]})",
                code=ValidationReason.DUPLICATE_CODE,
            )

        discount = check_discount_range(parse_discount(row[1]))
        expiry = check_expiry_date(parse_expiry_date(row[2]), today=today)
        return ValidatedVoucher(code=code, discount_percent=discount, expiry_date=expiry)


def _to_voucher(validated: ValidatedVoucher) -> Voucher:
    return Voucher(
        code=validated.code,
        discount_percent=validated.discount_percent,
        expiry_date=validated.expiry_date,
    )
