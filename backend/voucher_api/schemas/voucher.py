from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from voucher_api.models import Voucher
from voucher_api.services.importer import BatchImportResult, ImportResult
from voucher_api.services.validation import VoucherCandidate, format_date


class VoucherWriteRequest(BaseModel):
    # Range and format rules are enforced by the service layer, not here.
    voucher_code: str
    discount_percent: float | str
    expiry_date: str

    def to_candidate(self) -> VoucherCandidate:
        return VoucherCandidate(
            code=self.voucher_code,
            discount_percent=self.discount_percent,
            expiry_date=self.expiry_date,
        )


class VoucherBatchUploadRequest(BaseModel):
    vouchers: list[VoucherWriteRequest]


class VoucherResponse(BaseModel):
    id: int
    voucher_code: str
    discount_percent: float
    expiry_date: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, voucher: Voucher) -> "VoucherResponse":
        return cls(
            id=voucher.id,
            voucher_code=voucher.code,
            discount_percent=float(voucher.discount_percent),
            expiry_date=format_date(voucher.expiry_date),
            created_at=voucher.created_at,
            updated_at=voucher.updated_at,
        )


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ImportRowErrorResponse(BaseModel):
    row: int
    error: str


class ImportResultResponse(BaseModel):
    total_rows: int
    success: int
    failed: int
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResultResponse":
        return cls(
            total_rows=result.total_rows,
            success=result.success,
            failed=result.failed,
            errors=[ImportRowErrorResponse(row=item.row, error=item.error) for item in result.errors],
        )


class BatchImportResultResponse(BaseModel):
    total_received: int
    inserted: int
    duplicates: int
    duplicate_codes: list[str]
    errors: list[str]

    @classmethod
    def from_result(cls, result: BatchImportResult) -> "BatchImportResultResponse":
        return cls(
            total_received=result.total_received,
            inserted=result.inserted,
            duplicates=result.duplicates,
            duplicate_codes=list(result.duplicate_codes),
            errors=list(result.errors),
        )
