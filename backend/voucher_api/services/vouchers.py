from __future__ import annotations

from datetime import date

import structlog

from voucher_api.models import Voucher
from voucher_api.repositories.vouchers import VoucherRepository
from voucher_api.services.errors import DuplicateCodeError, VoucherNotFoundError
from voucher_api.services.validation import VoucherCandidate, validate_candidate

logger = structlog.get_logger(__name__)


class VoucherService:
    def __init__(self, repository: VoucherRepository) -> None:
        self.repository = repository

    def list_vouchers(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        sort_by: str | None = None,
        sort_order: str = "desc",
    ) -> tuple[list[Voucher], int]:
        return self.repository.find_paged(page, limit, search, sort_by, sort_order)

    def get(self, voucher_id: int) -> Voucher:
        voucher = self.repository.find_by_id(voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        return voucher

    def create(self, candidate: VoucherCandidate, *, today: date | None = None) -> Voucher:
        self._ensure_code_available(candidate.code)
        validated = validate_candidate(candidate, today=today)

        voucher = Voucher(
            code=validated.code,
            discount_percent=validated.discount_percent,
            expiry_date=validated.expiry_date,
        )
        voucher = self.repository.insert_one(voucher)
        logger.info("voucher_created", voucher_id=voucher.id, code=voucher.code)
        return voucher

    def update(self, voucher_id: int, candidate: VoucherCandidate, *, today: date | None = None) -> Voucher:
        # update_one() upserts, so the row must be confirmed to exist first.
        voucher = self.get(voucher_id)

        if candidate.code != voucher.code:
            self._ensure_code_available(candidate.code)
        validated = validate_candidate(candidate, today=today)

        voucher.code = validated.code
        voucher.discount_percent = validated.discount_percent
        voucher.expiry_date = validated.expiry_date
        voucher = self.repository.update_one(voucher)
        logger.info("voucher_updated", voucher_id=voucher.id, code=voucher.code)
        return voucher

    def delete(self, voucher_id: int) -> None:
        self.get(voucher_id)
        self.repository.soft_delete_by_id(voucher_id)
        logger.info("voucher_deleted", voucher_id=voucher_id)

    def _ensure_code_available(self, code: str) -> None:
        if self.repository.find_by_code(code) is not None:
            raise DuplicateCodeError(code)
