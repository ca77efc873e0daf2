from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from voucher_api.models import Voucher
from voucher_api.services.errors import DuplicateCodeError, VoucherNotFoundError, VoucherValidationError
from voucher_api.services.validation import ValidationReason, VoucherCandidate
from voucher_api.services.vouchers import VoucherService


class FakeRepository:
    def __init__(self, vouchers: list[Voucher] | None = None) -> None:
        self.vouchers = {voucher.id: voucher for voucher in vouchers or []}
        self.calls: list[tuple[str, object]] = []
        self._next_id = max(self.vouchers, default=0) + 1

    def find_by_id(self, voucher_id: int, *, include_deleted: bool = False) -> Voucher | None:
        self.calls.append(("find_by_id", voucher_id))
        voucher = self.vouchers.get(voucher_id)
        if voucher is None or (voucher.deleted_at is not None and not include_deleted):
            return None
        return voucher

    def find_by_code(self, code: str) -> Voucher | None:
        self.calls.append(("find_by_code", code))
        for voucher in self.vouchers.values():
            if voucher.code == code and voucher.deleted_at is None:
                return voucher
        return None

    def insert_one(self, voucher: Voucher) -> Voucher:
        self.calls.append(("insert_one", voucher.code))
        voucher.id = self._next_id
        self._next_id += 1
        self.vouchers[voucher.id] = voucher
        return voucher

    def update_one(self, voucher: Voucher) -> Voucher:
        self.calls.append(("update_one", voucher.id))
        self.vouchers[voucher.id] = voucher
        return voucher

    def soft_delete_by_id(self, voucher_id: int) -> None:
        self.calls.append(("soft_delete_by_id", voucher_id))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


def _voucher(voucher_id: int, code: str, discount: str = "10.00") -> Voucher:
    return Voucher(id=voucher_id, code=code, discount_percent=Decimal(discount), expiry_date=date(2099, 1, 1))


def _candidate(code="NEW10", discount="10", expiry="2099-01-01"):
    return VoucherCandidate(code=code, discount_percent=discount, expiry_date=expiry)


def test_create_persists_validated_voucher():
    repo = FakeRepository()
    service = VoucherService(repo)

    voucher = service.create(_candidate(discount=15))

    assert voucher.id == 1
    assert voucher.discount_percent == Decimal("15.00")
    assert voucher.expiry_date == date(2099, 1, 1)
    assert repo.call_names() == ["find_by_code", "insert_one"]


def test_create_rejects_duplicate_code_before_validation():
    repo = FakeRepository([_voucher(1, "TAKEN")])
    service = VoucherService(repo)

    with pytest.raises(DuplicateCodeError):
        service.create(_candidate(code="TAKEN", discount="500"))
    assert "insert_one" not in repo.call_names()


def test_create_rejects_out_of_range_discount():
    service = VoucherService(FakeRepository())
    with pytest.raises(VoucherValidationError) as exc_info:
        service.create(_candidate(discount="0"))
    assert exc_info.value.code == ValidationReason.DISCOUNT_OUT_OF_RANGE


def test_create_rejects_past_expiry():
    service = VoucherService(FakeRepository())
    with pytest.raises(VoucherValidationError) as exc_info:
        service.create(_candidate(expiry="2026-10-18"), today=date(2026, 10, 19))
    assert exc_info.value.code == ValidationReason.EXPIRY_IN_PAST


def test_update_with_unchanged_code_skips_duplicate_check():
    repo = FakeRepository([_voucher(5, "KEEP")])
    service = VoucherService(repo)

    voucher = service.update(5, _candidate(code="KEEP", discount="50"))

    assert voucher.discount_percent == Decimal("50.00")
    assert "find_by_code" not in repo.call_names()
    assert repo.call_names() == ["find_by_id", "update_one"]


def test_update_to_taken_code_fails():
    repo = FakeRepository([_voucher(1, "FIRST"), _voucher(2, "SECOND")])
    service = VoucherService(repo)

    with pytest.raises(DuplicateCodeError):
        service.update(2, _candidate(code="FIRST"))
    assert "update_one" not in repo.call_names()


def test_update_missing_voucher_never_reaches_upsert():
    repo = FakeRepository()
    service = VoucherService(repo)

    with pytest.raises(VoucherNotFoundError):
        service.update(99, _candidate())
    assert repo.call_names() == ["find_by_id"]


def test_update_revalidates_fields():
    repo = FakeRepository([_voucher(3, "CODE")])
    service = VoucherService(repo)

    with pytest.raises(VoucherValidationError) as exc_info:
        service.update(3, _candidate(code="CODE", discount="101"))
    assert exc_info.value.code == ValidationReason.DISCOUNT_OUT_OF_RANGE
    assert repo.vouchers[3].discount_percent == Decimal("10.00")


def test_delete_missing_voucher_makes_no_delete_call():
    repo = FakeRepository()
    service = VoucherService(repo)

    with pytest.raises(VoucherNotFoundError):
        service.delete(42)
    assert "soft_delete_by_id" not in repo.call_names()


def test_delete_existing_voucher():
    repo = FakeRepository([_voucher(7, "BYE")])
    VoucherService(repo).delete(7)
    assert repo.calls[-1] == ("soft_delete_by_id", 7)


def test_service_against_database(repository):
    service = VoucherService(repository)
    created = service.create(_candidate(code="DB10"))
    assert created.id is not None

    updated = service.update(created.id, _candidate(code="DB20", discount="20"))
    assert updated.code == "DB20"
    assert service.get(created.id).discount_percent == Decimal("20.00")

    service.delete(created.id)
    with pytest.raises(VoucherNotFoundError):
        service.get(created.id)
    assert repository.find_by_id(created.id, include_deleted=True) is not None
