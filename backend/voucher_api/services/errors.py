from __future__ import annotations


class VoucherError(ValueError):
    """Recoverable business-rule failure for a voucher operation."""

    code = "VOUCHER_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class VoucherValidationError(VoucherError):
    code = "VALIDATION_ERROR"


class DuplicateCodeError(VoucherError):
    code = "DUPLICATE_CODE"

    def __init__(self, voucher_code: str) -> None:
        super().__init__("voucher code already exists")
        self.voucher_code = voucher_code


class VoucherNotFoundError(VoucherError):
    code = "NOT_FOUND"

    def __init__(self, voucher_id: int) -> None:
        super().__init__("voucher not found")
        self.voucher_id = voucher_id


class MalformedInputError(VoucherError):
    code = "MALFORMED_INPUT"


class EmptyImportError(MalformedInputError):
    code = "EMPTY_IMPORT"

    def __init__(self) -> None:
        super().__init__("CSV file is empty or has no data rows")


class PersistenceError(RuntimeError):
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation
