from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from authlib.jose.errors import JoseError
from sqlalchemy.orm import Session

from voucher_api.db import get_db
from voucher_api.repositories.vouchers import VoucherRepository
from voucher_api.security import decode_access_token
from voucher_api.services.importer import VoucherImporter
from voucher_api.services.vouchers import VoucherService
from voucher_api.settings import settings


def _unauthenticated(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"ok": False, "error": {"code": "UNAUTHENTICATED", "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(request: Request) -> str:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        raise _unauthenticated("Missing authorization header.")

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthenticated("Invalid authorization header format.")

    try:
        claims = decode_access_token(token.strip())
    except (JoseError, ValueError):
        raise _unauthenticated("Invalid or expired token.")

    email = claims.get("email")
    if not email:
        raise _unauthenticated("Invalid or expired token.")
    return email


def get_voucher_repository(db: Session = Depends(get_db)) -> VoucherRepository:
    return VoucherRepository(db)


def get_voucher_service(
    repository: VoucherRepository = Depends(get_voucher_repository),
) -> VoucherService:
    return VoucherService(repository)


def get_voucher_importer(
    repository: VoucherRepository = Depends(get_voucher_repository),
) -> VoucherImporter:
    return VoucherImporter(repository, export_max_rows=settings.EXPORT_MAX_ROWS)
