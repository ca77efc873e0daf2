from __future__ import annotations

import structlog
from fastapi import APIRouter

from voucher_api.schemas.auth import LoginRequest
from voucher_api.security import create_access_token

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest) -> dict:
    # Credentials are not checked; any well-formed login receives a token.
    token = create_access_token(payload.email)
    logger.info("login_succeeded", email=payload.email)
    return {"ok": True, "data": {"token": token, "user": {"email": payload.email}}}
