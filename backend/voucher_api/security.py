from __future__ import annotations

import time
from typing import Any

from authlib.jose import JsonWebToken

from voucher_api.settings import settings


def _jwt() -> JsonWebToken:
    return JsonWebToken([settings.JWT_ALGORITHM])


def create_access_token(email: str, *, expires_in_seconds: int | None = None) -> str:
    now = int(time.time())
    ttl = expires_in_seconds if expires_in_seconds is not None else settings.JWT_EXPIRE_MINUTES * 60
    header = {"alg": settings.JWT_ALGORITHM, "typ": "JWT"}
    payload = {"sub": email, "email": email, "iat": now, "exp": now + ttl}
    token = _jwt().encode(header, payload, settings.JWT_SECRET_KEY)
    return token.decode("utf-8")


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry. Raises ``authlib.jose.errors.JoseError`` on failure."""
    claims = _jwt().decode(token, settings.JWT_SECRET_KEY)
    claims.validate(now=int(time.time()), leeway=0)
    return dict(claims)
