# backend/sitecms/core/security.py

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from sitecms.core.config import settings

bearer_scheme = HTTPBearer(auto_error=True)

TOKEN_TYPE = "access"


def _unauthorized(detail: str = "Invalid token") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _clean_token(token: Optional[str]) -> str:
    """
    Tolerate what people paste into Swagger: whitespace, quotes and a
    leading 'Bearer '.
    """
    t = (token or "").strip().strip("'\"").strip()
    if t.lower().startswith("bearer "):
        t = t[7:].strip()
    return t


def generate_magic_code() -> str:
    return str(secrets.randbelow(900000) + 100000)  # 6 digits


def create_access_token(subject: uuid.UUID | str, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    expire_dt = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims: dict[str, Any] = {
        "sub": str(subject),
        "typ": TOKEN_TYPE,
        "exp": int(expire_dt.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Returns the user id carried in `sub`. Any problem (expired, bad
    signature, wrong type, non-UUID subject) is a 401.
    """
    token = _clean_token(token)
    if not token:
        raise _unauthorized()

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        raise _unauthorized()

    if payload.get("typ") != TOKEN_TYPE:
        raise _unauthorized()

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token subject")
