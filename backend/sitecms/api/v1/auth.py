# backend/sitecms/api/v1/auth.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core.config import settings
from sitecms.core.security import (
    bearer_scheme,
    create_access_token,
    decode_access_token,
    generate_magic_code,
)
from sitecms.db.base import as_aware
from sitecms.db.session import get_db
from sitecms.models.user import User
from sitecms.schemas.auth import (
    MagicCodeRequest,
    MagicCodeVerify,
    MeResponse,
    ProfileUpdateRequest,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def purge_expired_magic_codes(db: AsyncSession) -> None:
    """
    Clear all expired magic codes globally.
    """
    stmt = (
        update(User)
        .where(User.magic_code_expires_at.is_not(None))
        .where(User.magic_code_expires_at < _utcnow())
        .values(magic_code=None, magic_code_expires_at=None)
    )
    await db.execute(stmt)


@router.post("/request-code")
async def request_code(payload: MagicCodeRequest, db: AsyncSession = Depends(get_db)):
    """
    Body: {"email": "user@example.com"}
    Generates a magic code (stored on user record). The code is only echoed
    back outside production, to make local testing possible.
    """
    email = User.normalize_email(str(payload.email))

    await purge_expired_magic_codes(db)

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        user = User(email=email, is_active=True)
        db.add(user)
        await db.flush()

    code = generate_magic_code()
    user.magic_code = code
    user.magic_code_expires_at = _utcnow() + timedelta(minutes=settings.MAGIC_CODE_EXPIRY_MINUTES)
    await db.commit()

    resp = {"status": "ok", "expires_in_minutes": settings.MAGIC_CODE_EXPIRY_MINUTES}
    if not settings.is_production:
        resp["code"] = code
    return resp


@router.post("/verify-code", response_model=TokenResponse)
async def verify_code(payload: MagicCodeVerify, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """
    Body: {"email":"user@example.com","code":"123456"}
    Returns: access_token
    """
    email = User.normalize_email(str(payload.email))
    code = payload.code.strip()

    if not code:
        raise HTTPException(status_code=400, detail="code is required")

    await purge_expired_magic_codes(db)

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    if not user or not user.magic_code or not user.magic_code_expires_at:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if user.magic_code != code:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if as_aware(user.magic_code_expires_at) < _utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Code expired")

    # One-time use: clear after successful verification
    user.magic_code = None
    user.magic_code_expires_at = None
    await db.commit()

    logger.info("User %s signed in", user.id)
    return TokenResponse(access_token=create_access_token(subject=user.id))


async def get_current_user(
    credentials=Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency for protected endpoints.
    """
    user_id = decode_access_token(credentials.credentials)

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    return user


def _to_me_response(user: User) -> MeResponse:
    return MeResponse(
        id=str(user.id),
        email=user.email,
        is_active=user.is_active,
        full_name=user.full_name,
    )


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    return _to_me_response(user)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MeResponse:
    data = payload.model_dump(exclude_unset=True)

    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    if "full_name" in data:
        user.full_name = User.normalize_full_name(data["full_name"])

    await db.commit()
    return _to_me_response(user)


@router.post("/sign-out")
async def sign_out(user: User = Depends(get_current_user)):
    """
    Tokens are stateless; signing out means the client discards its token.
    Kept as an endpoint so clients have one call to make.
    """
    logger.info("User %s signed out", user.id)
    return {"status": "ok"}
