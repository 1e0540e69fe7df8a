# backend/sitecms/db/guard.py

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core.errors import BackendError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def storage_guard(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Boundary between the core and the database: any SQLAlchemy failure is
    logged, the session rolled back, and a BackendError raised instead.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while trying to %s", action)
        await db.rollback()
        raise BackendError(f"Failed to {action}") from exc
