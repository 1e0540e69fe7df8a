# sitecms/crud/preferences.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.actor_preference import ActorPreference

ACTIVE_SITE_KEY = "cms.active_site_id"


class PreferenceStore:
    """
    Persisted per-user key/value store. Writes are flushed, not committed;
    the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession, user_id: uuid.UUID):
        self.db = db
        self.user_id = user_id

    async def _row(self, key: str) -> Optional[ActorPreference]:
        stmt = select(ActorPreference).where(
            ActorPreference.user_id == self.user_id,
            ActorPreference.key == key,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get(self, key: str) -> Optional[str]:
        row = await self._row(key)
        return row.value if row is not None else None

    async def set(self, key: str, value: Optional[str]) -> None:
        row = await self._row(key)
        if row is None:
            self.db.add(ActorPreference(user_id=self.user_id, key=key, value=value))
        else:
            row.value = value
        await self.db.flush()
