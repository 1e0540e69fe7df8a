# sitecms/crud/sites.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.site import Site
from sitecms.models.site_member import SiteMember


async def list_sites_for_user(db: AsyncSession, user_id: uuid.UUID) -> List[Site]:
    """
    Every site the user owns or has a membership row on, newest first.
    Unbounded: site counts per user are expected to stay small.
    """
    is_member = exists().where(
        SiteMember.site_id == Site.id,
        SiteMember.user_id == user_id,
    )
    stmt = (
        select(Site)
        .where(or_(Site.owner_id == user_id, is_member))
        .order_by(Site.created_at.desc(), Site.id.desc())
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def get_site(db: AsyncSession, site_id: uuid.UUID) -> Optional[Site]:
    return await db.get(Site, site_id)


async def slug_exists(db: AsyncSession, slug: str) -> bool:
    stmt = select(Site.id).where(Site.slug == slug).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none() is not None
