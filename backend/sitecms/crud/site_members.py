# sitecms/crud/site_members.py
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.site_invitation import SiteInvitation
from sitecms.models.site_member import SiteMember
from sitecms.models.user import User
from sitecms.db.base import utcnow


async def list_members_with_email(db: AsyncSession, site_id: uuid.UUID) -> List[Tuple[SiteMember, Optional[str]]]:
    """
    Memberships of a site, oldest first, each paired with the member's email.
    """
    stmt = (
        select(SiteMember, User.email)
        .outerjoin(User, User.id == SiteMember.user_id)
        .where(SiteMember.site_id == site_id)
        .order_by(SiteMember.created_at.asc(), SiteMember.id.asc())
    )
    res = await db.execute(stmt)
    return [(row[0], row[1]) for row in res.all()]


async def get_member_in_site(
    db: AsyncSession,
    site_id: uuid.UUID,
    member_id: uuid.UUID,
) -> Optional[SiteMember]:
    """
    Always filtered by site id too, so a member id from another site never matches.
    """
    stmt = select(SiteMember).where(
        SiteMember.id == member_id,
        SiteMember.site_id == site_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_membership(
    db: AsyncSession,
    site_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Optional[SiteMember]:
    stmt = select(SiteMember).where(
        SiteMember.site_id == site_id,
        SiteMember.user_id == user_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_pending_invitation(
    db: AsyncSession,
    site_id: uuid.UUID,
    email: str,
) -> Optional[SiteInvitation]:
    # Pending = accepted_at is NULL and expires_at is in the future
    stmt = (
        select(SiteInvitation)
        .where(SiteInvitation.site_id == site_id)
        .where(SiteInvitation.email == email)
        .where(SiteInvitation.accepted_at.is_(None))
        .where(SiteInvitation.expires_at > utcnow())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()
