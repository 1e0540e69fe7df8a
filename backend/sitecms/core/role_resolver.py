# backend/sitecms/core/role_resolver.py

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core.roles import SiteRole, parse_role
from sitecms.models.site import Site
from sitecms.models.site_member import SiteMember
from sitecms.models.user import User

logger = logging.getLogger(__name__)


async def resolve_role(db: AsyncSession, actor: Optional[User], site: Optional[Site]) -> Optional[SiteRole]:
    """
    Effective role of `actor` on `site`:
      1) site.owner_id == actor.id -> OWNER (no query)
      2) membership row for (site.id, actor.id) -> its role
      3) no row -> None

    A storage failure is logged and also yields None. Callers treat None as
    "no access", so a failed lookup never grants anything.
    """
    if actor is None or site is None:
        return None

    if site.owner_id == actor.id:
        return SiteRole.OWNER

    stmt = select(SiteMember.role).where(
        SiteMember.site_id == site.id,
        SiteMember.user_id == actor.id,
    )
    try:
        raw_role = (await db.execute(stmt)).scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception("Role lookup failed for user=%s site=%s", actor.id, site.id)
        return None

    if raw_role is None:
        return None

    role = parse_role(raw_role)
    if role is None:
        logger.warning("Unknown role %r on membership user=%s site=%s", raw_role, actor.id, site.id)
        return None
    return role
