from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncGenerator
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.api.v1.auth import get_current_user
from sitecms.auth.permissions import Capability, has_permission
from sitecms.core.roles import SiteRole
from sitecms.core.site_context import SiteContext
from sitecms.crud.sites import get_site
from sitecms.db.session import get_db
from sitecms.models.site import Site
from sitecms.models.user import User

logger = logging.getLogger(__name__)


async def get_site_context(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> AsyncGenerator[SiteContext, None]:
    """
    One SiteContext per request: sites loaded + active selection restored on
    the way in, cleared on the way out.
    """
    ctx = SiteContext(db, user)
    await ctx.init()
    try:
        yield ctx
    finally:
        ctx.teardown()


async def get_current_site(
    x_site_id: Optional[str] = Header(default=None, alias="X-Site-Id"),
    db: AsyncSession = Depends(get_db),
    ctx: SiteContext = Depends(get_site_context),
) -> Site:
    """
    Site from the X-Site-Id header; without the header, the actor's active site.
    The actor must own or belong to it.
    """
    if not x_site_id:
        site = ctx.get_active_site()
        if site is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="X-Site-Id header is required (no active site selected)",
            )
        return site

    try:
        site_uuid = uuid.UUID(x_site_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="X-Site-Id must be a valid UUID",
        )

    site = ctx.find_site(site_uuid)
    if site is not None:
        return site

    if await get_site(db, site_uuid) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not a member of this site")


async def get_current_role(
    site: Site = Depends(get_current_site),
    ctx: SiteContext = Depends(get_site_context),
) -> SiteRole:
    role = await ctx.role_for(site)
    if role is None:
        # No membership, or the lookup failed: deny either way.
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "rbac_role_missing", "message": "You have no role on this site."},
        )
    return role


def require_capability(*required: Capability) -> Callable:
    """
    Gate an endpoint on one or more capabilities of the actor's role on the
    current site. All listed capabilities are required.
    """

    async def _checker(role: SiteRole = Depends(get_current_role)) -> SiteRole:
        missing = [c for c in required if not has_permission(role, c)]
        if missing:
            logger.warning("Denied %s: role=%s missing=%s", [c.value for c in required], role.value, [c.value for c in missing])
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "rbac_forbidden",
                    "message": "You do not have permission to perform this action.",
                    "required": [c.value for c in required],
                    "missing": [c.value for c in missing],
                    "role": role.value,
                },
            )
        return role

    return _checker
