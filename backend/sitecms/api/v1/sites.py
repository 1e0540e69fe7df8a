# sitecms/api/v1/sites.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status

from sitecms.api.deps.site import get_current_site, get_site_context
from sitecms.auth.permissions import Capability, has_permission, permission_matrix
from sitecms.core.site_context import SiteContext
from sitecms.models.site import Site
from sitecms.schemas.site import (
    ActiveSiteIn,
    ActiveSiteOut,
    SiteCreate,
    SiteOut,
    SitePermissionsOut,
    SiteUpdate,
)

router = APIRouter(prefix="/sites", tags=["sites"])


@router.get("", response_model=List[SiteOut])
async def list_my_sites(ctx: SiteContext = Depends(get_site_context)):
    """
    Sites the current user owns or is a member of, newest first.
    """
    return ctx.sites


@router.post("", response_model=SiteOut, status_code=status.HTTP_201_CREATED)
async def create_site(
    payload: SiteCreate,
    ctx: SiteContext = Depends(get_site_context),
):
    """
    Creator becomes the owner (site.owner_id) and the new site becomes active.
    """
    return await ctx.create_site(payload.name, payload.slug or payload.name)


@router.get("/active", response_model=ActiveSiteOut)
async def get_active_site(ctx: SiteContext = Depends(get_site_context)):
    return ActiveSiteOut(site=ctx.get_active_site())


@router.put("/active", response_model=ActiveSiteOut)
async def set_active_site(
    payload: ActiveSiteIn,
    ctx: SiteContext = Depends(get_site_context),
):
    site = await ctx.set_active_site(payload.site_id)
    return ActiveSiteOut(site=site)


@router.get("/current/permissions", response_model=SitePermissionsOut)
async def get_my_permissions(
    site: Site = Depends(get_current_site),
    ctx: SiteContext = Depends(get_site_context),
):
    """
    The actor's role on the current site and the capabilities it grants.
    Role is null when the actor has none (everything false).
    """
    role = await ctx.role_for(site)
    return SitePermissionsOut(
        site_id=site.id,
        role=role.value if role else None,
        permissions=permission_matrix(role),
        is_owner=has_permission(role, Capability.DELETE_SITE),
        is_admin=has_permission(role, Capability.MANAGE_SETTINGS),
    )


@router.patch("/{site_id}", response_model=SiteOut)
async def update_site(
    site_id: uuid.UUID,
    payload: SiteUpdate,
    ctx: SiteContext = Depends(get_site_context),
):
    """
    Partial update; requires canManageSettings on that site.
    """
    return await ctx.update_site(site_id, payload.model_dump(exclude_unset=True))


@router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_site(
    site_id: uuid.UUID,
    ctx: SiteContext = Depends(get_site_context),
):
    """
    Owner only (canDeleteSite). If it was the active site, the newest
    remaining site becomes active.
    """
    await ctx.delete_site(site_id)
    return None
