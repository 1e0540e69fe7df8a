# sitecms/api/v1/meta.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter

from sitecms.auth.permissions import role_table
from sitecms.core.roles import ASSIGNABLE_ROLES, ROLE_ORDER
from sitecms.core.themes import theme_catalog
from sitecms.schemas.site import RoleTableOut, ThemeOut

router = APIRouter(tags=["meta"])


@router.get("/roles", response_model=RoleTableOut)
async def list_roles():
    """
    The static role -> capability table, for role pickers and permission previews.
    """
    return RoleTableOut(
        roles=role_table(),
        assignable=[r.value for r in ROLE_ORDER if r in ASSIGNABLE_ROLES],
    )


@router.get("/themes", response_model=List[ThemeOut])
async def list_themes():
    return theme_catalog()
