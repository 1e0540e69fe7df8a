# sitecms/api/v1/menus.py
from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.api.deps.site import get_current_role, get_current_site, require_capability
from sitecms.auth.permissions import Capability
from sitecms.core.menus import MenuService
from sitecms.db.session import get_db
from sitecms.models.site import Site
from sitecms.schemas.menu import (
    LinkTargetsOut,
    MenuCreate,
    MenuItemDraft,
    MenuOut,
    MenuReorder,
    MenuSave,
)

router = APIRouter(prefix="/menus", tags=["menus"])

manage_menus = require_capability(Capability.MANAGE_MENUS)


@router.get("", response_model=List[MenuOut], dependencies=[Depends(get_current_role)])
async def list_menus(
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).list_menus()


@router.post(
    "",
    response_model=MenuOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(manage_menus)],
)
async def create_menu(
    payload: MenuCreate,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).create_menu(payload.name, payload.location, payload.items)


@router.get("/link-targets", response_model=LinkTargetsOut, dependencies=[Depends(manage_menus)])
async def list_link_targets(
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    """
    Published pages and posts a menu item can point at.
    """
    return await MenuService(db, site).link_targets()


@router.get("/{menu_id}", response_model=MenuOut, dependencies=[Depends(get_current_role)])
async def get_menu(
    menu_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).get_menu(menu_id)


@router.put("/{menu_id}", response_model=MenuOut, dependencies=[Depends(manage_menus)])
async def save_menu(
    menu_id: uuid.UUID,
    payload: MenuSave,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    """
    Full replace of name, location and the whole items array.
    Last write wins unless expected_version is sent.
    """
    return await MenuService(db, site).save_menu(
        menu_id,
        name=payload.name,
        location=payload.location,
        items=payload.items,
        expected_version=payload.expected_version,
    )


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(manage_menus)])
async def delete_menu(
    menu_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    await MenuService(db, site).delete_menu(menu_id)
    return None


# ---------------------------------------------------------
# Items
# ---------------------------------------------------------
@router.post(
    "/{menu_id}/items",
    response_model=MenuOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(manage_menus)],
)
async def add_menu_item(
    menu_id: uuid.UUID,
    payload: MenuItemDraft,
    expected_version: Optional[int] = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).add_item(menu_id, payload, expected_version=expected_version)


@router.put("/{menu_id}/items/{item_id}", response_model=MenuOut, dependencies=[Depends(manage_menus)])
async def update_menu_item(
    menu_id: uuid.UUID,
    item_id: str,
    payload: MenuItemDraft,
    expected_version: Optional[int] = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).update_item(menu_id, item_id, payload, expected_version=expected_version)


@router.delete("/{menu_id}/items/{item_id}", response_model=MenuOut, dependencies=[Depends(manage_menus)])
async def remove_menu_item(
    menu_id: uuid.UUID,
    item_id: str,
    expected_version: Optional[int] = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    return await MenuService(db, site).remove_item(menu_id, item_id, expected_version=expected_version)


@router.post("/{menu_id}/reorder", response_model=MenuOut, dependencies=[Depends(manage_menus)])
async def reorder_menu_items(
    menu_id: uuid.UUID,
    payload: MenuReorder,
    db: AsyncSession = Depends(get_db),
    site: Site = Depends(get_current_site),
):
    """
    Drag-and-drop: move dragged_id to target_id's position (within parent_id's
    children when given).
    """
    return await MenuService(db, site).reorder(
        menu_id,
        payload.dragged_id,
        payload.target_id,
        parent_id=payload.parent_id,
        expected_version=payload.expected_version,
    )
