# backend/sitecms/core/menus.py

from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core import menu_tree
from sitecms.core.errors import ConflictError, NotFoundError, ValidationError
from sitecms.db.guard import storage_guard
from sitecms.models.content import Page, Post
from sitecms.models.menu import Menu
from sitecms.models.site import Site
from sitecms.schemas.menu import MenuItem, MenuItemDraft

logger = logging.getLogger(__name__)

PUBLISHED = "published"


def menu_items(menu: Menu) -> List[MenuItem]:
    return [MenuItem.model_validate(raw) for raw in (menu.items or [])]


def _dump_items(items: Sequence[MenuItem]) -> list[dict]:
    return [item.model_dump(mode="json") for item in items]


class MenuService:
    """
    Menus of one site. Saving always replaces the whole items array.

    Conflict policy: last write wins. A caller that passes expected_version
    gets a ConflictError instead when someone else saved in between.
    """

    def __init__(self, db: AsyncSession, site: Site):
        self.db = db
        self.site = site

    # ---------------------------------------------------------
    # Menus
    # ---------------------------------------------------------
    async def list_menus(self) -> List[Menu]:
        stmt = (
            select(Menu)
            .where(Menu.site_id == self.site.id)
            .order_by(Menu.created_at.desc())
        )
        async with storage_guard(self.db, "load menus"):
            return list((await self.db.execute(stmt)).scalars().all())

    async def get_menu(self, menu_id: uuid.UUID) -> Menu:
        stmt = select(Menu).where(Menu.id == menu_id, Menu.site_id == self.site.id)
        async with storage_guard(self.db, "load menu"):
            menu = (await self.db.execute(stmt)).scalar_one_or_none()
        if menu is None:
            raise NotFoundError("Menu not found")
        return menu

    async def create_menu(self, name: str, location: str, items: Sequence[MenuItem] = ()) -> Menu:
        menu_tree.validate_items(items)

        menu = Menu(
            site_id=self.site.id,
            name=name,
            location=location,
            items=_dump_items(items),
            version=1,
        )
        async with storage_guard(self.db, "create menu"):
            self.db.add(menu)
            await self.db.commit()

        logger.info("Created menu %s (%s) on site=%s", menu.id, location, self.site.id)
        return menu

    async def save_menu(
        self,
        menu_id: uuid.UUID,
        *,
        name: str,
        location: str,
        items: Sequence[MenuItem],
        expected_version: Optional[int] = None,
    ) -> Menu:
        menu = await self.get_menu(menu_id)
        return await self._write(menu, items, name=name, location=location, expected_version=expected_version)

    async def delete_menu(self, menu_id: uuid.UUID) -> None:
        menu = await self.get_menu(menu_id)
        async with storage_guard(self.db, "delete menu"):
            await self.db.delete(menu)
            await self.db.commit()
        logger.info("Deleted menu %s on site=%s", menu_id, self.site.id)

    @staticmethod
    def _check_version(menu: Menu, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != menu.version:
            raise ConflictError(
                f"Menu was changed by someone else (version {menu.version}, you had {expected_version})",
                code="menu_version_conflict",
            )

    async def _write(
        self,
        menu: Menu,
        items: Sequence[MenuItem],
        *,
        name: Optional[str] = None,
        location: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Menu:
        self._check_version(menu, expected_version)
        menu_tree.validate_items(items)

        values = {"items": _dump_items(items), "version": Menu.version + 1}
        if name is not None:
            values["name"] = name
        if location is not None:
            values["location"] = location

        # Of two saves holding the same expected_version, only one matches the row.
        stmt = update(Menu).where(Menu.id == menu.id, Menu.site_id == self.site.id)
        if expected_version is not None:
            stmt = stmt.where(Menu.version == expected_version)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        async with storage_guard(self.db, "save menu"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                raise ConflictError(
                    "Menu was changed by someone else",
                    code="menu_version_conflict",
                )
            await self.db.commit()
            await self.db.refresh(menu)

        logger.info("Saved menu %s v%s (%d top-level items)", menu.id, menu.version, len(items))
        return menu

    # ---------------------------------------------------------
    # Items (load -> pure tree op -> full save)
    # ---------------------------------------------------------
    async def _resolve_targets(self, draft: MenuItemDraft) -> tuple[Optional[Page], Optional[Post]]:
        page = post = None
        if draft.type == "page":
            if draft.page_id is None:
                raise ValidationError("page_id is required for page items")
            page = await self._published(Page, draft.page_id)
        elif draft.type == "post":
            if draft.post_id is None:
                raise ValidationError("post_id is required for post items")
            post = await self._published(Post, draft.post_id)
        return page, post

    async def _published(self, model, entity_id: uuid.UUID):
        stmt = select(model).where(
            model.id == entity_id,
            model.site_id == self.site.id,
            model.status == PUBLISHED,
        )
        async with storage_guard(self.db, "load link target"):
            entity = (await self.db.execute(stmt)).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(f"Published {model.__name__.lower()} not found")
        return entity

    async def add_item(
        self,
        menu_id: uuid.UUID,
        draft: MenuItemDraft,
        expected_version: Optional[int] = None,
    ) -> Menu:
        menu = await self.get_menu(menu_id)
        page, post = await self._resolve_targets(draft)
        item = menu_tree.build_item(draft, page=page, post=post)
        items = menu_tree.add_item(menu_items(menu), item)
        return await self._write(menu, items, expected_version=expected_version)

    async def update_item(
        self,
        menu_id: uuid.UUID,
        item_id: str,
        draft: MenuItemDraft,
        expected_version: Optional[int] = None,
    ) -> Menu:
        menu = await self.get_menu(menu_id)
        current = menu_items(menu)
        existing = next((i for i in current if i.id == item_id), None)
        if existing is None:
            raise NotFoundError("Menu item not found")

        page, post = await self._resolve_targets(draft)
        item = menu_tree.build_item(draft, page=page, post=post, existing=existing)
        items = menu_tree.update_item(current, item)
        return await self._write(menu, items, expected_version=expected_version)

    async def remove_item(
        self,
        menu_id: uuid.UUID,
        item_id: str,
        expected_version: Optional[int] = None,
    ) -> Menu:
        menu = await self.get_menu(menu_id)
        items = menu_tree.remove_item(menu_items(menu), item_id)
        return await self._write(menu, items, expected_version=expected_version)

    async def reorder(
        self,
        menu_id: uuid.UUID,
        dragged_id: str,
        target_id: str,
        parent_id: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Menu:
        menu = await self.get_menu(menu_id)
        current = menu_items(menu)
        self._check_version(menu, expected_version)
        items = menu_tree.reorder_children(current, parent_id, dragged_id, target_id)
        if items == current:
            return menu
        return await self._write(menu, items, expected_version=expected_version)

    # ---------------------------------------------------------
    # Link targets for the item editor
    # ---------------------------------------------------------
    async def link_targets(self) -> dict:
        async with storage_guard(self.db, "load link targets"):
            pages = (
                await self.db.execute(
                    select(Page)
                    .where(Page.site_id == self.site.id, Page.status == PUBLISHED)
                    .order_by(Page.title.asc())
                )
            ).scalars().all()
            posts = (
                await self.db.execute(
                    select(Post)
                    .where(Post.site_id == self.site.id, Post.status == PUBLISHED)
                    .order_by(Post.created_at.desc())
                )
            ).scalars().all()

        return {
            "pages": [
                {"id": p.id, "title": p.title, "slug": p.slug, "url": menu_tree.page_url(p.slug)} for p in pages
            ],
            "posts": [
                {"id": p.id, "title": p.title, "slug": p.slug, "url": menu_tree.post_url(p.slug)} for p in posts
            ],
        }
