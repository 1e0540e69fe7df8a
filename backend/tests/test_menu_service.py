# tests/test_menu_service.py
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import select

from sitecms.core.errors import ConflictError
from sitecms.core.menus import MenuService, menu_items
from sitecms.models.menu import Menu
from sitecms.schemas.menu import MenuItem


def item(item_id: str) -> MenuItem:
    return MenuItem(id=item_id, label=item_id.title(), url=f"/{item_id}")


async def stored_menu(sessionmaker, menu_id):
    async with sessionmaker() as session:
        return (await session.execute(select(Menu).where(Menu.id == menu_id))).scalar_one()


@pytest.mark.asyncio
async def test_concurrent_saves_with_same_version_one_wins(sessionmaker, db, create_user, create_site):
    owner = await create_user()
    site = await create_site(owner)
    menu = await MenuService(db, site).create_menu("Main", "primary", [item("home")])

    async def save(items):
        async with sessionmaker() as session:
            try:
                saved = await MenuService(session, site).save_menu(
                    menu.id, name="Main", location="primary", items=items, expected_version=1
                )
                return ("ok", saved.version)
            except ConflictError as exc:
                return ("conflict", exc.code)

    results = await asyncio.gather(save([item("a")]), save([item("b")]))

    assert sorted(r[0] for r in results) == ["conflict", "ok"]
    assert ("conflict", "menu_version_conflict") in results

    final = await stored_menu(sessionmaker, menu.id)
    assert final.version == 2
    winner = "a" if results[0][0] == "ok" else "b"
    assert [i.id for i in menu_items(final)] == [winner]


@pytest.mark.asyncio
async def test_stale_loaded_menu_cannot_overwrite(sessionmaker, db, create_user, create_site):
    owner = await create_user()
    site = await create_site(owner)
    menu = await MenuService(db, site).create_menu("Main", "primary", [item("home")])

    async with sessionmaker() as first, sessionmaker() as second:
        first_service = MenuService(first, site)
        held = await first_service.get_menu(menu.id)
        assert held.version == 1

        await MenuService(second, site).save_menu(
            menu.id, name="Main", location="primary", items=[item("b")], expected_version=1
        )

        # `held` still reads version 1, so only the database can see the clash.
        with pytest.raises(ConflictError):
            await first_service._write(held, [item("a")], expected_version=1)

    final = await stored_menu(sessionmaker, menu.id)
    assert final.version == 2
    assert [i.id for i in menu_items(final)] == ["b"]


@pytest.mark.asyncio
async def test_save_without_version_bumps_and_wins(db, create_user, create_site):
    owner = await create_user()
    site = await create_site(owner)
    service = MenuService(db, site)
    menu = await service.create_menu("Main", "primary", [item("home")])

    saved = await service.save_menu(menu.id, name="Footer", location="footer", items=[item("a")])
    assert (saved.version, saved.name, saved.location) == (2, "Footer", "footer")
    saved = await service.save_menu(menu.id, name="Footer", location="footer", items=[item("b")])
    assert saved.version == 3
    assert [i.id for i in menu_items(saved)] == ["b"]


@pytest.mark.asyncio
async def test_noop_reorder_still_rejects_stale_version(db, create_user, create_site):
    owner = await create_user()
    site = await create_site(owner)
    service = MenuService(db, site)
    menu = await service.create_menu("Main", "primary", [item("home"), item("about")])
    await service.save_menu(menu.id, name="Main", location="primary", items=[item("home"), item("about")])

    with pytest.raises(ConflictError):
        await service.reorder(menu.id, "home", "home", expected_version=1)

    # Current version with nothing to move: no write.
    unchanged = await service.reorder(menu.id, "home", "home", expected_version=2)
    assert unchanged.version == 2
