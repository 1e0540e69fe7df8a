# tests/test_role_resolver.py
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from sitecms.core.role_resolver import resolve_role
from sitecms.core.roles import SiteRole


@pytest.mark.asyncio
async def test_owner_wins_over_membership_row(db, create_user, create_site, add_member):
    owner = await create_user("owner@example.com")
    site = await create_site(owner)
    # Conflicting row for the owner; ownership still decides.
    await add_member(site, owner, "viewer")

    assert await resolve_role(db, owner, site) is SiteRole.OWNER


@pytest.mark.asyncio
async def test_member_gets_stored_role(db, create_user, create_site, add_member):
    owner = await create_user()
    editor = await create_user()
    site = await create_site(owner)
    await add_member(site, editor, "editor")

    assert await resolve_role(db, editor, site) is SiteRole.EDITOR


@pytest.mark.asyncio
async def test_stranger_has_no_role(db, create_user, create_site):
    owner = await create_user()
    stranger = await create_user()
    site = await create_site(owner)

    assert await resolve_role(db, stranger, site) is None


@pytest.mark.asyncio
async def test_membership_on_other_site_does_not_leak(db, create_user, create_site, add_member):
    owner = await create_user()
    member = await create_user()
    site_a = await create_site(owner)
    site_b = await create_site(owner)
    await add_member(site_b, member, "admin")

    assert await resolve_role(db, member, site_a) is None
    assert await resolve_role(db, member, site_b) is SiteRole.ADMIN


@pytest.mark.asyncio
async def test_missing_actor_or_site(db, create_user, create_site):
    owner = await create_user()
    site = await create_site(owner)

    assert await resolve_role(db, None, site) is None
    assert await resolve_role(db, owner, None) is None


@pytest.mark.asyncio
async def test_unknown_stored_role_is_no_role(db, create_user, create_site, add_member):
    owner = await create_user()
    member = await create_user()
    site = await create_site(owner)
    await add_member(site, member, "superuser")

    assert await resolve_role(db, member, site) is None


@pytest.mark.asyncio
async def test_lookup_failure_is_no_role(db, create_user, create_site, add_member, monkeypatch):
    owner = await create_user()
    member = await create_user()
    site = await create_site(owner)
    await add_member(site, member, "admin")

    async def _boom(*args, **kwargs):
        raise OperationalError("SELECT role", {}, Exception("connection lost"))

    monkeypatch.setattr(db, "execute", _boom)

    assert await resolve_role(db, member, site) is None
    # Owner path never touches storage.
    assert await resolve_role(db, owner, site) is SiteRole.OWNER
