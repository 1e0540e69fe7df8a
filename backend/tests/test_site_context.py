# tests/test_site_context.py
from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from sitecms.auth.permissions import Capability, has_permission
from sitecms.core.errors import (
    DuplicateSlugError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from sitecms.core.roles import SiteRole
from sitecms.core.site_context import SiteContext, normalize_slug
from sitecms.crud.preferences import ACTIVE_SITE_KEY, PreferenceStore
from sitecms.models.site_member import SiteMember


async def open_context(db, user) -> SiteContext:
    return await SiteContext(db, user).init()


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Atlas Tours", "atlas-tours"),
        ("  Atlas   Tours!! ", "atlas-tours"),
        ("--Hello__World--", "hello-world"),
        ("Café 2024", "caf-2024"),
        ("!!!", ""),
        (None, ""),
    ],
)
def test_normalize_slug(raw, expected):
    assert normalize_slug(raw) == expected


@pytest.mark.asyncio
async def test_create_site_makes_actor_owner_and_active(db, create_user):
    actor = await create_user("a@example.com")
    ctx = await open_context(db, actor)
    assert ctx.is_ready
    assert ctx.get_active_site() is None

    site = await ctx.create_site("Atlas Tours", "Atlas Tours")

    assert site.slug == "atlas-tours"
    assert site.owner_id == actor.id
    assert ctx.get_active_site().id == site.id
    assert [s.id for s in ctx.sites] == [site.id]

    role = await ctx.role_for(site)
    assert role is SiteRole.OWNER
    assert has_permission(role, Capability.DELETE_SITE)

    # Ownership is not a membership row.
    rows = await db.execute(select(func.count()).select_from(SiteMember).where(SiteMember.site_id == site.id))
    assert rows.scalar_one() == 0


@pytest.mark.asyncio
async def test_create_site_rejects_duplicate_slug(db, create_user, create_site):
    other = await create_user()
    await create_site(other, slug="atlas-tours")

    actor = await create_user()
    ctx = await open_context(db, actor)

    with pytest.raises(DuplicateSlugError):
        await ctx.create_site("Atlas", "atlas tours")
    assert ctx.sites == []


@pytest.mark.asyncio
@pytest.mark.parametrize("name, slug", [("   ", "fine"), ("Fine", "***")])
async def test_create_site_validation(db, create_user, name, slug):
    actor = await create_user()
    ctx = await open_context(db, actor)

    with pytest.raises(ValidationError):
        await ctx.create_site(name, slug)


@pytest.mark.asyncio
async def test_list_sites_includes_memberships_newest_first(db, create_user, create_site, add_member):
    actor = await create_user()
    other = await create_user()

    shared = await create_site(other)
    await add_member(shared, actor, "editor")
    not_mine = await create_site(other)

    ctx = await open_context(db, actor)
    own = await ctx.create_site("Mine", "mine")

    ids = [s.id for s in await ctx.list_sites()]
    assert ids == [own.id, shared.id]
    assert not_mine.id not in ids


@pytest.mark.asyncio
async def test_delete_active_site_falls_back_to_newest_remaining(db, create_user):
    actor = await create_user()
    ctx = await open_context(db, actor)

    oldest = await ctx.create_site("One", "one")
    middle = await ctx.create_site("Two", "two")
    newest = await ctx.create_site("Three", "three")
    assert ctx.get_active_site().id == newest.id

    await ctx.delete_site(newest.id)

    assert ctx.get_active_site().id == middle.id
    assert [s.id for s in ctx.sites] == [middle.id, oldest.id]

    stored = await PreferenceStore(db, actor.id).get(ACTIVE_SITE_KEY)
    assert stored == str(middle.id)


@pytest.mark.asyncio
async def test_delete_inactive_site_keeps_selection(db, create_user):
    actor = await create_user()
    ctx = await open_context(db, actor)

    first = await ctx.create_site("One", "one")
    second = await ctx.create_site("Two", "two")
    await ctx.set_active_site(first.id)

    await ctx.delete_site(second.id)

    assert ctx.get_active_site().id == first.id


@pytest.mark.asyncio
async def test_delete_last_site_clears_active(db, create_user):
    actor = await create_user()
    ctx = await open_context(db, actor)
    site = await ctx.create_site("Only", "only")

    await ctx.delete_site(site.id)

    assert ctx.get_active_site() is None
    assert ctx.sites == []


@pytest.mark.asyncio
async def test_admin_cannot_delete_site(db, create_user, create_site, add_member):
    owner = await create_user()
    admin = await create_user()
    site = await create_site(owner)
    await add_member(site, admin, "admin")

    ctx = await open_context(db, admin)
    with pytest.raises(PermissionDenied):
        await ctx.delete_site(site.id)


@pytest.mark.asyncio
async def test_set_active_site_must_be_in_list(db, create_user, create_site):
    actor = await create_user()
    other = await create_user()
    foreign = await create_site(other)

    ctx = await open_context(db, actor)
    with pytest.raises(NotFoundError):
        await ctx.set_active_site(foreign.id)
    with pytest.raises(NotFoundError):
        await ctx.set_active_site(uuid.uuid4())


@pytest.mark.asyncio
async def test_active_site_survives_a_new_context(db, create_user):
    actor = await create_user()
    ctx = await open_context(db, actor)
    first = await ctx.create_site("One", "one")
    await ctx.create_site("Two", "two")
    await ctx.set_active_site(first)
    ctx.teardown()
    assert not ctx.is_ready
    assert ctx.sites == []

    again = await open_context(db, actor)
    assert again.get_active_site().id == first.id


@pytest.mark.asyncio
async def test_stale_active_preference_falls_back_to_newest(db, create_user):
    actor = await create_user()
    ctx = await open_context(db, actor)
    await ctx.create_site("One", "one")
    newest = await ctx.create_site("Two", "two")

    await PreferenceStore(db, actor.id).set(ACTIVE_SITE_KEY, "not-a-uuid")
    await db.commit()

    again = await open_context(db, actor)
    assert again.get_active_site().id == newest.id


@pytest.mark.asyncio
async def test_update_site_requires_manage_settings(db, create_user, create_site, add_member):
    owner = await create_user()
    editor = await create_user()
    site = await create_site(owner)
    await add_member(site, editor, "editor")

    ctx = await open_context(db, editor)
    with pytest.raises(PermissionDenied):
        await ctx.update_site(site.id, {"site_title": "Nope"})


@pytest.mark.asyncio
async def test_update_site_patches_allowed_fields(db, create_user, create_site, add_member):
    owner = await create_user()
    admin = await create_user()
    site = await create_site(owner)
    await add_member(site, admin, "admin")

    ctx = await open_context(db, admin)
    updated = await ctx.update_site(site.id, {"theme": "ocean-breeze", "site_title": "Atlas", "name": "  Atlas  Tours "})

    assert updated.theme == "ocean-breeze"
    assert updated.site_title == "Atlas"
    assert updated.name == "Atlas Tours"
    assert ctx.get_active_site().theme == "ocean-breeze"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields",
    [{"theme": "neon-disco"}, {"slug": "new-slug"}, {"owner_id": str(uuid.uuid4())}, {"name": "  "}],
)
async def test_update_site_rejects_bad_fields(db, create_user, fields):
    owner = await create_user()
    ctx = await open_context(db, owner)
    site = await ctx.create_site("Atlas", "atlas")

    with pytest.raises(ValidationError):
        await ctx.update_site(site.id, fields)
