# backend/sitecms/core/site_context.py

from __future__ import annotations

import logging
import re
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth.permissions import Capability, has_permission
from sitecms.core.errors import (
    DuplicateSlugError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from sitecms.core.role_resolver import resolve_role
from sitecms.core.roles import SiteRole
from sitecms.core.themes import DEFAULT_THEME, is_known_theme
from sitecms.crud.preferences import ACTIVE_SITE_KEY, PreferenceStore
from sitecms.crud.sites import list_sites_for_user, slug_exists
from sitecms.db.guard import storage_guard
from sitecms.models.site import Site
from sitecms.models.user import User

logger = logging.getLogger(__name__)

_SLUG_JUNK_RE = re.compile(r"[^a-z0-9]+")

# Partial updates may touch these columns only. slug and owner_id are fixed.
UPDATABLE_SITE_FIELDS = frozenset(
    {
        "name",
        "theme",
        "site_title",
        "site_tagline",
        "site_logo_url",
        "site_favicon_url",
        "custom_css",
    }
)


def normalize_slug(value: Optional[str]) -> str:
    """
    "Atlas Tours!" -> "atlas-tours": lowercase, runs of anything outside
    [a-z0-9] collapse to one hyphen, no leading/trailing hyphen.
    """
    v = (value or "").strip().lower()
    return _SLUG_JUNK_RE.sub("-", v).strip("-")


class SiteContext:
    """
    Sites the actor owns or belongs to, plus the one they are working on.

    Built per request and passed explicitly to whatever needs it:

        ctx = SiteContext(db, user)
        await ctx.init()
        ...
        ctx.teardown()

    The active selection is persisted through a PreferenceStore so it
    survives across sessions.
    """

    def __init__(self, db: AsyncSession, actor: User, store: Optional[PreferenceStore] = None):
        self.db = db
        self.actor = actor
        self.store = store or PreferenceStore(db, actor.id)
        self._sites: List[Site] = []
        self._active: Optional[Site] = None
        self._ready = False

    # ---------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------
    async def init(self) -> "SiteContext":
        await self.refresh()
        await self._restore_active()
        self._ready = True
        return self

    def teardown(self) -> None:
        self._sites = []
        self._active = None
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    # ---------------------------------------------------------
    # Reads
    # ---------------------------------------------------------
    @property
    def sites(self) -> List[Site]:
        return list(self._sites)

    async def refresh(self) -> List[Site]:
        async with storage_guard(self.db, "load sites"):
            self._sites = await list_sites_for_user(self.db, self.actor.id)
        return self.sites

    async def list_sites(self) -> List[Site]:
        return await self.refresh()

    def get_active_site(self) -> Optional[Site]:
        return self._active

    def find_site(self, site_id: uuid.UUID) -> Optional[Site]:
        for site in self._sites:
            if site.id == site_id:
                return site
        return None

    def _require_site(self, site_id: uuid.UUID) -> Site:
        site = self.find_site(site_id)
        if site is None:
            raise NotFoundError("Site not found")
        return site

    async def role_for(self, site: Site) -> Optional[SiteRole]:
        return await resolve_role(self.db, self.actor, site)

    async def _restore_active(self) -> None:
        async with storage_guard(self.db, "restore active site"):
            remembered = await self.store.get(ACTIVE_SITE_KEY)

        site = None
        if remembered:
            try:
                site = self.find_site(uuid.UUID(remembered))
            except ValueError:
                logger.warning("Discarding malformed active site id %r for user=%s", remembered, self.actor.id)

        if site is None and self._sites:
            site = self._sites[0]
        self._active = site

    # ---------------------------------------------------------
    # Active selection
    # ---------------------------------------------------------
    async def _persist_active(self, site: Optional[Site]) -> None:
        value = str(site.id) if site is not None else None
        await self.store.set(ACTIVE_SITE_KEY, value)

    async def set_active_site(self, site_or_id: "Site | uuid.UUID") -> Site:
        site_id = site_or_id.id if isinstance(site_or_id, Site) else site_or_id
        site = self._require_site(site_id)

        async with storage_guard(self.db, "save active site"):
            await self._persist_active(site)
            await self.db.commit()

        self._active = site
        return site

    # ---------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------
    async def create_site(self, name: str, slug: str) -> Site:
        clean_name = " ".join((name or "").split())
        if not clean_name:
            raise ValidationError("Site name is required")

        clean_slug = normalize_slug(slug)
        if not clean_slug:
            raise ValidationError("Slug must contain letters or numbers")

        async with storage_guard(self.db, "create site"):
            if await slug_exists(self.db, clean_slug):
                raise DuplicateSlugError(f"Slug '{clean_slug}' is already taken")

            site = Site(
                owner_id=self.actor.id,
                name=clean_name,
                slug=clean_slug,
                theme=DEFAULT_THEME,
            )
            self.db.add(site)
            try:
                await self.db.flush()
            except IntegrityError as exc:
                # Lost a race with another insert of the same slug.
                await self.db.rollback()
                raise DuplicateSlugError(f"Slug '{clean_slug}' is already taken") from exc

            await self._persist_active(site)
            await self.db.commit()

        logger.info("Created site %s (%s) for owner=%s", site.id, site.slug, self.actor.id)

        await self.refresh()
        self._active = self.find_site(site.id) or site
        return self._active

    async def update_site(self, site_id: uuid.UUID, fields: Mapping[str, Any]) -> Site:
        site = self._require_site(site_id)

        role = await self.role_for(site)
        if not has_permission(role, Capability.MANAGE_SETTINGS):
            logger.warning("User %s (role=%s) denied settings update on site=%s", self.actor.id, role, site.id)
            raise PermissionDenied("You do not have permission to change this site's settings")

        unknown = set(fields) - UPDATABLE_SITE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {sorted(unknown)}")

        changes: Dict[str, Any] = dict(fields)
        if "name" in changes:
            changes["name"] = " ".join((changes["name"] or "").split())
            if not changes["name"]:
                raise ValidationError("Site name is required")
        if "theme" in changes and not is_known_theme(changes["theme"]):
            raise ValidationError(f"Unknown theme: {changes['theme']!r}")

        if not changes:
            return site

        async with storage_guard(self.db, "update site"):
            for key, value in changes.items():
                setattr(site, key, value)
            await self.db.commit()

        # The cached list and the active selection hold this same instance,
        # so both already reflect the patch.
        logger.info("Updated site %s fields=%s by user=%s", site.id, sorted(changes), self.actor.id)
        return site

    async def delete_site(self, site_id: uuid.UUID) -> None:
        site = self._require_site(site_id)

        role = await self.role_for(site)
        if not has_permission(role, Capability.DELETE_SITE):
            logger.warning("User %s (role=%s) denied deletion of site=%s", self.actor.id, role, site.id)
            raise PermissionDenied("Only the site owner can delete this site")

        was_active = self._active is not None and self._active.id == site.id

        async with storage_guard(self.db, "delete site"):
            await self.db.delete(site)
            await self.db.commit()

        logger.info("Deleted site %s by user=%s", site_id, self.actor.id)

        await self.refresh()

        if was_active:
            fallback = self._sites[0] if self._sites else None
            async with storage_guard(self.db, "save active site"):
                await self._persist_active(fallback)
                await self.db.commit()
            self._active = fallback
        elif self._active is not None:
            self._active = self.find_site(self._active.id)
