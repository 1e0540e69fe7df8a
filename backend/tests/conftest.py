from __future__ import annotations

import os
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from sitecms.core.security import create_access_token
from sitecms.db.session import get_db

# Ensure Base + models are registered before create_all
from sitecms.db.base import Base
import sitecms.models  # noqa: F401
from sitecms.models.content import Page, Post
from sitecms.models.site import Site
from sitecms.models.site_member import SiteMember
from sitecms.models.user import User


# ---------------------------------------------------------
# Database config
# ---------------------------------------------------------
@pytest.fixture()
def database_url_async(tmp_path) -> str:
    """
    TEST_DATABASE_URL points the suite at a real server (e.g. postgres+asyncpg).
    Without it every test gets its own throwaway SQLite file.
    """
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        return url
    return f"sqlite+aiosqlite:///{tmp_path / 'sitecms_test.db'}"


# ---------------------------------------------------------
# Engine + schema lifecycle (fresh schema per test)
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(database_url_async: str):
    engine = create_async_engine(
        database_url_async,
        future=True,
        echo=False,
        poolclass=NullPool,
    )

    if engine.dialect.name == "sqlite":
        # ON DELETE CASCADE is a no-op in SQLite unless enabled per connection.
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


# ---------------------------------------------------------
# DB session for setup & assertions
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & direct core calls.
    Setup helpers commit, so API requests (own sessions) see the rows.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from sitecms.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
@pytest.fixture()
def create_user(db):
    async def _create(email: str | None = None, full_name: str | None = None) -> User:
        user = User(
            email=(email or f"user_{uuid.uuid4().hex[:8]}@example.com").lower().strip(),
            full_name=full_name,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        return user

    return _create


@pytest.fixture()
def create_site(db):
    async def _create(owner: User, name: str | None = None, slug: str | None = None) -> Site:
        suffix = uuid.uuid4().hex[:8]
        site = Site(
            owner_id=owner.id,
            name=name or f"Site {suffix}",
            slug=slug or f"site-{suffix}",
            theme="default",
        )
        db.add(site)
        await db.commit()
        return site

    return _create


@pytest.fixture()
def add_member(db):
    async def _add(site: Site, user: User, role: str) -> SiteMember:
        member = SiteMember(site_id=site.id, user_id=user.id, role=role)
        db.add(member)
        await db.commit()
        return member

    return _add


@pytest.fixture()
def create_page(db):
    async def _create(site: Site, title: str, slug: str, status: str = "published") -> Page:
        page = Page(site_id=site.id, title=title, slug=slug, status=status)
        db.add(page)
        await db.commit()
        return page

    return _create


@pytest.fixture()
def create_post(db):
    async def _create(site: Site, title: str, slug: str, status: str = "published") -> Post:
        post = Post(site_id=site.id, title=title, slug=slug, status=status)
        db.add(post)
        await db.commit()
        return post

    return _create


def auth_headers(user: User, site: Site | None = None) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}
    if site is not None:
        headers["X-Site-Id"] = str(site.id)
    return headers


@pytest.fixture()
def headers():
    return auth_headers
