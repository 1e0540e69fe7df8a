# tests/test_auth.py
from __future__ import annotations

import uuid

import pytest

from sitecms.core.security import create_access_token


@pytest.mark.asyncio
async def test_magic_code_sign_in_flow(client):
    r = await client.post("/api/v1/auth/request-code", json={"email": "Writer@Example.com"})
    assert r.status_code == 200, r.text
    code = r.json()["code"]

    r = await client.post("/api/v1/auth/verify-code", json={"email": "writer@example.com", "code": "000000"})
    assert r.status_code == 401, r.text

    r = await client.post("/api/v1/auth/verify-code", json={"email": "writer@example.com", "code": code})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200, r.text
    assert r.json()["email"] == "writer@example.com"

    # Codes are single use.
    r = await client.post("/api/v1/auth/verify-code", json={"email": "writer@example.com", "code": code})
    assert r.status_code == 401, r.text


@pytest.mark.asyncio
async def test_update_profile(client, create_user, headers):
    user = await create_user()

    r = await client.patch("/api/v1/auth/me", json={"full_name": "  Amina   Diallo "}, headers=headers(user))
    assert r.status_code == 200, r.text
    assert r.json()["full_name"] == "Amina Diallo"

    r = await client.patch("/api/v1/auth/me", json={}, headers=headers(user))
    assert r.status_code == 400, r.text


@pytest.mark.asyncio
async def test_bad_tokens_are_401(client, create_user):
    user = await create_user()

    r = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401, r.text

    ghost = create_access_token(uuid.uuid4())
    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {ghost}"})
    assert r.status_code == 401, r.text

    expired = create_access_token(user.id, expires_minutes=-5)
    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401, r.text


@pytest.mark.asyncio
async def test_sign_out(client, create_user, headers):
    user = await create_user()
    r = await client.post("/api/v1/auth/sign-out", headers=headers(user))
    assert r.status_code == 200, r.text
    assert r.json() == {"status": "ok"}
