"""
CaseDesk - Authentication Tests
Registration, login, logout and route protection.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update

from casedesk.core.database import get_db_session
from casedesk.core.utc import utc_now
from casedesk.models.models import ApiToken


@pytest.mark.anyio
async def test_register_and_login(client: AsyncClient):
    response = await client.post("/api/auth/register", json={
        "name": "Ana Pérez", "email": "Ana@Example.com", "password": "clave-larga-1",
    })
    assert response.status_code == 201
    assert response.json()["email"] == "ana@example.com"

    response = await client.post("/api/auth/login", json={"email": "ana@example.com", "password": "clave-larga-1"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["name"] == "Ana Pérez"
    assert data["access_token"]


@pytest.mark.anyio
async def test_register_duplicate_email(client: AsyncClient):
    payload = {"name": "Ana", "email": "ana@example.com", "password": "clave-larga-1"}
    await client.post("/api/auth/register", json=payload)
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 422
    assert "email" in response.json()["detail"]["errors"]


@pytest.mark.anyio
async def test_login_with_wrong_password(client: AsyncClient, login_as):
    await login_as(client)
    response = await client.post("/api/auth/login", json={"email": "abogado@example.com", "password": "incorrecta"})
    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "invalid_credentials"


@pytest.mark.anyio
async def test_protected_route_requires_login(client: AsyncClient):
    response = await client.get("/api/legal-cases")
    assert response.status_code == 401
    detail = response.json()["detail"]
    assert detail["error"] == "auth_required"
    assert detail["action"] == "redirect"
    assert detail["redirect_url"] == "/login"


@pytest.mark.anyio
async def test_invalid_token_is_rejected(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-real-token"})
    assert response.status_code == 401


@pytest.mark.anyio
async def test_me_and_logout(auth_client: AsyncClient):
    response = await auth_client.get("/api/auth/me")
    assert response.status_code == 200
    me = response.json()
    assert me["email"] == "abogado@example.com"
    assert me["last_login"] is not None

    response = await auth_client.get(f"/api/users/{me['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Test Lawyer"

    response = await auth_client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = await auth_client.get("/api/auth/me")
    assert response.status_code == 401


@pytest.mark.anyio
async def test_unknown_user_is_404(auth_client: AsyncClient):
    response = await auth_client.get("/api/users/9999")
    assert response.status_code == 404


@pytest.mark.anyio
async def test_short_password_rejected(client: AsyncClient):
    response = await client.post("/api/auth/register", json={
        "name": "Ana", "email": "ana@example.com", "password": "corta",
    })
    assert response.status_code == 422


@pytest.mark.anyio
async def test_session_cookie_uses_configured_name(client: AsyncClient, login_as, settings, monkeypatch):
    monkeypatch.setattr(settings, "session_cookie_name", "despacho_sesion")
    token = await login_as(client)

    response = await client.get("/api/auth/me", headers={"Cookie": f"despacho_sesion={token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "abogado@example.com"

    response = await client.get("/api/auth/me", headers={"Cookie": f"casedesk_session={token}"})
    assert response.status_code == 401

    response = await client.post("/api/auth/logout", headers={"Cookie": f"despacho_sesion={token}"})
    assert response.status_code == 200
    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def _expire_all_tokens() -> None:
    async with get_db_session() as db:
        await db.execute(update(ApiToken).values(expires_at=utc_now() - timedelta(minutes=1)))


async def _token_count() -> int:
    async with get_db_session() as db:
        return await db.scalar(select(func.count()).select_from(ApiToken))


@pytest.mark.anyio
async def test_expired_token_is_rejected_and_removed(client: AsyncClient, login_as):
    token = await login_as(client)
    await _expire_all_tokens()

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert await _token_count() == 0


@pytest.mark.anyio
async def test_login_purges_expired_tokens(client: AsyncClient, login_as):
    await login_as(client)
    await _expire_all_tokens()

    await login_as(client)
    assert await _token_count() == 1
