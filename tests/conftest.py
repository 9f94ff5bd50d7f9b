"""
CaseDesk - Shared Test Fixtures
Provides reusable fixtures for authentication, database and seeded records.
"""

import os
import shutil
import tempfile
from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport

# Configure test environment BEFORE importing app
TEST_ROOT = tempfile.mkdtemp(prefix="casedesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_ROOT}/test_casedesk.db"
os.environ["MEDIA_DIR"] = os.path.join(TEST_ROOT, "media")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOCAL_TIMEZONE"] = "UTC"

from casedesk.main import app
from casedesk.core.config import get_settings


TEST_EMAIL = "abogado@example.com"
TEST_PASSWORD = "secreto-seguro-123"


# =============================================================================
# Core Fixtures
# =============================================================================

@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
async def database():
    """Create database tables before each test; drop them and stored media after."""
    from casedesk.core.database import Base, close_db, get_engine
    from casedesk.models import models  # noqa: F401  registers every table

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await close_db()
    shutil.rmtree(get_settings().media_dir, ignore_errors=True)


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD, name: str = "Test Lawyer") -> str:
    """Register (when needed) and log in; returns the bearer token."""
    await client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def login_as():
    """The login helper, for tests that need a second account."""
    return login


@pytest.fixture
async def auth_client(database) -> AsyncGenerator[AsyncClient, None]:
    """Async client logged in as a registered user."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        token = await login(ac)
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac


@pytest.fixture
def settings():
    """Get test settings."""
    return get_settings()


# =============================================================================
# Record Fixtures
# =============================================================================

@pytest.fixture
async def case_type(auth_client: AsyncClient) -> dict:
    response = await auth_client.post("/api/case-types", json={"name": "Divorcio", "description": "Disolución"})
    assert response.status_code == 201, response.text
    return response.json()["case_type"]


@pytest.fixture
async def legal_case(auth_client: AsyncClient, case_type: dict) -> dict:
    response = await auth_client.post("/api/legal-cases", json={
        "code": "EXP-2024-0001",
        "entry_date": "2024-01-15",
        "case_type_id": case_type["id"],
    })
    assert response.status_code == 201, response.text
    return response.json()["legal_case"]


@pytest.fixture
async def individual(auth_client: AsyncClient) -> dict:
    response = await auth_client.post("/api/individuals", json={
        "national_id": "V-12345678",
        "first_name": "María",
        "middle_name": "José",
        "last_name": "González",
        "email_1": "maria@example.com",
    })
    assert response.status_code == 201, response.text
    return response.json()["individual"]


@pytest.fixture
async def legal_entity(auth_client: AsyncClient) -> dict:
    response = await auth_client.post("/api/legal-entities", json={
        "rif": "J-30000001-1",
        "business_name": "Inversiones del Centro C.A.",
        "trade_name": "InverCentro",
        "legal_entity_type": "compania_anonima",
        "fiscal_address_line_1": "Av. Bolívar",
        "fiscal_city": "Caracas",
        "fiscal_state": "Distrito Capital",
    })
    assert response.status_code == 201, response.text
    return response.json()["legal_entity"]


@pytest.fixture
def today(settings) -> date:
    from casedesk.core.utc import local_today
    return local_today(settings.local_timezone)
