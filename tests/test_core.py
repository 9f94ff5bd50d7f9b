"""
CaseDesk - Core Tests
Settings validation and database session handling.
"""

import json
import logging

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db_session
from casedesk.core.logging_config import setup_logging
from casedesk.main import create_app
from casedesk.models.models import CaseType


# =============================================================================
# Settings
# =============================================================================

@pytest.mark.parametrize("url, expected", [
    ("postgres://u:p@db:5432/casedesk", "postgresql+asyncpg://u:p@db:5432/casedesk"),
    ("postgresql://u:p@db/casedesk", "postgresql+asyncpg://u:p@db/casedesk"),
    ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ("sqlite+aiosqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
])
def test_database_url_uses_async_driver(url, expected):
    assert Settings(database_url=url).database_url == expected


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(local_timezone="Mars/Olympus_Mons")


def test_secret_key_generated_when_blank():
    first = Settings(secret_key="")
    second = Settings(secret_key="")
    assert len(first.secret_key) > 40
    assert first.secret_key != second.secret_key


def test_cors_origins():
    assert Settings(cors_origins="").cors_origins_list[0] == "http://localhost:8000"
    assert Settings(cors_origins="*").cors_origins_list == ["*"]
    assert Settings(cors_origins="https://a.example, https://b.example,").cors_origins_list == [
        "https://a.example",
        "https://b.example",
    ]


def test_upload_limit_in_bytes():
    assert Settings(max_upload_size_mb=2).max_upload_bytes == 2 * 1024 * 1024


# =============================================================================
# Sessions
# =============================================================================

@pytest.mark.anyio
async def test_session_commits_on_success(database):
    async with get_db_session() as db:
        db.add(CaseType(name="Amparo"))

    async with get_db_session() as db:
        assert await db.scalar(select(func.count()).select_from(CaseType)) == 1


@pytest.mark.anyio
async def test_session_rolls_back_on_error(database):
    with pytest.raises(RuntimeError):
        async with get_db_session() as db:
            db.add(CaseType(name="Amparo"))
            await db.flush()
            raise RuntimeError("boom")

    async with get_db_session() as db:
        assert await db.scalar(select(func.count()).select_from(CaseType)) == 0


# =============================================================================
# Logging
# =============================================================================

def test_json_logging_emits_one_object_per_record(capsys):
    setup_logging("INFO", json_format=True)
    try:
        logging.getLogger("casedesk.tests").info("Expediente %s creado", "EXP-1")
        try:
            raise ValueError("fallo")
        except ValueError:
            logging.getLogger("casedesk.tests").exception("Error al guardar")
    finally:
        setup_logging("WARNING")

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    assert lines[0]["message"] == "Expediente EXP-1 creado"
    assert lines[0]["level"] == "info"
    assert lines[0]["logger"] == "casedesk.tests"
    assert "timestamp" in lines[0]
    assert "ValueError: fallo" in lines[1]["exception"]


def test_create_app_configures_logging_before_startup(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    get_settings.cache_clear()
    try:
        create_app()
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        get_settings.cache_clear()
        setup_logging("WARNING")
