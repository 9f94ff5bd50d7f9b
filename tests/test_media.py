"""
CaseDesk - Media Tests
Case attachments, the media library and orphaned file cleanup.
"""

from pathlib import Path

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.main import app
from casedesk.services.media_storage import store_upload


def _upload(name: str = "Escrito", file_name: str = "escrito.pdf", content: bytes = b"%PDF-1.4 demo",
            mime: str = "application/pdf", **fields):
    data = {"name": name, **fields}
    files = {"file": (file_name, content, mime)}
    return {"data": data, "files": files}


@pytest.mark.anyio
async def test_case_media_lifecycle(auth_client: AsyncClient, legal_case, settings):
    url = f"/api/legal-cases/{legal_case['id']}/media"
    response = await auth_client.post(url, **_upload(description="Libelo", category="Demanda"))
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Archivo subido correctamente."
    media = body["media"]
    assert media["collection_name"] == "documents"
    assert media["type_name"] == "Documento PDF"
    assert media["size"] == len(b"%PDF-1.4 demo")
    assert media["download_url"] == f"{url}/{media['id']}/download"

    response = await auth_client.get(f"{url}/{media['id']}")
    detail = response.json()
    assert len(detail["sha256_hash"]) == 64
    stored = Path(settings.media_dir)
    assert any(p.name == "escrito.pdf" for p in stored.rglob("*"))

    response = await auth_client.get(f"{url}/{media['id']}/download")
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 demo"

    response = await auth_client.get(f"/api/legal-cases/{legal_case['id']}")
    assert [m["id"] for m in response.json()["media"]] == [media["id"]]

    response = await auth_client.delete(f"{url}/{media['id']}")
    assert response.json()["message"] == "Archivo eliminado correctamente."
    response = await auth_client.get(url)
    assert response.json()["media"] == []


@pytest.mark.anyio
async def test_replace_file_removes_the_old_one(auth_client: AsyncClient, legal_case, settings):
    url = f"/api/legal-cases/{legal_case['id']}/media"
    response = await auth_client.post(url, **_upload())
    media_id = response.json()["media"]["id"]

    response = await auth_client.put(f"{url}/{media_id}", data={"name": "Solo metadatos"})
    assert response.json()["message"] == "Información actualizada correctamente."

    response = await auth_client.put(
        f"{url}/{media_id}", **_upload(name="Foto", file_name="foto.png", content=b"\x89PNG", mime="image/png"),
    )
    body = response.json()
    assert body["message"] == "Archivo actualizado correctamente."
    assert body["media"]["collection_name"] == "images"

    names = [p.name for p in Path(settings.media_dir).rglob("*") if p.is_file()]
    assert "escrito.pdf" not in names
    assert "foto.png" in names


@pytest.mark.anyio
async def test_media_of_another_case_is_404(auth_client: AsyncClient, legal_case, case_type):
    response = await auth_client.post(f"/api/legal-cases/{legal_case['id']}/media", **_upload())
    media_id = response.json()["media"]["id"]
    response = await auth_client.post("/api/legal-cases", json={
        "code": "EXP-OTRO", "entry_date": "2024-01-01", "case_type_id": case_type["id"],
    })
    other_id = response.json()["legal_case"]["id"]

    response = await auth_client.get(f"/api/legal-cases/{other_id}/media/{media_id}")
    assert response.status_code == 404
    response = await auth_client.get(f"/api/media-library/{media_id}")
    assert response.status_code == 404


@pytest.mark.anyio
async def test_upload_over_size_limit(auth_client: AsyncClient, settings, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    response = await auth_client.post("/api/media-library", **_upload())
    assert response.status_code == 422
    assert "file" in response.json()["detail"]["errors"]
    assert not [p for p in Path(settings.media_dir).rglob("*") if p.is_file()]


class _EndlessUpload:
    """Upload whose body never ends; counts how many chunks were pulled."""

    filename = "grande.pdf"
    content_type = "application/pdf"

    def __init__(self):
        self.reads = 0

    async def read(self, size: int = -1) -> bytes:
        self.reads += 1
        return b"x" * size


@pytest.mark.anyio
async def test_oversize_upload_stops_reading_at_the_limit(settings, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 1)
    upload = _EndlessUpload()

    with pytest.raises(HTTPException) as exc_info:
        await store_upload(upload, settings)

    assert exc_info.value.status_code == 422
    assert upload.reads == 2
    assert not [p for p in Path(settings.media_dir).rglob("*") if p.is_file()]


@pytest.mark.anyio
async def test_media_library(auth_client: AsyncClient):
    await auth_client.post("/api/media-library", **_upload(name="Contrato modelo"))
    await auth_client.post(
        "/api/media-library", **_upload(name="Logo", file_name="logo.png", content=b"\x89PNG", mime="image/png"),
    )

    response = await auth_client.get("/api/media-library")
    body = response.json()
    assert [m["name"] for m in body["data"]] == ["Logo", "Contrato modelo"]
    assert body["collections"] == ["documents", "images"]

    response = await auth_client.get("/api/media-library", params={"collection": "images"})
    assert [m["name"] for m in response.json()["data"]] == ["Logo"]
    response = await auth_client.get("/api/media-library", params={"collection": "_all", "search": "contrato"})
    assert [m["name"] for m in response.json()["data"]] == ["Contrato modelo"]

    logo_id = body["data"][0]["id"]
    response = await auth_client.get(f"/api/media-library/{logo_id}/info")
    info = response.json()
    assert info["type_name"] == "Imagen PNG"
    assert info["type_icon"] == "image"
    assert info["human_readable_size"] == "4,00 B"
    assert info["download_url"] == f"/api/media-library/{logo_id}/download"

    response = await auth_client.get(info["download_url"])
    assert response.content == b"\x89PNG"


@pytest.mark.anyio
async def test_clean_orphaned_files(auth_client: AsyncClient, settings):
    await auth_client.post("/api/media-library", **_upload())
    orphan = Path(settings.media_dir) / "documents" / "lost" / "huerfano.txt"
    orphan.parent.mkdir(parents=True, exist_ok=True)
    orphan.write_text("nadie me referencia")

    response = await auth_client.post("/api/media-library/clean-orphaned-files", params={"dry_run": True})
    report = response.json()["report"]
    assert report["orphaned"] == 1
    assert report["deleted"] == 0
    assert orphan.exists()

    response = await auth_client.post("/api/media-library/clean-orphaned-files")
    body = response.json()
    assert body["success"] is True
    assert body["report"]["deleted"] == 1
    assert not orphan.exists()
    assert not orphan.parent.exists()

    response = await auth_client.get("/api/media-library")
    media_id = response.json()["data"][0]["id"]
    response = await auth_client.get(f"/api/media-library/{media_id}/download")
    assert response.status_code == 200


@pytest.mark.anyio
async def test_failed_commit_discards_the_written_file(auth_client: AsyncClient, settings, monkeypatch):
    async def failing_commit(self):
        raise RuntimeError("database went away")

    monkeypatch.setattr(AsyncSession, "commit", failing_commit)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test", headers=auth_client.headers) as client:
        response = await client.post("/api/media-library", **_upload())

    assert response.status_code == 500
    assert response.json()["error"] == "server_error"
    assert not [p for p in Path(settings.media_dir).rglob("*") if p.is_file()]
