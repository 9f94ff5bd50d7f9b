"""
Media Router
File attachments of legal cases and the shared media library.

Both surfaces store files the same way (see casedesk.services.media_storage);
library items simply have no legal case.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.errors import not_found
from casedesk.core.security import require_user
from casedesk.models.models import LegalCase, Media, User
from casedesk.services.filters import like_any
from casedesk.services.media_storage import (
    absolute_path,
    apply_stored,
    clean_orphaned_files,
    delete_stored,
    serialize_media,
    store_upload,
)
from casedesk.services.pagination import paginate_query
from casedesk.services.records import get_or_404


logger = logging.getLogger(__name__)

case_media_router = APIRouter(prefix="/api/legal-cases/{case_id}/media", tags=["Case Media"])
library_router = APIRouter(prefix="/api/media-library", tags=["Media Library"])

ALL_COLLECTIONS = "_all"
LIBRARY_URL = "/api/media-library"


# =============================================================================
# Helper Functions
# =============================================================================

def _case_media_url(case_id: int) -> str:
    return f"/api/legal-cases/{case_id}/media"


async def _get_case_media(db: AsyncSession, case_id: int, media_id: int) -> Media:
    await get_or_404(db, LegalCase, case_id, "Legal case")
    media = await db.get(Media, media_id)
    if media is None or media.legal_case_id != case_id:
        raise not_found("Media")
    return media


async def _get_library_media(db: AsyncSession, media_id: int) -> Media:
    media = await db.get(Media, media_id)
    if media is None or media.legal_case_id is not None:
        raise not_found("Media")
    return media


async def _commit_or_discard(db: AsyncSession, settings: Settings, disk_path: str) -> None:
    """Commit; when the commit fails, remove the file just written for it."""
    try:
        await db.commit()
    except Exception:
        delete_stored(disk_path, settings)
        raise


async def _create_media(
    db: AsyncSession,
    settings: Settings,
    file: UploadFile,
    name: str,
    description: Optional[str],
    category: Optional[str],
    legal_case_id: Optional[int] = None,
) -> Media:
    stored = await store_upload(file, settings)
    media = Media(
        legal_case_id=legal_case_id,
        name=name,
        description=description or None,
        category=category or None,
    )
    apply_stored(media, stored)
    db.add(media)
    await _commit_or_discard(db, settings, stored.disk_path)
    await db.refresh(media)
    logger.info("Media %s uploaded (case=%s, %s)", media.id, legal_case_id, media.disk_path)
    return media


async def _update_media(
    db: AsyncSession,
    settings: Settings,
    media: Media,
    name: str,
    description: Optional[str],
    category: Optional[str],
    file: Optional[UploadFile],
) -> bool:
    """Update metadata and, when a file is given, swap the stored file. True when replaced."""
    media.name = name
    media.description = description or None
    media.category = category or None

    replaced = file is not None and bool(file.filename)
    old_path = media.disk_path
    if replaced:
        stored = await store_upload(file, settings)
        apply_stored(media, stored)
        await _commit_or_discard(db, settings, stored.disk_path)
    else:
        await db.commit()
    await db.refresh(media)

    if replaced:
        delete_stored(old_path, settings)
        logger.info("Media %s file replaced (%s -> %s)", media.id, old_path, media.disk_path)
    return replaced


async def _delete_media(db: AsyncSession, settings: Settings, media: Media) -> None:
    disk_path = media.disk_path
    await db.delete(media)
    await db.commit()
    delete_stored(disk_path, settings)


def _download(media: Media, settings: Settings) -> FileResponse:
    try:
        path = absolute_path(media.disk_path, settings)
    except ValueError:
        logger.warning("Refusing to serve media %s outside the media directory", media.id)
        raise HTTPException(status_code=404, detail="Media file not found")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Media file not found")
    return FileResponse(path=path, filename=media.file_name, media_type=media.mime_type)


# =============================================================================
# Case Media
# =============================================================================

@case_media_router.get("")
async def list_case_media(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")
    result = await db.execute(
        select(Media)
        .where(Media.legal_case_id == case_id)
        .order_by(Media.created_at.desc(), Media.id.desc())
    )
    return {
        "legal_case": {"id": legal_case.id, "code": legal_case.code},
        "media": [serialize_media(item, base_url=_case_media_url(case_id)) for item in result.scalars()],
    }


@case_media_router.post("", status_code=status.HTTP_201_CREATED)
async def upload_case_media(
    case_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None, max_length=100),
    file: UploadFile = File(...),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await get_or_404(db, LegalCase, case_id, "Legal case")
    media = await _create_media(db, settings, file, name, description, category, legal_case_id=case_id)
    return {
        "success": True,
        "message": "Archivo subido correctamente.",
        "media": serialize_media(media, base_url=_case_media_url(case_id)),
    }


@case_media_router.get("/{media_id}")
async def get_case_media(
    case_id: int,
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    media = await _get_case_media(db, case_id, media_id)
    return serialize_media(media, detailed=True, base_url=_case_media_url(case_id))


@case_media_router.put("/{media_id}")
async def update_case_media(
    case_id: int,
    media_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None, max_length=100),
    file: Optional[UploadFile] = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_case_media(db, case_id, media_id)
    replaced = await _update_media(db, settings, media, name, description, category, file)
    return {
        "success": True,
        "message": "Archivo actualizado correctamente." if replaced else "Información actualizada correctamente.",
        "media": serialize_media(media, base_url=_case_media_url(case_id)),
    }


@case_media_router.delete("/{media_id}")
async def delete_case_media(
    case_id: int,
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_case_media(db, case_id, media_id)
    await _delete_media(db, settings, media)
    return {"success": True, "message": "Archivo eliminado correctamente."}


@case_media_router.get("/{media_id}/download")
async def download_case_media(
    case_id: int,
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_case_media(db, case_id, media_id)
    return _download(media, settings)


# =============================================================================
# Media Library
# =============================================================================

@library_router.get("")
async def list_library(
    request: Request,
    search: Optional[str] = Query(None, description="Search name, file name or description"),
    collection: Optional[str] = Query(None, description="Collection name, _all for every collection"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Newest first, with the collections present in the library."""
    stmt = select(Media).where(Media.legal_case_id.is_(None))
    if collection and collection != ALL_COLLECTIONS:
        stmt = stmt.where(Media.collection_name == collection)
    if search:
        stmt = stmt.where(like_any(search, Media.name, Media.file_name, Media.description))
    stmt = stmt.order_by(Media.created_at.desc(), Media.id.desc())

    rows, meta = await paginate_query(
        db, stmt, page, settings.default_per_page, request.url.path,
        {"search": search, "collection": collection},
    )
    collections = (await db.execute(
        select(Media.collection_name)
        .where(Media.legal_case_id.is_(None))
        .distinct()
        .order_by(Media.collection_name)
    )).scalars().all()

    return {
        "data": [serialize_media(item, base_url=LIBRARY_URL) for item in rows],
        "meta": meta.model_dump(by_alias=True),
        "filters": {"search": search, "collection": collection},
        "collections": list(collections),
    }


@library_router.post("", status_code=status.HTTP_201_CREATED)
async def upload_library_media(
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None, max_length=100),
    file: UploadFile = File(...),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _create_media(db, settings, file, name, description, category)
    return {
        "success": True,
        "message": "Archivo subido correctamente.",
        "media": serialize_media(media, base_url=LIBRARY_URL),
    }


@library_router.post("/clean-orphaned-files")
async def clean_orphaned(
    dry_run: bool = Query(False, description="Only report orphaned files"),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Remove stored files no media row points at."""
    report = await clean_orphaned_files(db, settings, dry_run=dry_run)
    if dry_run:
        message = f"Se encontraron {report.orphaned} archivos huérfanos."
    else:
        message = f"Se eliminaron {report.deleted} archivos huérfanos."
    return {"success": report.errors == 0, "message": message, "report": report.to_dict()}


@library_router.get("/{media_id}")
async def get_library_media(
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    media = await _get_library_media(db, media_id)
    return serialize_media(media, detailed=True, base_url=LIBRARY_URL)


@library_router.put("/{media_id}")
async def update_library_media(
    media_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None, max_length=100),
    file: Optional[UploadFile] = File(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_library_media(db, media_id)
    replaced = await _update_media(db, settings, media, name, description, category, file)
    return {
        "success": True,
        "message": "Archivo actualizado correctamente." if replaced else "Información actualizada correctamente.",
        "media": serialize_media(media, base_url=LIBRARY_URL),
    }


@library_router.delete("/{media_id}")
async def delete_library_media(
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_library_media(db, media_id)
    await _delete_media(db, settings, media)
    return {"success": True, "message": "Archivo eliminado correctamente."}


@library_router.get("/{media_id}/download")
async def download_library_media(
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    media = await _get_library_media(db, media_id)
    return _download(media, settings)


@library_router.get("/{media_id}/info")
async def library_media_info(
    media_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Metadata shown in the file details panel."""
    media = await _get_library_media(db, media_id)
    info = serialize_media(media, detailed=True, base_url=LIBRARY_URL)
    return {
        "id": info["id"],
        "name": info["name"],
        "file_name": info["file_name"],
        "mime_type": info["mime_type"],
        "extension": info["extension"],
        "type_name": info["type_name"],
        "type_icon": info["type_icon"],
        "size": info["size"],
        "human_readable_size": info["human_readable_size"],
        "collection_name": info["collection_name"],
        "sha256_hash": info["sha256_hash"],
        "created_at": info["created_at"],
        "last_modified": info["last_modified"],
        "download_url": info["download_url"],
    }
