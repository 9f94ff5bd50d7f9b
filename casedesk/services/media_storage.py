"""
Media file storage on the local disk.

Layout: <media_dir>/<collection>/<uuid>/<file_name>
The path relative to media_dir is stored on the Media row (disk_path).
"""

import hashlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings
from casedesk.core.errors import validation_error
from casedesk.core.security import sanitize_filename
from casedesk.models.models import Media
from casedesk.services.formatting import (
    collection_for_mime,
    extension_of,
    human_readable_size,
    icon_for_mime,
    type_name_for_file,
)


logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    uuid: str
    file_name: str
    mime_type: str
    size: int
    collection_name: str
    disk_path: str
    sha256_hash: str


@dataclass
class CleanupReport:
    total_files: int = 0
    orphaned: int = 0
    deleted: int = 0
    errors: int = 0
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "total_files": self.total_files,
            "orphaned": self.orphaned,
            "deleted": self.deleted,
            "errors": self.errors,
            "dry_run": self.dry_run,
        }


def media_root(settings: Settings) -> Path:
    return settings.media_path


def absolute_path(disk_path: str, settings: Settings) -> Path:
    root = media_root(settings).resolve()
    path = (root / disk_path).resolve()
    if root not in path.parents:
        raise ValueError(f"Media path escapes the media directory: {disk_path}")
    return path


def guess_mime_type(file: UploadFile) -> str:
    if file.content_type and file.content_type != "application/octet-stream":
        return file.content_type
    guessed, _ = mimetypes.guess_type(file.filename or "")
    return guessed or "application/octet-stream"


async def store_upload(file: UploadFile, settings: Settings) -> StoredFile:
    """
    Validate and write an uploaded file.

    The upload is streamed to disk in chunks and hashed on the way; it is
    rejected with a 422 (and the partial file removed) as soon as it passes
    the size limit, or when it has no usable name.
    """
    file_name = sanitize_filename(file.filename or "")
    if not file_name:
        raise validation_error({"file": "El archivo no tiene un nombre válido."})

    mime_type = guess_mime_type(file)
    collection = collection_for_mime(mime_type)
    file_uuid = str(uuid.uuid4())
    disk_path = f"{collection}/{file_uuid}/{file_name}"

    target = media_root(settings) / disk_path
    target.parent.mkdir(parents=True, exist_ok=True)
    digest = hashlib.sha256()
    size = 0
    try:
        with target.open("wb") as out:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.max_upload_bytes:
                    raise validation_error({
                        "file": f"El archivo no debe superar {settings.max_upload_size_mb} MB.",
                    })
                digest.update(chunk)
                out.write(chunk)
    except Exception:
        target.unlink(missing_ok=True)
        target.parent.rmdir()
        raise

    logger.info("Stored media file %s (%d bytes, %s)", disk_path, size, mime_type)
    return StoredFile(
        uuid=file_uuid,
        file_name=file_name,
        mime_type=mime_type,
        size=size,
        collection_name=collection,
        disk_path=disk_path,
        sha256_hash=digest.hexdigest(),
    )


def apply_stored(media: Media, stored: StoredFile) -> None:
    media.uuid = stored.uuid
    media.file_name = stored.file_name
    media.mime_type = stored.mime_type
    media.size = stored.size
    media.collection_name = stored.collection_name
    media.disk_path = stored.disk_path
    media.sha256_hash = stored.sha256_hash


def delete_stored(disk_path: str, settings: Settings) -> bool:
    """Remove a stored file and its now-empty uuid folder. False when it was missing."""
    path = absolute_path(disk_path, settings)
    if not path.exists():
        logger.warning("Media file not found on disk: %s", disk_path)
        return False
    path.unlink()
    if path.parent != media_root(settings).resolve() and not any(path.parent.iterdir()):
        path.parent.rmdir()
    logger.info("Deleted media file %s", disk_path)
    return True


async def clean_orphaned_files(db: AsyncSession, settings: Settings, dry_run: bool = False) -> CleanupReport:
    """Delete files under the media directory that no Media row references."""
    report = CleanupReport(dry_run=dry_run)
    root = media_root(settings)
    if not root.exists():
        logger.warning("Media directory %s does not exist", root)
        return report

    referenced = set((await db.execute(select(Media.disk_path))).scalars().all())

    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        report.total_files += 1
        relative = path.relative_to(root).as_posix()
        if relative in referenced:
            continue

        report.orphaned += 1
        if dry_run:
            logger.info("Orphaned media file (dry run): %s", relative)
            continue
        try:
            path.unlink()
            report.deleted += 1
            logger.info("Deleted orphaned media file %s", relative)
        except OSError as e:
            report.errors += 1
            logger.error("Could not delete %s: %s", relative, e)

    if not dry_run:
        # Deepest folders first
        for folder in sorted((p for p in root.rglob("*") if p.is_dir()), key=lambda p: len(p.parts), reverse=True):
            if not any(folder.iterdir()):
                folder.rmdir()

    logger.info(
        "Orphan cleanup finished: %d files, %d orphaned, %d deleted, %d errors",
        report.total_files, report.orphaned, report.deleted, report.errors,
    )
    return report


def serialize_media(media: Media, detailed: bool = False, base_url: Optional[str] = None) -> dict:
    """Media row plus derived display fields."""
    data = {
        "id": media.id,
        "uuid": media.uuid,
        "legal_case_id": media.legal_case_id,
        "name": media.name,
        "file_name": media.file_name,
        "mime_type": media.mime_type,
        "extension": extension_of(media.file_name),
        "size": media.size,
        "human_readable_size": human_readable_size(media.size),
        "collection_name": media.collection_name,
        "type_name": type_name_for_file(media.file_name, media.mime_type),
        "type_icon": icon_for_mime(media.mime_type),
        "description": media.description,
        "category": media.category,
        "created_at": media.created_at.isoformat() if media.created_at else None,
        "updated_at": media.updated_at.isoformat() if media.updated_at else None,
    }
    if base_url:
        data["download_url"] = f"{base_url}/{media.id}/download"
    if detailed:
        data["sha256_hash"] = media.sha256_hash
        data["last_modified"] = media.updated_at.strftime("%d/%m/%Y, %H:%M") if media.updated_at else None
    return data
