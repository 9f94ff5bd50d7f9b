"""
Legal Cases Router
Case records (expedientes) with their type, participants, status history
and tags.

Static paths (/all-tags, /statuses/available) are declared before /{case_id}
so they are not captured by the id parameter.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.errors import not_found, validation_error
from casedesk.core.security import require_user
from casedesk.core.utc import local_today, utc_now
from casedesk.models.models import (
    CaseEvent,
    CaseStatus,
    CaseType,
    LegalCase,
    Media,
    StatusList,
    Tag,
    User,
)
from casedesk.services.deadlines import next_important_date
from casedesk.services.filters import apply_case_filters, parse_filters
from casedesk.services.formatting import entity_display_name, format_date_safe, full_name, iso_date, placeholder
from casedesk.services.media_storage import serialize_media
from casedesk.services.pagination import CASE_PAGE_SIZES, paginate_query, resolve_per_page
from casedesk.services.records import ensure_unique, exists
from casedesk.services.tags import find_tag, resolve_tags, tag_to_dict


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/legal-cases", tags=["Legal Cases"])

UNIQUE_MESSAGES = {"code": "Este código de expediente ya está registrado."}
AUTO_STATUS_DESCRIPTION = "Creado automáticamente desde la interfaz de expedientes"
RECENT_MEDIA_LIMIT = 5


# =============================================================================
# Schemas
# =============================================================================

class LegalCaseRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=255)
    entry_date: date
    sentence_date: Optional[date] = None
    closing_date: Optional[date] = None
    case_type_id: Optional[int] = None
    new_case_type: Optional[str] = Field(None, max_length=255)

    @field_validator("sentence_date", "closing_date", "case_type_id", "new_case_type", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SentenceDateRequest(BaseModel):
    sentence_date: Optional[date] = None


class ClosingDateRequest(BaseModel):
    closing_date: Optional[date] = None


class StatusRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=255)
    reason: Optional[str] = Field(None, max_length=1000)


class AttachTagsRequest(BaseModel):
    tags: list[str] = Field(..., min_length=1)
    # Missing tags are always created; kept for clients that send it
    create_if_not_exists: bool = True


class DetachTagRequest(BaseModel):
    tag: str = Field(..., min_length=1, max_length=255)


class SyncTagsRequest(BaseModel):
    tags: list[str] = []


# =============================================================================
# Helper Functions
# =============================================================================

def _case_query():
    return (
        select(LegalCase)
        .where(LegalCase.deleted_at.is_(None))
        .options(
            selectinload(LegalCase.individual_links),
            selectinload(LegalCase.entity_links),
            selectinload(LegalCase.statuses),
            selectinload(LegalCase.tags),
        )
    )


async def load_case(db: AsyncSession, case_id: int) -> LegalCase:
    """Case with participants, statuses and tags loaded; 404 when missing or deleted."""
    stmt = _case_query().where(LegalCase.id == case_id).execution_options(populate_existing=True)
    legal_case = (await db.execute(stmt)).scalar_one_or_none()
    if legal_case is None:
        raise not_found("Legal case")
    return legal_case


def current_status(legal_case: LegalCase) -> Optional[CaseStatus]:
    if not legal_case.statuses:
        return None
    return max(legal_case.statuses, key=lambda s: (s.created_at, s.id))


def status_to_dict(entry: CaseStatus) -> dict:
    return {
        "id": entry.id,
        "name": entry.name,
        "reason": entry.reason,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def serialize_case(legal_case: LegalCase) -> dict:
    latest = current_status(legal_case)
    return {
        "id": legal_case.id,
        "code": legal_case.code,
        "entry_date": iso_date(legal_case.entry_date),
        "entry_date_display": format_date_safe(legal_case.entry_date),
        "sentence_date": iso_date(legal_case.sentence_date),
        "closing_date": iso_date(legal_case.closing_date),
        "case_type_id": legal_case.case_type_id,
        "case_type": {"id": legal_case.case_type.id, "name": legal_case.case_type.name},
        "individuals": [
            {
                "id": link.individual.id,
                "full_name": full_name(link.individual),
                "national_id": link.individual.national_id,
                "role": link.role,
            }
            for link in legal_case.individual_links
            if link.individual.deleted_at is None
        ],
        "legal_entities": [
            {
                "id": link.legal_entity.id,
                "name": entity_display_name(link.legal_entity),
                "rif": link.legal_entity.rif,
                "role": link.role,
            }
            for link in legal_case.entity_links
            if link.legal_entity.deleted_at is None
        ],
        "current_status": status_to_dict(latest) if latest else None,
        "created_at": legal_case.created_at.isoformat(),
        "updated_at": legal_case.updated_at.isoformat(),
    }


async def _resolve_case_type(db: AsyncSession, data: LegalCaseRequest) -> int:
    """Id of the requested case type, creating it when ``new_case_type`` is given."""
    if data.new_case_type:
        name = data.new_case_type.strip()
        result = await db.execute(select(CaseType).where(CaseType.name == name))
        case_type = result.scalar_one_or_none()
        if case_type is None:
            case_type = CaseType(name=name)
            db.add(case_type)
            await db.flush()
            logger.info("Created case type %r from the case form", name)
        return case_type.id

    if data.case_type_id is None:
        raise validation_error({"case_type_id": "El tipo de caso es obligatorio."})
    if not await exists(db, CaseType, CaseType.id == data.case_type_id):
        raise validation_error({"case_type_id": "El tipo de caso seleccionado no existe."})
    return data.case_type_id


async def _case_types(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(CaseType).order_by(CaseType.name))
    return [{"id": t.id, "name": t.name} for t in result.scalars()]


# =============================================================================
# Collection Endpoints
# =============================================================================

@router.get("")
async def list_legal_cases(
    request: Request,
    filter_param: Optional[str] = Query(None, alias="filter", description="JSON list of {field, operator, value, type}"),
    page: int = Query(1, ge=1),
    per_page: Optional[str] = Query(None),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Newest cases first, narrowed by the advanced filters."""
    filters = parse_filters(filter_param)
    size = resolve_per_page(per_page, CASE_PAGE_SIZES)

    stmt = apply_case_filters(_case_query(), filters, settings.local_timezone)
    stmt = stmt.order_by(LegalCase.created_at.desc(), LegalCase.id.desc())

    rows, meta = await paginate_query(
        db, stmt, page, size, request.url.path, {"filter": filter_param, "per_page": size},
    )
    return {
        "data": [serialize_case(row) for row in rows],
        "meta": meta.model_dump(by_alias=True),
        "empty_message": placeholder(rows, "No hay expedientes registrados"),
        "filters": filters,
        "case_types": await _case_types(db),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_legal_case(
    data: LegalCaseRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, LegalCase, {"code": data.code}, UNIQUE_MESSAGES)
    case_type_id = await _resolve_case_type(db, data)

    legal_case = LegalCase(
        code=data.code,
        entry_date=data.entry_date,
        sentence_date=data.sentence_date,
        closing_date=data.closing_date,
        case_type_id=case_type_id,
    )
    db.add(legal_case)
    await db.commit()
    logger.info("Created legal case %s (%s)", legal_case.id, legal_case.code)

    legal_case = await load_case(db, legal_case.id)
    return {
        "success": True,
        "message": "Expediente creado exitosamente.",
        "legal_case": serialize_case(legal_case),
    }


@router.get("/all-tags")
async def all_tags(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Tag).order_by(Tag.order_column, Tag.name))
    return {"tags": [tag_to_dict(tag) for tag in result.scalars()]}


@router.get("/statuses/available")
async def available_statuses(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Status names from the status catalog."""
    result = await db.execute(select(StatusList).order_by(StatusList.name))
    return {
        "statuses": [
            {"id": item.id, "name": item.name, "description": item.description}
            for item in result.scalars()
        ]
    }


# =============================================================================
# Record Endpoints
# =============================================================================

@router.get("/{case_id}")
async def get_legal_case(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Case detail: participants with their roles, events newest first, the next
    important date and the most recent attachments.
    """
    legal_case = await load_case(db, case_id)
    today = local_today(settings.local_timezone)

    events = (await db.execute(
        select(CaseEvent)
        .where(CaseEvent.legal_case_id == case_id)
        .order_by(CaseEvent.date.desc(), CaseEvent.id.desc())
    )).scalars().all()

    upcoming = await next_important_date(db, case_id, today)

    media = (await db.execute(
        select(Media)
        .where(Media.legal_case_id == case_id)
        .order_by(Media.created_at.desc(), Media.id.desc())
        .limit(RECENT_MEDIA_LIMIT)
    )).scalars().all()

    data = serialize_case(legal_case)
    data["tags"] = [tag_to_dict(tag) for tag in legal_case.tags]
    data["events"] = [
        {
            "id": event.id,
            "title": event.title,
            "description": event.description,
            "date": iso_date(event.date),
            "user": {"id": event.user.id, "name": event.user.name} if event.user else None,
        }
        for event in events
    ]
    data["next_important_date"] = (
        {
            "id": upcoming.id,
            "title": upcoming.title,
            "start_date": iso_date(upcoming.start_date),
            "end_date": iso_date(upcoming.end_date),
            "days_remaining": upcoming.days_remaining(today),
        }
        if upcoming else None
    )
    data["media"] = [
        serialize_media(item, base_url=f"/api/legal-cases/{case_id}/media") for item in media
    ]
    return data


@router.put("/{case_id}")
async def update_legal_case(
    case_id: int,
    data: LegalCaseRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    await ensure_unique(db, LegalCase, {"code": data.code}, UNIQUE_MESSAGES, exclude_id=legal_case.id)
    case_type_id = await _resolve_case_type(db, data)

    legal_case.code = data.code
    legal_case.entry_date = data.entry_date
    legal_case.sentence_date = data.sentence_date
    legal_case.closing_date = data.closing_date
    legal_case.case_type_id = case_type_id
    await db.commit()

    legal_case = await load_case(db, case_id)
    return {
        "success": True,
        "message": "Expediente actualizado exitosamente.",
        "legal_case": serialize_case(legal_case),
    }


@router.delete("/{case_id}")
async def delete_legal_case(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete."""
    legal_case = await load_case(db, case_id)
    legal_case.deleted_at = utc_now()
    await db.commit()
    logger.info("Deleted legal case %s", case_id)
    return {"success": True, "message": "Expediente eliminado exitosamente."}


@router.patch("/{case_id}/sentence-date")
async def update_sentence_date(
    case_id: int,
    data: SentenceDateRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    legal_case.sentence_date = data.sentence_date
    await db.commit()
    return {
        "success": True,
        "message": "Fecha de sentencia actualizada exitosamente.",
        "sentence_date": iso_date(legal_case.sentence_date),
    }


@router.patch("/{case_id}/closing-date")
async def update_closing_date(
    case_id: int,
    data: ClosingDateRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Setting a closing date takes the case out of deadline lists and active counts."""
    legal_case = await load_case(db, case_id)
    legal_case.closing_date = data.closing_date
    await db.commit()
    return {
        "success": True,
        "message": "Fecha de cierre actualizada exitosamente.",
        "closing_date": iso_date(legal_case.closing_date),
    }


# =============================================================================
# Status History
# =============================================================================

@router.get("/{case_id}/statuses")
async def list_case_statuses(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    history = sorted(legal_case.statuses, key=lambda s: (s.created_at, s.id), reverse=True)
    return {"statuses": [status_to_dict(entry) for entry in history]}


@router.post("/{case_id}/status", status_code=status.HTTP_201_CREATED)
async def add_case_status(
    case_id: int,
    data: StatusRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Append a status; unknown names are added to the status catalog."""
    legal_case = await load_case(db, case_id)
    name = data.status.strip()

    if not await exists(db, StatusList, StatusList.name == name):
        db.add(StatusList(name=name, description=AUTO_STATUS_DESCRIPTION))
        logger.info("Added status %r to the status catalog", name)

    entry = CaseStatus(legal_case_id=legal_case.id, name=name, reason=data.reason)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return {
        "success": True,
        "message": "Estado actualizado exitosamente.",
        "status": status_to_dict(entry),
    }


# =============================================================================
# Tags
# =============================================================================

@router.get("/{case_id}/tags")
async def list_case_tags(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    return {"tags": [tag_to_dict(tag) for tag in legal_case.tags]}


@router.post("/{case_id}/tags")
async def attach_case_tags(
    case_id: int,
    data: AttachTagsRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    tags, created = await resolve_tags(db, data.tags)

    attached = {tag.id for tag in legal_case.tags}
    for tag in tags:
        if tag.id not in attached:
            legal_case.tags.append(tag)
    await db.commit()

    legal_case = await load_case(db, case_id)
    return {
        "success": True,
        "created": created,
        "message": "Etiquetas asignadas exitosamente.",
        "tags": [tag_to_dict(tag) for tag in legal_case.tags],
    }


@router.delete("/{case_id}/tag")
async def detach_case_tag(
    case_id: int,
    data: DetachTagRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await load_case(db, case_id)
    tag = await find_tag(db, data.tag.strip())
    if tag is not None and tag in legal_case.tags:
        legal_case.tags.remove(tag)
        await db.commit()

    return {
        "success": True,
        "message": "Etiqueta removida exitosamente.",
        "tags": [tag_to_dict(item) for item in legal_case.tags],
    }


@router.put("/{case_id}/tags")
async def sync_case_tags(
    case_id: int,
    data: SyncTagsRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the case's tags with exactly the given names."""
    legal_case = await load_case(db, case_id)
    tags, created = await resolve_tags(db, data.tags)
    legal_case.tags = tags
    await db.commit()

    legal_case = await load_case(db, case_id)
    return {
        "success": True,
        "created": created,
        "message": "Etiquetas actualizadas exitosamente.",
        "tags": [tag_to_dict(tag) for tag in legal_case.tags],
    }
