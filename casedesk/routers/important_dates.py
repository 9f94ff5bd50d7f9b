"""
Important Dates Router
Procedural terms (lapsos) of a case and the cross-case deadline list.

The list at /api/legal-cases/important-dates/list has two sections, each
paginated on its own query parameters (upcoming_page, past_due_page).
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.errors import not_found, validation_error
from casedesk.core.security import require_user
from casedesk.core.utc import local_today, utc_now
from casedesk.models.models import CaseImportantDate, CaseType, LegalCase, User
from casedesk.services.deadlines import next_important_date, past_due_deadlines, upcoming_deadlines
from casedesk.services.formatting import iso_date
from casedesk.services.pagination import DEADLINE_PAGE_SIZES, build_meta, paginate_list, resolve_per_page
from casedesk.services.records import get_or_404


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/legal-cases", tags=["Important Dates"])


# =============================================================================
# Schemas
# =============================================================================

class ImportantDateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: date
    end_date: date


class ImportantDateUpdate(ImportantDateRequest):
    is_expired: bool


class ExpiredRequest(BaseModel):
    is_expired: bool


# =============================================================================
# Helper Functions
# =============================================================================

def _check_range(data: ImportantDateRequest) -> None:
    if data.end_date < data.start_date:
        raise validation_error({
            "end_date": "La fecha de finalización debe ser igual o posterior a la fecha de inicio.",
        })


def important_date_to_dict(item: CaseImportantDate, today: date) -> dict:
    return {
        "id": item.id,
        "legal_case_id": item.legal_case_id,
        "title": item.title,
        "description": item.description,
        "start_date": iso_date(item.start_date),
        "end_date": iso_date(item.end_date),
        "is_expired": bool(item.is_expired),
        "days_remaining": item.days_remaining(today),
        "created_by": {"id": item.creator.id, "name": item.creator.name} if item.creator else None,
    }


async def _get_important_date(db: AsyncSession, case_id: int, date_id: int) -> CaseImportantDate:
    await get_or_404(db, LegalCase, case_id, "Legal case")
    item = await get_or_404(db, CaseImportantDate, date_id, "Important date")
    if item.legal_case_id != case_id:
        raise not_found("Important date")
    return item


def _case_type_filter(value: Optional[str]) -> Optional[int]:
    """No filter for "all", empty or non-numeric values."""
    if not value or value == "all":
        return None
    try:
        return int(value)
    except ValueError:
        return None


# =============================================================================
# Deadline List
# =============================================================================

@router.get("/important-dates/list")
async def important_dates_list(
    request: Request,
    upcoming_start_date: Optional[date] = Query(None),
    upcoming_end_date: Optional[date] = Query(None),
    upcoming_case_type_id: Optional[str] = Query(None),
    upcoming_per_page: Optional[str] = Query(None),
    upcoming_page: int = Query(1, ge=1),
    past_due_start_date: Optional[date] = Query(None),
    past_due_end_date: Optional[date] = Query(None),
    past_due_case_type_id: Optional[str] = Query(None),
    past_due_per_page: Optional[str] = Query(None),
    past_due_page: int = Query(1, ge=1),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Upcoming: each open case's nearest pending deadline, soonest first.
    Past due: each open case's latest overdue deadline, most recent first.
    """
    today = local_today(settings.local_timezone)
    upcoming_size = resolve_per_page(upcoming_per_page, DEADLINE_PAGE_SIZES)
    past_due_size = resolve_per_page(past_due_per_page, DEADLINE_PAGE_SIZES)

    upcoming = await upcoming_deadlines(
        db, today, upcoming_start_date, upcoming_end_date, _case_type_filter(upcoming_case_type_id),
    )
    past_due = await past_due_deadlines(
        db, today, past_due_start_date, past_due_end_date, _case_type_filter(past_due_case_type_id),
    )

    filters = {
        "upcoming_start_date": iso_date(upcoming_start_date),
        "upcoming_end_date": iso_date(upcoming_end_date),
        "upcoming_case_type_id": upcoming_case_type_id,
        "past_due_start_date": iso_date(past_due_start_date),
        "past_due_end_date": iso_date(past_due_end_date),
        "past_due_case_type_id": past_due_case_type_id,
        "upcoming_per_page": upcoming_size,
        "past_due_per_page": past_due_size,
    }
    path = request.url.path
    params = {**filters, "upcoming_page": upcoming_page, "past_due_page": past_due_page}

    case_types = (await db.execute(select(CaseType).order_by(CaseType.name))).scalars().all()
    return {
        "upcoming": {
            "data": [d.to_dict() for d in paginate_list(upcoming, upcoming_page, upcoming_size)],
            "meta": build_meta(
                len(upcoming), upcoming_page, upcoming_size, path, params, "upcoming_page",
            ).model_dump(by_alias=True),
        },
        "past_due": {
            "data": [d.to_dict() for d in paginate_list(past_due, past_due_page, past_due_size)],
            "meta": build_meta(
                len(past_due), past_due_page, past_due_size, path, params, "past_due_page",
            ).model_dump(by_alias=True),
        },
        "case_types": [{"id": t.id, "name": t.name} for t in case_types],
        "filters": filters,
    }


# =============================================================================
# Per-Case Endpoints
# =============================================================================

@router.get("/{case_id}/important-dates")
async def list_important_dates(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")
    today = local_today(settings.local_timezone)

    result = await db.execute(
        select(CaseImportantDate)
        .where(CaseImportantDate.legal_case_id == case_id, CaseImportantDate.deleted_at.is_(None))
        .order_by(CaseImportantDate.end_date, CaseImportantDate.id)
    )
    upcoming = await next_important_date(db, case_id, today)
    return {
        "legal_case": {"id": legal_case.id, "code": legal_case.code},
        "important_dates": [important_date_to_dict(item, today) for item in result.scalars()],
        "next_important_date": important_date_to_dict(upcoming, today) if upcoming else None,
    }


@router.post("/{case_id}/important-dates", status_code=status.HTTP_201_CREATED)
async def create_important_date(
    case_id: int,
    data: ImportantDateRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await get_or_404(db, LegalCase, case_id, "Legal case")
    _check_range(data)

    item = CaseImportantDate(
        legal_case_id=case_id,
        title=data.title,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        is_expired=False,
        created_by=user.id,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    logger.info("Case %s: added important date %s ending %s", case_id, item.id, item.end_date)
    return {
        "success": True,
        "message": "Fecha importante creada exitosamente",
        "important_date": important_date_to_dict(item, local_today(settings.local_timezone)),
    }


@router.put("/{case_id}/important-dates/{date_id}")
async def update_important_date(
    case_id: int,
    date_id: int,
    data: ImportantDateUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    item = await _get_important_date(db, case_id, date_id)
    _check_range(data)

    item.title = data.title
    item.description = data.description
    item.start_date = data.start_date
    item.end_date = data.end_date
    item.is_expired = data.is_expired
    await db.commit()
    await db.refresh(item)
    return {
        "success": True,
        "message": "Fecha importante actualizada exitosamente",
        "important_date": important_date_to_dict(item, local_today(settings.local_timezone)),
    }


@router.patch("/{case_id}/important-dates/{date_id}/set-expired")
async def set_important_date_expired(
    case_id: int,
    date_id: int,
    data: ExpiredRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await _get_important_date(db, case_id, date_id)
    item.is_expired = data.is_expired
    await db.commit()
    return {
        "success": True,
        "message": "Estado de vencimiento actualizado",
        "is_expired": item.is_expired,
    }


@router.delete("/{case_id}/important-dates/{date_id}")
async def delete_important_date(
    case_id: int,
    date_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete."""
    item = await _get_important_date(db, case_id, date_id)
    item.deleted_at = utc_now()
    await db.commit()
    return {"success": True, "message": "Fecha importante eliminada exitosamente"}
