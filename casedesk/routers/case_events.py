"""
Case Events Router
Procedural events recorded on a legal case.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.errors import not_found
from casedesk.core.security import require_user
from casedesk.models.models import CaseEvent, LegalCase, User
from casedesk.services.formatting import iso_date
from casedesk.services.records import get_or_404


router = APIRouter(prefix="/api/legal-cases/{case_id}/events", tags=["Case Events"])


class CaseEventRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    date: date


def event_to_dict(event: CaseEvent) -> dict:
    return {
        "id": event.id,
        "legal_case_id": event.legal_case_id,
        "title": event.title,
        "description": event.description,
        "date": iso_date(event.date),
        "user": {"id": event.user.id, "name": event.user.name} if event.user else None,
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }


async def _get_event(db: AsyncSession, case_id: int, event_id: int) -> CaseEvent:
    await get_or_404(db, LegalCase, case_id, "Legal case")
    event = await db.get(CaseEvent, event_id)
    if event is None or event.legal_case_id != case_id:
        raise not_found("Event")
    return event


@router.get("")
async def list_events(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Events of a case, most recent date first."""
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")
    result = await db.execute(
        select(CaseEvent)
        .where(CaseEvent.legal_case_id == case_id)
        .order_by(CaseEvent.date.desc(), CaseEvent.id.desc())
    )
    return {
        "legal_case": {"id": legal_case.id, "code": legal_case.code},
        "events": [event_to_dict(event) for event in result.scalars()],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    case_id: int,
    data: CaseEventRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await get_or_404(db, LegalCase, case_id, "Legal case")
    event = CaseEvent(
        legal_case_id=case_id,
        user_id=user.id,
        title=data.title,
        description=data.description,
        date=data.date,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return {"success": True, "message": "Evento registrado correctamente.", "event": event_to_dict(event)}


@router.put("/{event_id}")
async def update_event(
    case_id: int,
    event_id: int,
    data: CaseEventRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    event = await _get_event(db, case_id, event_id)
    event.title = data.title
    event.description = data.description
    event.date = data.date
    await db.commit()
    await db.refresh(event)
    return {"success": True, "message": "Evento actualizado correctamente.", "event": event_to_dict(event)}


@router.delete("/{event_id}")
async def delete_event(
    case_id: int,
    event_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    event = await _get_event(db, case_id, event_id)
    await db.delete(event)
    await db.commit()
    return {"success": True, "message": "Evento eliminado correctamente."}
