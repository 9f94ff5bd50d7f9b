"""
Statuses Router
Status history entries across all cases. Entries are created from a case
(POST /api/legal-cases/{id}/status); here they can be reviewed, corrected
or removed.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.models.models import CaseStatus, User
from casedesk.services.records import get_or_404


router = APIRouter(prefix="/api/statuses", tags=["Statuses"])


class StatusUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    reason: Optional[str] = Field(None, max_length=1000)


class StatusResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    legal_case_id: int
    name: str
    reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


@router.get("", response_model=list[StatusResponse])
async def list_statuses(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(CaseStatus).order_by(CaseStatus.name, CaseStatus.id))
    return result.scalars().all()


@router.get("/{status_id}", response_model=StatusResponse)
async def get_status(
    status_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_404(db, CaseStatus, status_id, "Status")


@router.put("/{status_id}")
async def update_status(
    status_id: int,
    data: StatusUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await get_or_404(db, CaseStatus, status_id, "Status")
    entry.name = data.name
    entry.reason = data.reason
    await db.commit()
    await db.refresh(entry)
    return {
        "success": True,
        "message": "Estatus actualizado exitosamente.",
        "status": StatusResponse.model_validate(entry),
    }


@router.delete("/{status_id}")
async def delete_status(
    status_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    entry = await get_or_404(db, CaseStatus, status_id, "Status")
    await db.delete(entry)
    await db.commit()
    return {"success": True, "message": "Estatus eliminado exitosamente."}
