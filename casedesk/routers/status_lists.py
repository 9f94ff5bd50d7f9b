"""
Status Lists Router
Catalog of status names offered when changing a case's status.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.models.models import StatusList, User
from casedesk.services.records import ensure_unique, get_or_404


router = APIRouter(prefix="/api/status-lists", tags=["Status Lists"])

UNIQUE_MESSAGES = {"name": "Ya existe un estatus con este nombre."}


class StatusListRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class StatusListResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


@router.get("", response_model=list[StatusListResponse])
async def list_status_lists(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(StatusList).order_by(StatusList.name))
    return result.scalars().all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_status_list(
    data: StatusListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, StatusList, {"name": data.name}, UNIQUE_MESSAGES)
    item = StatusList(name=data.name, description=data.description)
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return {
        "success": True,
        "message": "Estatus creado exitosamente.",
        "status": StatusListResponse.model_validate(item),
    }


@router.get("/{status_list_id}", response_model=StatusListResponse)
async def get_status_list(
    status_list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_404(db, StatusList, status_list_id, "Status")


@router.put("/{status_list_id}")
async def update_status_list(
    status_list_id: int,
    data: StatusListRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await get_or_404(db, StatusList, status_list_id, "Status")
    await ensure_unique(db, StatusList, {"name": data.name}, UNIQUE_MESSAGES, exclude_id=item.id)
    item.name = data.name
    item.description = data.description
    await db.commit()
    await db.refresh(item)
    return {
        "success": True,
        "message": "Estatus actualizado exitosamente.",
        "status": StatusListResponse.model_validate(item),
    }


@router.delete("/{status_list_id}")
async def delete_status_list(
    status_list_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    item = await get_or_404(db, StatusList, status_list_id, "Status")
    await db.delete(item)
    await db.commit()
    return {"success": True, "message": "Estatus eliminado exitosamente."}
