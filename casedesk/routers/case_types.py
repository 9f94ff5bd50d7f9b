"""
Case Types Router
CRUD for the catalog of case types (civil, penal, laboral...).
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.errors import validation_error
from casedesk.core.security import require_user
from casedesk.models.models import CaseType, LegalCase, User
from casedesk.services.records import ensure_unique, exists, get_or_404


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/case-types", tags=["Case Types"])

UNIQUE_MESSAGES = {"name": "Ya existe un tipo de caso con este nombre."}


# =============================================================================
# Schemas
# =============================================================================

class CaseTypeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class CaseTypeResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=list[CaseTypeResponse])
async def list_case_types(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """All case types ordered by name."""
    result = await db.execute(select(CaseType).order_by(CaseType.name))
    return result.scalars().all()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_case_type(
    data: CaseTypeRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, CaseType, {"name": data.name}, UNIQUE_MESSAGES)
    case_type = CaseType(name=data.name, description=data.description)
    db.add(case_type)
    await db.commit()
    await db.refresh(case_type)
    return {
        "success": True,
        "message": "Tipo de caso creado exitosamente.",
        "case_type": CaseTypeResponse.model_validate(case_type),
    }


@router.get("/{case_type_id}", response_model=CaseTypeResponse)
async def get_case_type(
    case_type_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_or_404(db, CaseType, case_type_id, "Case type")


@router.put("/{case_type_id}")
async def update_case_type(
    case_type_id: int,
    data: CaseTypeRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    case_type = await get_or_404(db, CaseType, case_type_id, "Case type")
    await ensure_unique(db, CaseType, {"name": data.name}, UNIQUE_MESSAGES, exclude_id=case_type.id)

    case_type.name = data.name
    case_type.description = data.description
    await db.commit()
    await db.refresh(case_type)
    return {
        "success": True,
        "message": "Tipo de caso actualizado exitosamente.",
        "case_type": CaseTypeResponse.model_validate(case_type),
    }


@router.delete("/{case_type_id}")
async def delete_case_type(
    case_type_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a case type that no case (deleted or not) refers to."""
    case_type = await get_or_404(db, CaseType, case_type_id, "Case type")
    if await exists(db, LegalCase, LegalCase.case_type_id == case_type.id):
        raise validation_error({"case_type": "El tipo de caso está asignado a uno o más expedientes."})

    await db.delete(case_type)
    await db.commit()
    logger.info("Deleted case type %s", case_type_id)
    return {"success": True, "message": "Tipo de caso eliminado exitosamente."}
