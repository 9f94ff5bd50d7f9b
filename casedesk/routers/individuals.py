"""
Individuals Router
Natural persons that take part in legal cases.
"""

import logging
from datetime import date, datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.core.utc import utc_now
from casedesk.models.models import CaseIndividual, Individual, User
from casedesk.services.filters import like_any
from casedesk.services.formatting import full_name
from casedesk.services.pagination import paginate_query
from casedesk.services.records import ensure_unique, get_or_404


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/individuals", tags=["Individuals"])

UNIQUE_FIELDS = ("national_id", "passport", "rif", "email_1", "email_2")
UNIQUE_MESSAGES = {
    "national_id": "Esta cédula de identidad ya está registrada.",
    "passport": "Este número de pasaporte ya está registrado.",
    "rif": "Este RIF ya está registrado.",
    "email_1": "Este correo electrónico ya está registrado.",
    "email_2": "Este correo electrónico ya está registrado.",
}


# =============================================================================
# Schemas
# =============================================================================

class IndividualRequest(BaseModel):
    """Fields accepted on create and update."""
    national_id: str = Field(..., min_length=1, max_length=20)
    passport: Optional[str] = Field(None, max_length=30)
    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    second_last_name: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[date] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    civil_status: Optional[Literal["single", "married", "divorced", "widowed", "cohabiting"]] = None
    rif: Optional[str] = Field(None, max_length=15)
    email_1: Optional[EmailStr] = Field(None, max_length=255)
    email_2: Optional[EmailStr] = Field(None, max_length=255)
    phone_number_1: Optional[str] = Field(None, max_length=20)
    phone_number_2: Optional[str] = Field(None, max_length=20)
    address_line_1: Optional[str] = Field(None, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    nationality: Optional[str] = Field(None, max_length=100)
    occupation: Optional[str] = Field(None, max_length=100)
    educational_level: Optional[str] = Field(None, max_length=100)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """HTML forms send empty strings for untouched optional inputs."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class IndividualResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    national_id: str
    passport: Optional[str] = None
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    second_last_name: Optional[str] = None
    full_name: str = ""
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    civil_status: Optional[str] = None
    rif: Optional[str] = None
    email_1: Optional[str] = None
    email_2: Optional[str] = None
    phone_number_1: Optional[str] = None
    phone_number_2: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    nationality: Optional[str] = None
    occupation: Optional[str] = None
    educational_level: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def individual_to_response(individual: Individual) -> IndividualResponse:
    response = IndividualResponse.model_validate(individual)
    response.full_name = full_name(individual)
    return response


def _unique_values(data: IndividualRequest) -> dict:
    values = data.model_dump()
    return {field: values[field] for field in UNIQUE_FIELDS}


# =============================================================================
# Endpoints
# =============================================================================

@router.get("")
async def list_individuals(
    request: Request,
    search: Optional[str] = Query(None, description="Search first name, last name or national id"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Newest first, one page of the configured size."""
    stmt = select(Individual).where(Individual.deleted_at.is_(None))
    if search:
        stmt = stmt.where(like_any(search, Individual.first_name, Individual.last_name, Individual.national_id))
    stmt = stmt.order_by(Individual.id.desc())

    rows, meta = await paginate_query(
        db, stmt, page, settings.default_per_page, request.url.path, {"search": search},
    )
    return {
        "data": [individual_to_response(row) for row in rows],
        "meta": meta.model_dump(by_alias=True),
        "filters": {"search": search},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_individual(
    data: IndividualRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, Individual, _unique_values(data), UNIQUE_MESSAGES)
    individual = Individual(**data.model_dump())
    db.add(individual)
    await db.commit()
    await db.refresh(individual)
    logger.info("Created individual %s", individual.id)
    return {
        "success": True,
        "message": "Individuo creado exitosamente.",
        "individual": individual_to_response(individual),
    }


@router.get("/{individual_id}")
async def get_individual(
    individual_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Individual with the cases they take part in."""
    individual = await get_or_404(
        db, Individual, individual_id, "Individual",
        options=[selectinload(Individual.case_links).selectinload(CaseIndividual.legal_case)],
    )
    cases = [
        {
            "id": link.legal_case.id,
            "code": link.legal_case.code,
            "entry_date": link.legal_case.entry_date.isoformat(),
            "closing_date": link.legal_case.closing_date.isoformat() if link.legal_case.closing_date else None,
            "case_type": {"id": link.legal_case.case_type.id, "name": link.legal_case.case_type.name},
            "role": link.role,
        }
        for link in individual.case_links
        if link.legal_case.deleted_at is None
    ]
    data = individual_to_response(individual).model_dump()
    data["legal_cases"] = cases
    return data


@router.put("/{individual_id}")
async def update_individual(
    individual_id: int,
    data: IndividualRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    individual = await get_or_404(db, Individual, individual_id, "Individual")
    await ensure_unique(db, Individual, _unique_values(data), UNIQUE_MESSAGES, exclude_id=individual.id)

    for field, value in data.model_dump().items():
        setattr(individual, field, value)
    await db.commit()
    await db.refresh(individual)
    return {
        "success": True,
        "message": "Individuo actualizado exitosamente.",
        "individual": individual_to_response(individual),
    }


@router.delete("/{individual_id}")
async def delete_individual(
    individual_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete."""
    individual = await get_or_404(db, Individual, individual_id, "Individual")
    individual.deleted_at = utc_now()
    await db.commit()
    logger.info("Deleted individual %s", individual_id)
    return {"success": True, "message": "Individuo eliminado exitosamente."}
