"""
Legal Entities Router
Organizations (companies, foundations, cooperatives...) that take part in
legal cases.
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
from casedesk.core.errors import validation_error
from casedesk.core.security import require_user
from casedesk.core.utc import utc_now
from casedesk.models.models import CaseLegalEntity, Individual, LegalEntity, User
from casedesk.services.filters import like_any
from casedesk.services.formatting import entity_display_name, full_name
from casedesk.services.pagination import paginate_query
from casedesk.services.records import ensure_unique, exists, get_or_404


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/legal-entities", tags=["Legal Entities"])

LegalEntityType = Literal[
    "sociedad_anonima",
    "compania_anonima",
    "sociedad_de_responsabilidad_limitada",
    "cooperativa",
    "fundacion",
    "asociacion_civil",
    "otro",
]

UNIQUE_FIELDS = ("rif", "registration_number", "email_1", "email_2")
UNIQUE_MESSAGES = {
    "rif": "Este RIF ya está registrado.",
    "registration_number": "Este número de registro ya está registrado.",
    "email_1": "Este correo electrónico ya está registrado.",
    "email_2": "Este correo electrónico ya está registrado.",
}


# =============================================================================
# Schemas
# =============================================================================

class LegalEntityRequest(BaseModel):
    rif: str = Field(..., min_length=1, max_length=15)
    business_name: str = Field(..., min_length=1, max_length=255)
    trade_name: Optional[str] = Field(None, max_length=255)
    legal_entity_type: LegalEntityType
    registration_number: Optional[str] = Field(None, max_length=50)
    registration_date: Optional[date] = None
    fiscal_address_line_1: str = Field(..., min_length=1, max_length=255)
    fiscal_address_line_2: Optional[str] = Field(None, max_length=255)
    fiscal_city: str = Field(..., min_length=1, max_length=100)
    fiscal_state: str = Field(..., min_length=1, max_length=100)
    fiscal_country: Optional[str] = Field(None, max_length=100)
    email_1: Optional[EmailStr] = Field(None, max_length=255)
    email_2: Optional[EmailStr] = Field(None, max_length=255)
    phone_number_1: Optional[str] = Field(None, max_length=20)
    phone_number_2: Optional[str] = Field(None, max_length=20)
    website: Optional[str] = Field(None, max_length=255)
    legal_representative_id: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RepresentativeSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    first_name: str
    last_name: str
    national_id: str


class LegalEntityResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    rif: str
    business_name: str
    trade_name: Optional[str] = None
    display_name: str = ""
    legal_entity_type: str
    registration_number: Optional[str] = None
    registration_date: Optional[date] = None
    fiscal_address_line_1: str
    fiscal_address_line_2: Optional[str] = None
    fiscal_city: str
    fiscal_state: str
    fiscal_country: Optional[str] = None
    email_1: Optional[str] = None
    email_2: Optional[str] = None
    phone_number_1: Optional[str] = None
    phone_number_2: Optional[str] = None
    website: Optional[str] = None
    legal_representative_id: Optional[int] = None
    legal_representative: Optional[RepresentativeSummary] = None
    created_at: datetime
    updated_at: datetime


def entity_to_response(entity: LegalEntity) -> LegalEntityResponse:
    response = LegalEntityResponse.model_validate(entity)
    response.display_name = entity_display_name(entity)
    representative = entity.legal_representative
    if representative is not None and representative.deleted_at is not None:
        response.legal_representative = None
    return response


async def _check_representative(db: AsyncSession, representative_id: Optional[int]) -> None:
    if representative_id is None:
        return
    found = await exists(
        db, Individual, Individual.id == representative_id, Individual.deleted_at.is_(None),
    )
    if not found:
        raise validation_error({"legal_representative_id": "El representante legal seleccionado no existe."})


def _unique_values(data: LegalEntityRequest) -> dict:
    values = data.model_dump()
    return {field: values[field] for field in UNIQUE_FIELDS}


async def _load_entity(db: AsyncSession, entity_id: int) -> LegalEntity:
    # Reload so the representative reflects the stored foreign key
    return await get_or_404(
        db, LegalEntity, entity_id, "Legal entity",
        options=[selectinload(LegalEntity.legal_representative)],
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.get("")
async def list_legal_entities(
    request: Request,
    search: Optional[str] = Query(None, description="Search business name, trade name or RIF"),
    page: int = Query(1, ge=1),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    stmt = select(LegalEntity).where(LegalEntity.deleted_at.is_(None))
    if search:
        stmt = stmt.where(like_any(search, LegalEntity.business_name, LegalEntity.trade_name, LegalEntity.rif))
    stmt = stmt.order_by(LegalEntity.id.desc())

    rows, meta = await paginate_query(
        db, stmt, page, settings.default_per_page, request.url.path, {"search": search},
    )
    return {
        "data": [entity_to_response(row) for row in rows],
        "meta": meta.model_dump(by_alias=True),
        "filters": {"search": search},
    }


@router.get("/representatives")
async def list_representatives(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Individuals that can be picked as legal representative."""
    result = await db.execute(
        select(Individual)
        .where(Individual.deleted_at.is_(None))
        .order_by(Individual.last_name, Individual.first_name)
    )
    return [
        {
            "id": person.id,
            "first_name": person.first_name,
            "last_name": person.last_name,
            "national_id": person.national_id,
            "full_name": full_name(person),
        }
        for person in result.scalars()
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_legal_entity(
    data: LegalEntityRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await ensure_unique(db, LegalEntity, _unique_values(data), UNIQUE_MESSAGES)
    await _check_representative(db, data.legal_representative_id)

    entity = LegalEntity(**data.model_dump())
    db.add(entity)
    await db.commit()
    entity_id = entity.id
    logger.info("Created legal entity %s", entity_id)
    db.expire(entity)
    entity = await _load_entity(db, entity_id)
    return {
        "success": True,
        "message": "Entidad legal creada exitosamente.",
        "legal_entity": entity_to_response(entity),
    }


@router.get("/{entity_id}")
async def get_legal_entity(
    entity_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Entity with its representative and the cases it takes part in."""
    entity = await get_or_404(
        db, LegalEntity, entity_id, "Legal entity",
        options=[selectinload(LegalEntity.case_links).selectinload(CaseLegalEntity.legal_case)],
    )
    data = entity_to_response(entity).model_dump()
    data["legal_cases"] = [
        {
            "id": link.legal_case.id,
            "code": link.legal_case.code,
            "entry_date": link.legal_case.entry_date.isoformat(),
            "closing_date": link.legal_case.closing_date.isoformat() if link.legal_case.closing_date else None,
            "case_type": {"id": link.legal_case.case_type.id, "name": link.legal_case.case_type.name},
            "role": link.role,
        }
        for link in entity.case_links
        if link.legal_case.deleted_at is None
    ]
    return data


@router.put("/{entity_id}")
async def update_legal_entity(
    entity_id: int,
    data: LegalEntityRequest,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    entity = await get_or_404(db, LegalEntity, entity_id, "Legal entity")
    await ensure_unique(db, LegalEntity, _unique_values(data), UNIQUE_MESSAGES, exclude_id=entity.id)
    await _check_representative(db, data.legal_representative_id)

    for field, value in data.model_dump().items():
        setattr(entity, field, value)
    await db.commit()
    db.expire(entity)
    entity = await _load_entity(db, entity_id)
    return {
        "success": True,
        "message": "Entidad legal actualizada exitosamente.",
        "legal_entity": entity_to_response(entity),
    }


@router.delete("/{entity_id}")
async def delete_legal_entity(
    entity_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete."""
    entity = await get_or_404(db, LegalEntity, entity_id, "Legal entity")
    entity.deleted_at = utc_now()
    await db.commit()
    logger.info("Deleted legal entity %s", entity_id)
    return {"success": True, "message": "Entidad legal eliminada exitosamente."}
