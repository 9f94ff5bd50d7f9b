"""
Case Participants Router
Attach individuals and legal entities to a case with a procedural role.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.models.models import CaseIndividual, CaseLegalEntity, Individual, LegalCase, LegalEntity, User
from casedesk.services.filters import like_any
from casedesk.services.formatting import entity_display_name, full_name
from casedesk.services.records import get_or_404


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/legal-cases/{case_id}/participants", tags=["Case Participants"])

AVAILABLE_ROLES = (
    "Juez",
    "Solicitante",
    "Demandado",
    "Abogado de Solicitante",
    "Abogado de Demandado",
    "Testigo",
)

ParticipantType = Literal["individual", "entity"]


class ParticipantSearch(BaseModel):
    query: str = Field(..., min_length=2, max_length=50)


class ParticipantAttach(BaseModel):
    type: ParticipantType
    id: int
    role: str = Field(..., min_length=1, max_length=100)


class ParticipantDetach(BaseModel):
    type: ParticipantType
    id: int


@router.get("/roles")
async def participant_roles(
    case_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")
    return {
        "legal_case": {"id": legal_case.id, "code": legal_case.code},
        "available_roles": list(AVAILABLE_ROLES),
    }


@router.post("/search")
async def search_participants(
    case_id: int,
    data: ParticipantSearch,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Individuals by name or national id, entities by name or RIF."""
    await get_or_404(db, LegalCase, case_id, "Legal case")
    query = data.query.strip()

    individuals = await db.execute(
        select(Individual)
        .where(
            Individual.deleted_at.is_(None),
            like_any(query, Individual.first_name, Individual.last_name, Individual.national_id),
        )
        .order_by(Individual.last_name, Individual.first_name)
    )
    entities = await db.execute(
        select(LegalEntity)
        .where(
            LegalEntity.deleted_at.is_(None),
            like_any(query, LegalEntity.business_name, LegalEntity.trade_name, LegalEntity.rif),
        )
        .order_by(LegalEntity.business_name)
    )

    results = [
        {"id": person.id, "type": "individual", "name": full_name(person), "identifier": person.national_id}
        for person in individuals.scalars()
    ]
    results += [
        {"id": entity.id, "type": "entity", "name": entity_display_name(entity), "identifier": entity.rif}
        for entity in entities.scalars()
    ]
    return {"results": results}


@router.post("")
async def attach_participant(
    case_id: int,
    data: ParticipantAttach,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Attach a participant, or change their role when already attached."""
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")

    if data.type == "individual":
        await get_or_404(db, Individual, data.id, "Individual")
        result = await db.execute(
            select(CaseIndividual).where(
                CaseIndividual.legal_case_id == legal_case.id,
                CaseIndividual.individual_id == data.id,
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            db.add(CaseIndividual(legal_case_id=legal_case.id, individual_id=data.id, role=data.role))
        else:
            link.role = data.role
    else:
        await get_or_404(db, LegalEntity, data.id, "Legal entity")
        result = await db.execute(
            select(CaseLegalEntity).where(
                CaseLegalEntity.legal_case_id == legal_case.id,
                CaseLegalEntity.legal_entity_id == data.id,
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            db.add(CaseLegalEntity(legal_case_id=legal_case.id, legal_entity_id=data.id, role=data.role))
        else:
            link.role = data.role

    await db.commit()
    logger.info("Case %s: %s %s attached as %r", case_id, data.type, data.id, data.role)
    return {"success": True, "message": "Participante asociado correctamente al expediente."}


@router.delete("")
async def detach_participant(
    case_id: int,
    data: ParticipantDetach,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    legal_case = await get_or_404(db, LegalCase, case_id, "Legal case")

    if data.type == "individual":
        stmt = select(CaseIndividual).where(
            CaseIndividual.legal_case_id == legal_case.id,
            CaseIndividual.individual_id == data.id,
        )
    else:
        stmt = select(CaseLegalEntity).where(
            CaseLegalEntity.legal_case_id == legal_case.id,
            CaseLegalEntity.legal_entity_id == data.id,
        )
    link = (await db.execute(stmt)).scalar_one_or_none()
    if link is not None:
        await db.delete(link)
        await db.commit()

    return {"success": True, "message": "Participante eliminado correctamente del expediente."}
