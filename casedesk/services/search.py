"""
Global search across individuals, legal entities and legal cases.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.models.models import Individual, LegalCase, LegalEntity
from casedesk.services.filters import like_any
from casedesk.services.formatting import entity_display_name, full_name


INDIVIDUAL_SEARCH_FIELDS = (
    Individual.national_id,
    Individual.passport,
    Individual.first_name,
    Individual.middle_name,
    Individual.last_name,
    Individual.second_last_name,
    Individual.rif,
    Individual.email_1,
    Individual.email_2,
    Individual.phone_number_1,
    Individual.phone_number_2,
)

ENTITY_SEARCH_FIELDS = (
    LegalEntity.rif,
    LegalEntity.business_name,
    LegalEntity.trade_name,
    LegalEntity.registration_number,
    LegalEntity.email_1,
    LegalEntity.email_2,
    LegalEntity.phone_number_1,
    LegalEntity.phone_number_2,
    LegalEntity.website,
)


async def global_search(db: AsyncSession, query: str, limit: int = 50) -> dict[str, list[dict]]:
    """Matches grouped by type; each hit carries a title and the URL of its record."""
    query = (query or "").strip()
    groups: dict[str, list[dict]] = {"individuals": [], "legal_entities": [], "legal_cases": []}
    if not query:
        return groups

    individuals = await db.execute(
        select(Individual)
        .where(Individual.deleted_at.is_(None), like_any(query, *INDIVIDUAL_SEARCH_FIELDS))
        .order_by(Individual.last_name, Individual.first_name)
        .limit(limit)
    )
    for person in individuals.scalars():
        groups["individuals"].append({
            "id": person.id,
            "type": "individuals",
            "title": full_name(person),
            "subtitle": person.national_id,
            "url": f"/individuals/{person.id}",
        })

    entities = await db.execute(
        select(LegalEntity)
        .where(LegalEntity.deleted_at.is_(None), like_any(query, *ENTITY_SEARCH_FIELDS))
        .order_by(LegalEntity.business_name)
        .limit(limit)
    )
    for entity in entities.scalars():
        groups["legal_entities"].append({
            "id": entity.id,
            "type": "legal_entities",
            "title": entity_display_name(entity),
            "subtitle": entity.rif,
            "url": f"/legal-entities/{entity.id}",
        })

    cases = await db.execute(
        select(LegalCase)
        .where(LegalCase.deleted_at.is_(None), like_any(query, LegalCase.code))
        .order_by(LegalCase.code)
        .limit(limit)
    )
    for case in cases.scalars():
        groups["legal_cases"].append({
            "id": case.id,
            "type": "legal_cases",
            "title": case.code,
            "subtitle": case.case_type.name if case.case_type else None,
            "url": f"/legal-cases/{case.id}",
        })

    return groups
