"""
Demo data for a fresh installation.

Seeding is skipped when case types already exist, so running it twice is
harmless.
"""

import logging
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.models.models import (
    CaseEvent,
    CaseImportantDate,
    CaseIndividual,
    CaseLegalEntity,
    CaseStatus,
    CaseType,
    Individual,
    LegalCase,
    LegalEntity,
    StatusList,
    TagList,
)
from casedesk.services.tags import find_or_create_tag


logger = logging.getLogger(__name__)

CASE_TYPES = [
    ("Divorcio", "Procedimiento legal para la disolución del vínculo matrimonial"),
    ("Manutención", "Casos relacionados con obligaciones de manutención a menores o dependientes"),
    ("Título Supletorio", "Procedimiento para obtener un título de propiedad cuando se carece del mismo"),
    ("Demanda por Daños y Perjuicios", "Reclamación por daños materiales o morales causados por un tercero"),
    ("Partición de Herencia", "Procedimiento para dividir los bienes dejados por una persona fallecida"),
]

STATUS_NAMES = [
    "En Tramite",
    "En Fase De Sustanciación",
    "En Fase De Sentencia Dentro Del Lapso",
    "En Fase De Sentencia Fuera Del Lapso",
    "En Fase De Notificación, Interposición De Recurso",
    "En Fase De Ejecución De Sentencia",
    "Distribuidos Sin Aceptar",
    "Distribuidos Y Aceptados Sin Auto De Admisión",
    "Expedientes Provenientes De Archivo Judicial",
    "Suspendidos",
    "Paralizados",
    "Paralizados En Ejecución De Sentencia",
    "Terminados",
    "Terminados Por Remitir Al Archivo Judicial",
]

TAGS = [
    ("Urgente", "priority"),
    ("Prioridad Alta", "priority"),
    ("Prioridad Media", "priority"),
    ("Prioridad Baja", "priority"),
    ("En Revisión", "status"),
]

INDIVIDUALS = [
    {"national_id": "V-12345678", "first_name": "María", "last_name": "González", "gender": "female",
     "civil_status": "married", "email_1": "maria.gonzalez@example.com", "city": "Caracas"},
    {"national_id": "V-23456789", "first_name": "José", "last_name": "Rodríguez", "gender": "male",
     "civil_status": "single", "email_1": "jose.rodriguez@example.com", "city": "Valencia"},
    {"national_id": "V-34567890", "first_name": "Ana", "middle_name": "Isabel", "last_name": "Pérez",
     "gender": "female", "civil_status": "divorced", "occupation": "Abogada", "city": "Maracay"},
]

ENTITIES = [
    {"rif": "J-30000001-1", "business_name": "Inversiones del Centro C.A.", "trade_name": "InverCentro",
     "legal_entity_type": "compania_anonima", "fiscal_address_line_1": "Av. Bolívar, Torre Centro",
     "fiscal_city": "Caracas", "fiscal_state": "Distrito Capital"},
    {"rif": "J-30000002-2", "business_name": "Cooperativa Agrícola Los Andes",
     "legal_entity_type": "cooperativa", "fiscal_address_line_1": "Carretera Trasandina, Km 12",
     "fiscal_city": "Mérida", "fiscal_state": "Mérida"},
]


async def seed_demo_data(db: AsyncSession, today: date) -> dict[str, int]:
    """Insert catalogs plus a few participants and cases. Returns rows created per kind."""
    existing = (await db.execute(select(func.count()).select_from(CaseType))).scalar_one()
    if existing:
        logger.info("Database already has %d case types; skipping seed", existing)
        return {}

    case_types = [CaseType(name=name, description=description) for name, description in CASE_TYPES]
    db.add_all(case_types)
    db.add_all(StatusList(name=name, description="Estatus de ejemplo inicial") for name in STATUS_NAMES)
    for name, tag_type in TAGS:
        await find_or_create_tag(db, name, tag_type)
        db.add(TagList(name=name))

    individuals = [Individual(**data) for data in INDIVIDUALS]
    db.add_all(individuals)
    await db.flush()

    entities = [LegalEntity(**data) for data in ENTITIES]
    entities[0].legal_representative_id = individuals[2].id
    db.add_all(entities)
    await db.flush()

    cases = [
        LegalCase(code=f"EXP-{today.year}-{number:04d}", entry_date=today - timedelta(days=30 * number),
                  case_type_id=case_types[number % len(case_types)].id)
        for number in range(1, 4)
    ]
    db.add_all(cases)
    await db.flush()

    for number, legal_case in enumerate(cases):
        db.add(CaseIndividual(legal_case_id=legal_case.id, individual_id=individuals[number].id, role="Solicitante"))
        db.add(CaseLegalEntity(legal_case_id=legal_case.id, legal_entity_id=entities[number % 2].id, role="Demandado"))
        db.add(CaseStatus(legal_case_id=legal_case.id, name=STATUS_NAMES[number], reason="Carga inicial"))
        db.add(CaseEvent(legal_case_id=legal_case.id, title="Admisión de la demanda", date=legal_case.entry_date))
        db.add(CaseImportantDate(
            legal_case_id=legal_case.id,
            title="Lapso de contestación",
            start_date=today - timedelta(days=5),
            end_date=today + timedelta(days=number * 3 - 2),
        ))

    await db.flush()
    counts = {
        "case_types": len(case_types),
        "status_lists": len(STATUS_NAMES),
        "tags": len(TAGS),
        "individuals": len(individuals),
        "legal_entities": len(entities),
        "legal_cases": len(cases),
    }
    logger.info("Seeded demo data: %s", counts)
    return counts
