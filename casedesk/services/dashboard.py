"""
Dashboard aggregates: weekly case counts and chart distributions.
"""

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.utc import day_start_utc, week_bounds
from casedesk.models.models import CaseStatus, CaseType, LegalCase


NO_STATUS_LABEL = "Sin Estado"


def _live_cases():
    return select(LegalCase).where(LegalCase.deleted_at.is_(None))


async def cases_summary(db: AsyncSession, today: date, tz_name: str) -> dict:
    """
    Registered / closed counts for this and last week plus active cases.
    Weeks run Monday to Sunday in the local timezone.
    """
    monday, sunday = week_bounds(today)
    last_monday, last_sunday = monday - timedelta(days=7), sunday - timedelta(days=7)

    def registered_between(first: date, last: date):
        return _live_cases().where(
            LegalCase.created_at >= day_start_utc(first, tz_name),
            LegalCase.created_at < day_start_utc(last + timedelta(days=1), tz_name),
        )

    def closed_between(first: date, last: date):
        return _live_cases().where(
            LegalCase.closing_date.is_not(None),
            LegalCase.closing_date >= first,
            LegalCase.closing_date <= last,
        )

    async def count(stmt) -> int:
        return (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

    registered = (await db.execute(
        registered_between(monday, sunday).order_by(LegalCase.created_at.desc())
    )).scalars().all()
    closed = (await db.execute(
        closed_between(monday, sunday).order_by(LegalCase.closing_date.desc())
    )).scalars().all()
    active = (await db.execute(
        _live_cases().where(LegalCase.closing_date.is_(None)).order_by(LegalCase.created_at.desc())
    )).scalars().all()

    return {
        "registeredThisWeek": len(registered),
        "registeredLastWeek": await count(registered_between(last_monday, last_sunday)),
        "closedThisWeek": len(closed),
        "closedLastWeek": await count(closed_between(last_monday, last_sunday)),
        "active": len(active),
        "registeredThisWeekCases": [
            {"id": c.id, "case_number": c.code, "created_at": c.created_at.isoformat()} for c in registered
        ],
        "closedThisWeekCases": [
            {"id": c.id, "case_number": c.code, "closing_date": c.closing_date.isoformat()} for c in closed
        ],
        "activeCases": [
            {"id": c.id, "case_number": c.code, "created_at": c.created_at.isoformat()} for c in active
        ],
    }


async def case_status_distribution(db: AsyncSession) -> list[dict]:
    """Latest status of each open case, counted per name."""
    latest = (
        select(CaseStatus.legal_case_id, func.max(CaseStatus.id).label("status_id"))
        .group_by(CaseStatus.legal_case_id)
        .subquery()
    )
    label = func.coalesce(CaseStatus.name, NO_STATUS_LABEL)
    total = func.count(LegalCase.id)

    stmt = (
        select(label.label("status"), total.label("count"))
        .select_from(LegalCase)
        .outerjoin(latest, latest.c.legal_case_id == LegalCase.id)
        .outerjoin(CaseStatus, CaseStatus.id == latest.c.status_id)
        .where(LegalCase.closing_date.is_(None), LegalCase.deleted_at.is_(None))
        .group_by(label)
        .order_by(total.desc(), label)
    )
    result = await db.execute(stmt)
    return [{"status": row.status, "count": row.count} for row in result]


async def case_type_distribution(db: AsyncSession) -> list[dict]:
    """Open cases per case type."""
    total = func.count(LegalCase.id)
    stmt = (
        select(CaseType.name.label("type"), total.label("count"))
        .select_from(LegalCase)
        .join(CaseType, CaseType.id == LegalCase.case_type_id)
        .where(LegalCase.closing_date.is_(None), LegalCase.deleted_at.is_(None))
        .group_by(CaseType.name)
        .order_by(total.desc(), CaseType.name)
    )
    result = await db.execute(stmt)
    return [{"type": row.type, "count": row.count} for row in result]
