"""
Deadline (important date) queries shared by the important dates list and
the dashboard.

Only open cases (no closing date) and non-expired, non-deleted dates count.
For each case the relevant deadline is either its nearest upcoming end date
or its most recent overdue one.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from casedesk.core.utc import week_bounds
from casedesk.models.models import CaseImportantDate, LegalCase


@dataclass
class CaseDeadline:
    legal_case: LegalCase
    important_date: CaseImportantDate

    def to_dict(self) -> dict:
        case = self.legal_case
        item = self.important_date
        return {
            "id": case.id,
            "code": case.code,
            "case_type": {"id": case.case_type.id, "name": case.case_type.name} if case.case_type else None,
            "next_important_date": {
                "id": item.id,
                "title": item.title,
                "start_date": item.start_date.isoformat() if item.start_date else None,
                "end_date": item.end_date.isoformat(),
            },
        }

    def to_dashboard_dict(self) -> dict:
        return {
            "id": self.important_date.id,
            "description": self.important_date.title,
            "date": self.important_date.end_date.isoformat(),
            "legal_case": {"id": self.legal_case.id, "case_number": self.legal_case.code},
        }


def _active_dates():
    return (
        select(CaseImportantDate)
        .join(CaseImportantDate.legal_case)
        .options(contains_eager(CaseImportantDate.legal_case))
        .where(
            CaseImportantDate.is_expired.is_(False),
            CaseImportantDate.deleted_at.is_(None),
            LegalCase.deleted_at.is_(None),
            LegalCase.closing_date.is_(None),
        )
    )


async def _cases_with_date_in(db: AsyncSession, start: date, end: date) -> set[int]:
    stmt = _active_dates().where(
        CaseImportantDate.end_date >= start,
        CaseImportantDate.end_date <= end,
    )
    result = await db.execute(stmt)
    return {row.legal_case_id for row in result.scalars().all()}


def _first_per_case(rows: list[CaseImportantDate]) -> list[CaseDeadline]:
    seen: set[int] = set()
    picked = []
    for row in rows:
        if row.legal_case_id in seen:
            continue
        seen.add(row.legal_case_id)
        picked.append(CaseDeadline(legal_case=row.legal_case, important_date=row))
    return picked


async def next_important_date(db: AsyncSession, legal_case_id: int, today: date) -> Optional[CaseImportantDate]:
    """Nearest non-expired date of a case ending today or later."""
    stmt = (
        select(CaseImportantDate)
        .where(
            CaseImportantDate.legal_case_id == legal_case_id,
            CaseImportantDate.is_expired.is_(False),
            CaseImportantDate.deleted_at.is_(None),
            CaseImportantDate.end_date >= today,
        )
        .order_by(CaseImportantDate.end_date, CaseImportantDate.id)
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def upcoming_deadlines(
    db: AsyncSession,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    case_type_id: Optional[int] = None,
) -> list[CaseDeadline]:
    """
    Nearest upcoming deadline per open case, soonest first.

    With a start/end range only cases holding a deadline inside the range
    are kept.
    """
    stmt = _active_dates().where(CaseImportantDate.end_date >= today)
    if case_type_id is not None:
        stmt = stmt.where(LegalCase.case_type_id == case_type_id)
    stmt = stmt.order_by(CaseImportantDate.end_date, CaseImportantDate.id)

    rows = list((await db.execute(stmt)).scalars().all())
    deadlines = _first_per_case(rows)

    if start is not None and end is not None:
        in_range = await _cases_with_date_in(db, start, end)
        deadlines = [d for d in deadlines if d.legal_case.id in in_range]
    return deadlines


async def past_due_deadlines(
    db: AsyncSession,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    case_type_id: Optional[int] = None,
) -> list[CaseDeadline]:
    """Most recent overdue deadline per open case, latest first."""
    stmt = _active_dates().where(CaseImportantDate.end_date < today)
    if case_type_id is not None:
        stmt = stmt.where(LegalCase.case_type_id == case_type_id)
    stmt = stmt.order_by(CaseImportantDate.end_date.desc(), CaseImportantDate.id.desc())

    rows = list((await db.execute(stmt)).scalars().all())
    deadlines = _first_per_case(rows)

    if start is not None and end is not None:
        # Only overdue dates inside the range count
        in_range = await _cases_with_date_in(db, start, min(end, today - timedelta(days=1)))
        deadlines = [d for d in deadlines if d.legal_case.id in in_range]
    return deadlines


def bucket_urgent(deadlines: list[CaseDeadline], today: date) -> dict[str, list[dict]]:
    """
    Split upcoming deadlines into today / tomorrow / rest of the week.
    Anything after Sunday is dropped.
    """
    buckets: dict[str, list[dict]] = {"today": [], "tomorrow": [], "thisWeek": []}
    tomorrow = today + timedelta(days=1)
    _, sunday = week_bounds(today)

    for deadline in deadlines:
        day = deadline.important_date.end_date
        if day == today:
            buckets["today"].append(deadline.to_dashboard_dict())
        elif day == tomorrow:
            buckets["tomorrow"].append(deadline.to_dashboard_dict())
        elif today <= day <= sunday:
            buckets["thisWeek"].append(deadline.to_dashboard_dict())
    return buckets


def days_remaining(item: CaseImportantDate, today: date) -> int:
    """0 when expired, otherwise the signed number of days until the end date."""
    return item.days_remaining(today)
