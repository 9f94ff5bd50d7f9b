"""
Dashboard Router
Summary counts, deadline widgets and chart data for the home page.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.core.utc import local_today
from casedesk.models.models import User
from casedesk.services.dashboard import case_status_distribution, case_type_distribution, cases_summary
from casedesk.services.deadlines import bucket_urgent, past_due_deadlines, upcoming_deadlines


router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/summary")
async def dashboard_summary(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Cases registered and closed this week and last week, plus active cases."""
    today = local_today(settings.local_timezone)
    return await cases_summary(db, today, settings.local_timezone)


@router.get("/urgent-deadlines")
async def urgent_deadlines(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Next deadline of each open case falling today, tomorrow or later this week."""
    today = local_today(settings.local_timezone)
    deadlines = await upcoming_deadlines(db, today)
    return bucket_urgent(deadlines, today)


@router.get("/past-due-deadlines")
async def overdue_deadlines(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    today = local_today(settings.local_timezone)
    deadlines = await past_due_deadlines(db, today)
    return [deadline.to_dashboard_dict() for deadline in deadlines]


@router.get("/case-status-distribution")
async def status_distribution(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await case_status_distribution(db)


@router.get("/case-type-distribution")
async def type_distribution(
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await case_type_distribution(db)
