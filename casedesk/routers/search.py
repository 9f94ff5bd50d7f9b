"""
Search Router
Global search box: individuals, legal entities and legal cases at once.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.models.models import User
from casedesk.services.search import global_search


router = APIRouter(prefix="/api/search", tags=["Search"])


@router.get("")
async def search(
    query: str = Query("", max_length=255),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return {"query": query, "results": await global_search(db, query)}
