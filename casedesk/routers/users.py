"""
Users Router
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.database import get_db
from casedesk.core.security import require_user
from casedesk.models.models import User
from casedesk.routers.auth import UserResponse
from casedesk.services.records import get_or_404


router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Public profile of a staff account."""
    return await get_or_404(db, User, user_id, "User")
