"""
Authentication Router
Register, log in, log out and inspect the current user.

Login returns an opaque token and also sets it as the session cookie, so
both API clients (Authorization: Bearer) and the browser app work.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.errors import validation_error
from casedesk.core.security import (
    current_token,
    hash_password,
    issue_token,
    require_user,
    revoke_token,
    verify_password,
)
from casedesk.core.utc import utc_now
from casedesk.models.models import User


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# =============================================================================
# Schemas
# =============================================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    email: str
    created_at: datetime
    last_login: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a staff account."""
    email = data.email.lower()
    exists = await db.scalar(select(func.count()).select_from(User).where(User.email == email))
    if exists:
        raise validation_error({"email": "Ya existe una cuenta con este correo."})

    user = User(name=data.name, email=email, password_hash=hash_password(data.password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and hand out a session token."""
    result = await db.execute(select(User).where(User.email == data.email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(data.password, user.password_hash):
        logger.warning("Failed login for %s", data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "invalid_credentials",
                "message": "Credenciales inválidas.",
            },
        )

    token = await issue_token(db, user, settings)
    user.last_login = utc_now()
    await db.commit()

    max_age = settings.access_token_expire_minutes * 60
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=not settings.debug,
    )
    return TokenResponse(access_token=token, expires_in=max_age, user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout(
    response: Response,
    token: Optional[str] = Depends(current_token),
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Revoke the presented token and clear the cookie."""
    if token:
        await revoke_token(db, token)
    response.delete_cookie(settings.session_cookie_name)
    logger.info("User %s logged out", user.id)
    return {"success": True, "message": "Sesión cerrada."}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(require_user)):
    return user
