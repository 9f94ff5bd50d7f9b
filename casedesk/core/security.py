"""
CaseDesk - Security Module
Password accounts with opaque session tokens.

Core Principle:
- Passwords are stored as salted PBKDF2-SHA256 digests
- Login hands out a random token once; only its SHA-256 is persisted
- Every API route except login/register requires a valid token
- A 401 tells the client to redirect to the login page
"""

import hashlib
import hmac
import logging
import re
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from casedesk.core.config import Settings, get_settings
from casedesk.core.database import get_db
from casedesk.core.utc import to_utc, utc_now
from casedesk.models.models import ApiToken, User


logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing
# =============================================================================

PBKDF2_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


# =============================================================================
# Token Generation & Hashing
# =============================================================================

def generate_token() -> str:
    """Generate a secure token (hex string)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 hash a token for secure storage."""
    return hashlib.sha256(token.encode()).hexdigest()


async def issue_token(db: AsyncSession, user: User, settings: Settings) -> str:
    """Create a session token for ``user`` and return the raw value."""
    await db.execute(delete(ApiToken).where(
        ApiToken.user_id == user.id,
        ApiToken.expires_at <= utc_now(),
    ))
    token = generate_token()
    db.add(ApiToken(
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=utc_now() + timedelta(minutes=settings.access_token_expire_minutes),
    ))
    await db.flush()
    return token


async def revoke_token(db: AsyncSession, token: str) -> None:
    await db.execute(delete(ApiToken).where(ApiToken.token_hash == hash_token(token)))


# =============================================================================
# Input Sanitization
# =============================================================================

def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal attacks.
    Removes path separators and dangerous characters.
    """
    if not filename:
        return ""

    # Remove path components
    filename = str(filename).replace("\\", "/").split("/")[-1]

    # Remove null bytes, control characters and reserved characters
    filename = re.sub(r'[\x00-\x1f\x7f]', '', filename)
    filename = re.sub(r'[<>:"|?*]', '', filename)

    if filename in (".", ".."):
        return ""
    return filename[:255]


# =============================================================================
# FastAPI Dependencies
# =============================================================================

security_bearer = HTTPBearer(auto_error=False)


def _token_from(
    credentials: Optional[HTTPAuthorizationCredentials],
    cookie_value: Optional[str],
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return cookie_value or None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_bearer),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """
    Resolve the logged-in user, or None.

    Authentication sources (priority order):
    1. Authorization: Bearer <token>
    2. The session cookie named by ``settings.session_cookie_name``

    An expired token is deleted and the deletion committed right away, since
    the 401 that follows rolls back the request session.
    """
    token = _token_from(credentials, request.cookies.get(settings.session_cookie_name))
    if not token:
        return None

    result = await db.execute(select(ApiToken).where(ApiToken.token_hash == hash_token(token)))
    api_token = result.scalar_one_or_none()
    if api_token is None:
        logger.info("Rejected unknown session token")
        return None

    now = utc_now()
    if to_utc(api_token.expires_at) <= now:
        logger.info("Rejected expired session token for user %s", api_token.user_id)
        await db.delete(api_token)
        await db.commit()
        return None

    api_token.last_used_at = now
    return api_token.user


def current_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_bearer),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Raw token presented with the request (used by logout)."""
    return _token_from(credentials, request.cookies.get(settings.session_cookie_name))


async def require_user(
    user: Optional[User] = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Require an authenticated user.
    The 401 body tells the client to redirect to the login page.
    """
    if user:
        return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "auth_required",
            "message": "Authentication required. Please log in to continue.",
            "action": "redirect",
            "redirect_url": settings.login_url,
        },
        headers={"WWW-Authenticate": "Bearer"},
    )
