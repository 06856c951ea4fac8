"""
FastAPI Dependencies
====================

Common dependencies for dependency injection.

The session token is read from `Authorization: Bearer <token>` or, failing
that, the session cookie. It is resolved once per request into an
`AuthContext` that routes pass on to the services explicitly.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session_maker
from app.services.auth import AuthContext, get_session_by_token, require_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        if token:
            return token
    return request.cookies.get(settings.session_cookie_name)


async def get_auth_context(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a live session; 401 otherwise."""
    return await require_session(db, token)


async def get_optional_auth_context(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
) -> Optional[AuthContext]:
    return await get_session_by_token(db, token)


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


async def get_admin_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key")
) -> str:
    """Verify admin API key for protected endpoints."""
    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key header (X-API-Key)"
        )

    if x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return x_api_key
