"""
Auth Router
===========

Email/password signup and login backed by server-side sessions.

The session token is returned in the body and also set as an httponly
cookie; either `Authorization: Bearer <token>` or the cookie authenticates
later requests.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.dependencies import get_auth_context, get_client_ip, get_db
from app.schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserRead,
    VerifyEmailRequest,
)
from app.services import auth as auth_service
from app.services.auth import AuthContext
from app.services.subscriptions import get_user_subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_duration_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    request: Request,
    response: Response,
    user_agent: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """
    Create an account on the free tier and sign it in.

    Returns 409 if the email is already registered.
    """
    user = await auth_service.create_user(db, body.email, body.password, body.name)
    await get_user_subscription(db, user.id)
    session = await auth_service.create_session(db, user.id, user_agent, get_client_ip(request))
    set_session_cookie(response, session.token)
    logger.info("New account %s", user.id)

    return AuthResponse(user=UserRead.model_validate(user), token=session.token, expires_at=session.expires_at)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    user_agent: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    user = await auth_service.authenticate(db, body.email, body.password)
    session = await auth_service.create_session(db, user.id, user_agent, get_client_ip(request))
    set_session_cookie(response, session.token)

    return AuthResponse(user=UserRead.model_validate(user), token=session.token, expires_at=session.expires_at)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """End the current session only; other devices stay signed in."""
    await auth_service.logout(db, auth.token)
    clear_session_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def me(auth: AuthContext = Depends(get_auth_context)) -> UserRead:
    return UserRead.model_validate(auth.user)


@router.post("/verify-email", response_model=UserRead)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db)
) -> UserRead:
    user = await auth_service.verify_email(db, body.token)
    return UserRead.model_validate(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """
    Issue a password reset token.

    The response is identical whether or not the account exists.
    """
    await auth_service.request_password_reset(db, body.email)
    return MessageResponse(message="If an account exists for that email, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """Set a new password from a reset token. Every existing session is ended."""
    await auth_service.reset_password(db, body.token, body.password, body.confirm_password)
    return MessageResponse(message="Password has been reset. Please log in.")
