"""
Account Router
==============

Signed-in account management: profile edits, password change, session
listing and revocation, account deletion.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_auth_context, get_client_ip, get_db
from app.routers.auth import clear_session_cookie, set_session_cookie
from app.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    MessageResponse,
    ProfileUpdate,
    SessionRead,
    SessionsResponse,
    UserRead,
)
from app.services import auth as auth_service
from app.services.auth import AuthContext, describe_user_agent

router = APIRouter(prefix="/account", tags=["Account"])


@router.patch("/profile", response_model=UserRead)
async def update_profile(
    body: ProfileUpdate,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> UserRead:
    """Change the display name or avatar; omitted fields are left alone."""
    user = await auth_service.update_profile(db, auth, body.model_dump(exclude_unset=True))
    return UserRead.model_validate(user)


@router.post("/change-password", response_model=AuthResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    response: Response,
    user_agent: Optional[str] = Header(None),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> AuthResponse:
    """
    Change the password.

    Every session, including the one making this request, is replaced by a
    single new session whose token is returned.
    """
    session = await auth_service.change_password(
        db,
        auth,
        body.current_password,
        body.new_password,
        body.confirm_password,
        user_agent=user_agent,
        ip_address=get_client_ip(request),
    )
    set_session_cookie(response, session.token)
    return AuthResponse(user=UserRead.model_validate(auth.user), token=session.token, expires_at=session.expires_at)


@router.get("/sessions", response_model=SessionsResponse)
async def list_sessions(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> SessionsResponse:
    sessions = await auth_service.list_active_sessions(db, auth.user_id)
    return SessionsResponse(sessions=[
        SessionRead(
            id=s.id,
            device=describe_user_agent(s.user_agent),
            ip_address=s.ip_address,
            created_at=s.created_at,
            expires_at=s.expires_at,
            is_current=s.id == auth.session.id,
        )
        for s in sessions
    ])


@router.delete("/sessions/{session_id}", response_model=MessageResponse)
async def revoke_session(
    session_id: UUID,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """Sign out another device. The current session must use logout."""
    await auth_service.revoke_session(db, auth, session_id)
    return MessageResponse(message="Session revoked")


@router.delete("", response_model=MessageResponse)
async def delete_account(
    body: DeleteAccountRequest,
    response: Response,
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    """Permanently delete the account and everything it owns."""
    await auth_service.delete_account(db, auth, body.password)
    clear_session_cookie(response)
    return MessageResponse(message="Account deleted")
