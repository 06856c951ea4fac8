"""
Auth & Session Manager
======================

Password hashing (bcrypt), opaque session tokens with an absolute expiry,
and the one-shot tokens used for email verification and password resets.

An expired session is indistinguishable from a missing one: the token
lookup filters on `expires_at > now` in SQL and returns None either way.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import bcrypt
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import utcnow
from app.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from app.models import (
    AuthSession,
    Badge,
    EmailVerificationToken,
    Follow,
    Notification,
    NotificationSettings,
    PasswordResetToken,
    Prediction,
    Subscription,
    UsageLimit,
    User,
)

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
MIN_PASSWORD_LENGTH = 8
PROFILE_FIELDS = ("name", "avatar_url")


@dataclass(frozen=True)
class AuthContext:
    """The authenticated user and the session that carried the request."""

    user: User
    session: AuthSession

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def token(self) -> str:
        return self.session.token


# =============================================================================
# PRIMITIVES
# =============================================================================

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    """256 random bits, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_new_password(password: str, confirm: Optional[str] = None) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords don't match", field="confirm_password")


# Checked in order; first match wins
_DEVICE_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("Mobile", "iPhone"), "iPhone"),
    (("Mobile", "Android"), "Android Phone"),
    (("Mobile",), "Mobile Device"),
    (("Tablet",), "Tablet"),
    (("iPad",), "Tablet"),
    (("Chrome", "Edg"), "Microsoft Edge"),
    (("Chrome",), "Chrome"),
    (("Firefox",), "Firefox"),
    (("Safari",), "Safari"),
    (("Windows",), "Windows PC"),
    (("Mac",), "Mac"),
    (("Linux",), "Linux PC"),
]


def describe_user_agent(user_agent: Optional[str]) -> str:
    """Short human label for a session's device."""
    if not user_agent:
        return "Unknown device"
    for needles, label in _DEVICE_RULES:
        if all(n in user_agent for n in needles):
            return label
    return "Desktop"


# =============================================================================
# USERS
# =============================================================================

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, email: str, password: str, name: Optional[str] = None) -> User:
    email = normalize_email(email)
    validate_new_password(password)
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("An account with this email already exists")

    user = User(email=email, password_hash=hash_password(password), name=name)
    db.add(user)
    await db.flush()
    db.add(EmailVerificationToken(
        user_id=user.id,
        token=generate_token(),
        expires_at=utcnow() + timedelta(days=settings.email_verification_ttl_days),
    ))
    await db.commit()
    logger.info("Created user %s", user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Return the user for valid credentials; one message for every failure."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise ValidationError("Invalid email or password")
    return user


# =============================================================================
# SESSIONS
# =============================================================================

def _new_session(user_id: UUID, user_agent: Optional[str], ip_address: Optional[str]) -> AuthSession:
    return AuthSession(
        user_id=user_id,
        token=generate_token(),
        expires_at=utcnow() + timedelta(days=settings.session_duration_days),
        user_agent=(user_agent or None) and user_agent[:500],
        ip_address=ip_address,
    )


async def create_session(
    db: AsyncSession,
    user_id: UUID,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> AuthSession:
    session = _new_session(user_id, user_agent, ip_address)
    db.add(session)
    await db.commit()
    return session


async def get_session_by_token(db: AsyncSession, token: Optional[str]) -> Optional[AuthContext]:
    """Live session and its user, or None for unknown and expired tokens alike."""
    if not token:
        return None
    stmt = (
        select(AuthSession, User)
        .join(User, AuthSession.user_id == User.id)
        .where(AuthSession.token == token, AuthSession.expires_at > utcnow())
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        return None
    return AuthContext(user=row.User, session=row.AuthSession)


async def require_session(db: AsyncSession, token: Optional[str]) -> AuthContext:
    ctx = await get_session_by_token(db, token)
    if ctx is None:
        raise UnauthorizedError()
    return ctx


async def logout(db: AsyncSession, token: str) -> None:
    await db.execute(delete(AuthSession).where(AuthSession.token == token))
    await db.commit()


async def list_active_sessions(db: AsyncSession, user_id: UUID) -> Sequence[AuthSession]:
    stmt = (
        select(AuthSession)
        .where(AuthSession.user_id == user_id, AuthSession.expires_at > utcnow())
        .order_by(AuthSession.created_at.desc())
    )
    return (await db.execute(stmt)).scalars().all()


async def revoke_session(db: AsyncSession, ctx: AuthContext, session_id: UUID) -> None:
    """Delete one of the user's other sessions."""
    session = await db.get(AuthSession, session_id)
    if session is None or session.user_id != ctx.user_id:
        raise NotFoundError("Session not found")
    if session.token == ctx.token:
        raise ValidationError("Cannot revoke current session. Use logout instead.")
    await db.delete(session)
    await db.commit()


async def purge_expired_sessions(db: AsyncSession) -> int:
    result = await db.execute(delete(AuthSession).where(AuthSession.expires_at <= utcnow()))
    await db.commit()
    return result.rowcount or 0


# =============================================================================
# CREDENTIAL CHANGES
# =============================================================================

async def change_password(
    db: AsyncSession,
    ctx: AuthContext,
    current_password: str,
    new_password: str,
    confirm_password: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> AuthSession:
    """
    Replace the password and every session with exactly one new session.

    The hash update, the session purge and the new session are committed
    together; the returned token differs from the one on the request.
    """
    if not verify_password(current_password, ctx.user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")
    validate_new_password(new_password, confirm_password)

    user = await db.get(User, ctx.user_id)
    user.password_hash = hash_password(new_password)
    await db.execute(delete(AuthSession).where(AuthSession.user_id == ctx.user_id))
    session = _new_session(ctx.user_id, user_agent, ip_address)
    db.add(session)
    await db.commit()
    logger.info("Password changed for user %s; sessions replaced", ctx.user_id)
    return session


async def request_password_reset(db: AsyncSession, email: str) -> Optional[PasswordResetToken]:
    """
    Issue a reset token if the account exists.

    Callers must respond identically either way; delivery is out of scope.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        return None
    token = PasswordResetToken(
        user_id=user.id,
        token=generate_token(),
        expires_at=utcnow() + timedelta(hours=settings.password_reset_ttl_hours),
    )
    db.add(token)
    await db.commit()
    return token


async def reset_password(db: AsyncSession, token: str, new_password: str, confirm_password: str) -> User:
    validate_new_password(new_password, confirm_password)
    stmt = select(PasswordResetToken).where(
        PasswordResetToken.token == token,
        PasswordResetToken.used_at.is_(None),
        PasswordResetToken.expires_at > utcnow(),
    )
    reset = (await db.execute(stmt)).scalar_one_or_none()
    if reset is None:
        raise ValidationError("Invalid or expired reset link")

    user = await db.get(User, reset.user_id)
    user.password_hash = hash_password(new_password)
    reset.used_at = utcnow()
    await db.execute(delete(AuthSession).where(AuthSession.user_id == user.id))
    await db.commit()
    logger.info("Password reset for user %s", user.id)
    return user


async def verify_email(db: AsyncSession, token: str) -> User:
    stmt = select(EmailVerificationToken).where(
        EmailVerificationToken.token == token,
        EmailVerificationToken.expires_at > utcnow(),
    )
    verification = (await db.execute(stmt)).scalar_one_or_none()
    if verification is None:
        raise ValidationError("Invalid or expired verification link")

    user = await db.get(User, verification.user_id)
    user.email_verified = True
    await db.execute(delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user.id))
    await db.commit()
    return user


async def update_profile(db: AsyncSession, ctx: AuthContext, changes: Dict[str, Optional[str]]) -> User:
    user = ctx.user
    for key, value in changes.items():
        if key in PROFILE_FIELDS:
            setattr(user, key, value)
    await db.commit()
    return user


async def delete_account(db: AsyncSession, ctx: AuthContext, password: str) -> None:
    """Remove the user and every row they own."""
    if not verify_password(password, ctx.user.password_hash):
        raise ValidationError("Password is incorrect", field="password")

    user_id = ctx.user_id
    for model in (
        AuthSession, PasswordResetToken, EmailVerificationToken, Follow, Notification,
        NotificationSettings, Subscription, UsageLimit, Prediction, Badge,
    ):
        await db.execute(delete(model).where(model.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    logger.info("Deleted account %s", user_id)

