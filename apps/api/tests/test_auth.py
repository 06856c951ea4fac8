"""
Tests for Auth & Account Endpoints
==================================

Tests for:
- POST /api/v1/auth/signup, /login, /logout, /verify-email
- POST /api/v1/auth/forgot-password, /reset-password
- GET /api/v1/auth/me
- /api/v1/account (profile, password change, sessions, deletion)
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.database import utcnow
from app.models import AuthSession, EmailVerificationToken, PasswordResetToken, User
from app.services.auth import describe_user_agent, get_session_by_token, hash_password, verify_password

PASSWORD = "correct-horse-battery"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_password_hash_round_trip():
    hashed = hash_password("s3cret-password")
    assert hashed != "s3cret-password"
    assert verify_password("s3cret-password", hashed)
    assert not verify_password("wrong-password", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")


@pytest.mark.parametrize("agent,label", [
    ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) Mobile/15E148", "iPhone"),
    ("Mozilla/5.0 (Linux; Android 14) Chrome/120 Mobile Safari", "Android Phone"),
    ("Mozilla/5.0 (Windows NT 10.0) Chrome/120 Safari/537.36 Edg/120", "Microsoft Edge"),
    ("Mozilla/5.0 (Macintosh) Firefox/121", "Firefox"),
    (None, "Unknown device"),
])
def test_describe_user_agent(agent, label):
    assert describe_user_agent(agent) == label


# =============================================================================
# SIGNUP / LOGIN
# =============================================================================

@pytest.mark.asyncio
async def test_signup_returns_session(client: AsyncClient, signup_user):
    body = await signup_user(email="New.Fan@Example.com")
    assert body["user"]["email"] == "new.fan@example.com"
    assert body["user"]["email_verified"] is False
    assert len(body["token"]) == 64

    response = await client.get("/api/v1/auth/me", headers=bearer(body["token"]))
    assert response.status_code == 200
    assert response.json()["id"] == body["user"]["id"]


@pytest.mark.asyncio
async def test_signup_sets_cookie(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/signup", json={"email": "cookie@example.com", "password": PASSWORD}
    )
    assert response.status_code == 201
    assert "session_token" in response.cookies


@pytest.mark.asyncio
async def test_duplicate_signup_conflicts(client: AsyncClient, signup_user):
    await signup_user(email="dup@example.com")
    response = await client.post(
        "/api/v1/auth/signup", json={"email": "DUP@example.com", "password": PASSWORD}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_signup_rejects_short_password(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/signup", json={"email": "short@example.com", "password": "abc"}
    )
    assert response.status_code == 422
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_email_look_the_same(client: AsyncClient, signup_user):
    await signup_user(email="login@example.com")
    wrong = await client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": "nope-nope"})
    unknown = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "nope-nope"})
    assert wrong.status_code == unknown.status_code == 400
    assert wrong.json() == unknown.json()


@pytest.mark.asyncio
async def test_login_creates_additional_session(client: AsyncClient, signup_user):
    first = await signup_user(email="multi@example.com")
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "multi@example.com", "password": PASSWORD},
        headers={"User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) Mobile/15E148"},
    )
    assert response.status_code == 200
    second = response.json()["token"]
    assert second != first["token"]

    response = await client.get("/api/v1/account/sessions", headers=bearer(second))
    sessions = response.json()["sessions"]
    assert len(sessions) == 2
    assert [s["is_current"] for s in sessions].count(True) == 1
    assert any(s["device"] == "iPhone" for s in sessions)


# =============================================================================
# SESSIONS
# =============================================================================

@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_expired_session_is_indistinguishable_from_missing(client: AsyncClient, signup_user, db_session):
    token = (await signup_user(email="expired@example.com"))["token"]
    await db_session.execute(
        update(AuthSession).where(AuthSession.token == token).values(expires_at=utcnow() - timedelta(seconds=1))
    )
    await db_session.commit()

    expired = await client.get("/api/v1/auth/me", headers=bearer(token))
    unknown = await client.get("/api/v1/auth/me", headers=bearer("f" * 64))
    assert expired.status_code == unknown.status_code == 401
    assert expired.json() == unknown.json()
    assert await get_session_by_token(db_session, token) is None


@pytest.mark.asyncio
async def test_logout_ends_only_current_session(client: AsyncClient, signup_user):
    first = (await signup_user(email="logout@example.com"))["token"]
    login = await client.post("/api/v1/auth/login", json={"email": "logout@example.com", "password": PASSWORD})
    second = login.json()["token"]

    response = await client.post("/api/v1/auth/logout", headers=bearer(first))
    assert response.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=bearer(first))).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers=bearer(second))).status_code == 200


@pytest.mark.asyncio
async def test_revoke_other_session(client: AsyncClient, signup_user):
    first = (await signup_user(email="revoke@example.com"))["token"]
    login = await client.post("/api/v1/auth/login", json={"email": "revoke@example.com", "password": PASSWORD})
    second = login.json()["token"]

    sessions = (await client.get("/api/v1/account/sessions", headers=bearer(first))).json()["sessions"]
    current = next(s for s in sessions if s["is_current"])
    other = next(s for s in sessions if not s["is_current"])

    response = await client.delete(f"/api/v1/account/sessions/{current['id']}", headers=bearer(first))
    assert response.status_code == 400

    response = await client.delete(f"/api/v1/account/sessions/{other['id']}", headers=bearer(first))
    assert response.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=bearer(second))).status_code == 401


# =============================================================================
# CREDENTIAL CHANGES
# =============================================================================

@pytest.mark.asyncio
async def test_change_password_replaces_every_session(client: AsyncClient, signup_user):
    first = (await signup_user(email="change@example.com"))["token"]
    login = await client.post("/api/v1/auth/login", json={"email": "change@example.com", "password": PASSWORD})
    second = login.json()["token"]

    response = await client.post(
        "/api/v1/account/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass", "confirm_password": "brand-new-pass"},
        headers=bearer(first),
    )
    assert response.status_code == 200
    new_token = response.json()["token"]
    assert new_token not in (first, second)

    assert (await client.get("/api/v1/auth/me", headers=bearer(first))).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers=bearer(second))).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers=bearer(new_token))).status_code == 200

    sessions = (await client.get("/api/v1/account/sessions", headers=bearer(new_token))).json()["sessions"]
    assert len(sessions) == 1

    old = await client.post("/api/v1/auth/login", json={"email": "change@example.com", "password": PASSWORD})
    assert old.status_code == 400
    new = await client.post("/api/v1/auth/login", json={"email": "change@example.com", "password": "brand-new-pass"})
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_validation(client: AsyncClient, signup_user):
    token = (await signup_user(email="badchange@example.com"))["token"]

    wrong_current = await client.post(
        "/api/v1/account/change-password",
        json={"current_password": "not-it-at-all", "new_password": "brand-new-pass", "confirm_password": "brand-new-pass"},
        headers=bearer(token),
    )
    assert wrong_current.status_code == 400
    assert wrong_current.json()["field"] == "current_password"

    mismatch = await client.post(
        "/api/v1/account/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass", "confirm_password": "other-pass-x"},
        headers=bearer(token),
    )
    assert mismatch.status_code == 400

    # Nothing changed: the original session still works
    assert (await client.get("/api/v1/auth/me", headers=bearer(token))).status_code == 200


@pytest.mark.asyncio
async def test_password_reset_flow(client: AsyncClient, signup_user, db_session):
    token = (await signup_user(email="reset@example.com"))["token"]

    known = await client.post("/api/v1/auth/forgot-password", json={"email": "reset@example.com"})
    unknown = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()

    reset = (await db_session.execute(select(PasswordResetToken))).scalar_one()
    body = {"token": reset.token, "password": "after-reset-pw", "confirm_password": "after-reset-pw"}
    response = await client.post("/api/v1/auth/reset-password", json=body)
    assert response.status_code == 200

    # Sessions are ended and the token is single use
    assert (await client.get("/api/v1/auth/me", headers=bearer(token))).status_code == 401
    assert (await client.post("/api/v1/auth/reset-password", json=body)).status_code == 400

    login = await client.post("/api/v1/auth/login", json={"email": "reset@example.com", "password": "after-reset-pw"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_verify_email(client: AsyncClient, signup_user, db_session):
    await signup_user(email="verify@example.com")
    verification = (await db_session.execute(select(EmailVerificationToken))).scalar_one()

    response = await client.post("/api/v1/auth/verify-email", json={"token": verification.token})
    assert response.status_code == 200
    assert response.json()["email_verified"] is True

    again = await client.post("/api/v1/auth/verify-email", json={"token": verification.token})
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_delete_account(client: AsyncClient, signup_user, db_session):
    token = (await signup_user(email="gone@example.com"))["token"]

    wrong = await client.request("DELETE", "/api/v1/account", json={"password": "not-my-password"},
                                 headers=bearer(token))
    assert wrong.status_code == 400

    response = await client.request("DELETE", "/api/v1/account", json={"password": PASSWORD},
                                    headers=bearer(token))
    assert response.status_code == 200
    assert (await client.get("/api/v1/auth/me", headers=bearer(token))).status_code == 401

    users = (await db_session.execute(select(User).where(User.email == "gone@example.com"))).scalars().all()
    assert users == []


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, signup_user):
    token = (await signup_user(email="profile@example.com", name="Before"))["token"]

    response = await client.patch("/api/v1/account/profile", json={"name": "After"}, headers=bearer(token))
    assert response.status_code == 200
    assert response.json()["name"] == "After"

    me = (await client.get("/api/v1/auth/me", headers=bearer(token))).json()
    assert me["name"] == "After"
    assert me["avatar_url"] is None
