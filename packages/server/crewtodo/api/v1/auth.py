"""
Authentication endpoints (local identity provider).

- Email/password registration with an emailed verification link
- Login issuing a bearer JWT session
- Logout revoking the current token
- ``/me``: the caller's identity and profile
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, create_jwt, create_verification_token, get_identity, revoke_jwt
from crewtodo.core.config import get_settings
from crewtodo.core.database import get_session
from crewtodo.core.events import commit_and_publish
from crewtodo.core.notifier import Notifier, deliver_verification_email, get_notifier
from crewtodo.models.user import User
from crewtodo.services import users as user_service
from crewtodo_shared.schemas.users import (
    LoginRequest,
    MeResponse,
    ProfileResponse,
    RegisterRequest,
    TokenResponse,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


def _token_response(user: User) -> TokenResponse:
    token, _jti = create_jwt(user.id, user.email, user.email_verified)
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        email=user.email,
        email_verified=user.email_verified,
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    """Register with email/password. A verification link is sent in the background."""
    user = await user_service.register_user(body, session)
    await commit_and_publish(session)

    token = create_verification_token(user.id, user.email)
    callback_url = f"{settings.public_base_url.rstrip('/')}/auth/verify?token={token}"
    background_tasks.add_task(deliver_verification_email, notifier, user.email, callback_url)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a bearer token."""
    user = await user_service.login(body.email, body.password, session)
    log.info("auth.login_success", user_id=str(user.id))
    return _token_response(user)


@router.get("/verify")
async def verify(
    token: str = Query(...),
    session: AsyncSession = Depends(get_session),
):
    """Target of the emailed verification link."""
    user = await user_service.verify_email(token, session)
    await commit_and_publish(session)
    return {"user_id": str(user.id), "email_verified": True}


@router.post("/logout")
async def logout(identity: Identity = Depends(get_identity)):
    """Revoke the current session token until it would have expired anyway."""
    revoked = False
    if identity.jti:
        ttl = max(int(identity.expires_at or 0) - int(time.time()), 1)
        revoked = await revoke_jwt(identity.jti, ttl)
    log.info("auth.logout", user_id=str(identity.user_id), revoked=revoked)
    return {"message": "Logged out", "revoked": revoked}


@router.get("/me", response_model=MeResponse)
async def me(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    profile = await user_service.get_profile(identity.user_id, session)
    return MeResponse(
        user_id=identity.user_id,
        email=identity.email,
        email_verified=identity.email_verified,
        profile=ProfileResponse.model_validate(profile),
    )
