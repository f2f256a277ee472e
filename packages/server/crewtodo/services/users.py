"""
Users and profiles: local registration, login, email verification and the
first-authentication bootstrap.
"""

from __future__ import annotations

import uuid
from typing import Optional

import jwt
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import (
    VERIFY_EMAIL_PURPOSE,
    decode_jwt,
    hash_secret,
    verify_secret,
)
from crewtodo.core.errors import Conflict, NotFound, Unauthenticated, ValidationError
from crewtodo.core.events import record_event
from crewtodo.models.user import Profile, User
from crewtodo.repositories import UserRepository
from crewtodo_shared.schemas.users import ProfileUpdateRequest, RegisterRequest

log = structlog.get_logger()


async def ensure_user(
    user_id: uuid.UUID,
    email: Optional[str],
    email_verified: bool,
    session: AsyncSession,
) -> User:
    """Return the user, creating it and its profile on first authentication."""
    repo = UserRepository(session)
    user = await repo.get(user_id)
    if user is None:
        user = User(
            id=user_id,
            email=email.lower() if email else None,
            email_verified=email_verified,
        )
        await repo.add(user, Profile(id=user_id))
        log.info("user.provisioned", user_id=str(user_id))
    elif email_verified and not user.email_verified:
        user.email_verified = True
        await repo.save(user)
    return user


async def register_user(req: RegisterRequest, session: AsyncSession) -> User:
    repo = UserRepository(session)
    email = req.email.lower()
    if await repo.get_by_email(email) is not None:
        raise Conflict("An account with this email already exists")

    user = User(email=email, email_verified=False, password_hash=hash_secret(req.password))
    full_name = req.full_name.strip() if req.full_name else None
    await repo.add(user, Profile(id=user.id, full_name=full_name or None))

    await record_event(session, "user.registered", {}, user.id, user_id=user.id)
    log.info("user.registered", user_id=str(user.id))
    return user


async def login(email: str, password: str, session: AsyncSession) -> User:
    user = await UserRepository(session).get_by_email(email)
    if user is None or not user.password_hash or not verify_secret(password, user.password_hash):
        log.info("auth.login_failed", email=email.lower())
        raise Unauthenticated("Incorrect email or password")
    return user


async def verify_email(token: str, session: AsyncSession) -> User:
    """Consume an email verification token."""
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise ValidationError("Verification link is invalid or has expired")
    if payload.get("purpose") != VERIFY_EMAIL_PURPOSE:
        raise ValidationError("Verification link is invalid or has expired")

    repo = UserRepository(session)
    user = await repo.get(uuid.UUID(payload["sub"]))
    if user is None or user.email != payload.get("email"):
        raise ValidationError("Verification link is invalid or has expired")
    if not user.email_verified:
        user.email_verified = True
        await repo.save(user)
        await record_event(session, "user.verified", {}, user.id, user_id=user.id)
        log.info("user.verified", user_id=str(user.id))
    return user


async def get_profile(user_id: uuid.UUID, session: AsyncSession) -> Profile:
    profile = await UserRepository(session).get_profile(user_id)
    if profile is None:
        raise NotFound("Profile not found")
    return profile


async def update_profile(
    user_id: uuid.UUID, req: ProfileUpdateRequest, session: AsyncSession
) -> Profile:
    """Patch the caller's own profile; an empty string clears a field."""
    profile = await get_profile(user_id, session)
    data = req.model_dump(exclude_unset=True)
    for field in ("full_name", "avatar_url"):
        if field in data:
            value = data[field].strip() if data[field] else None
            setattr(profile, field, value or None)
    await UserRepository(session).save_profile(profile)

    await record_event(
        session, "profile.updated", {"fields": sorted(data)}, user_id, user_id=user_id
    )
    log.info("profile.updated", user_id=str(user_id), fields=sorted(data))
    return profile
