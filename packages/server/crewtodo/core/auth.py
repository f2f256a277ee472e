"""
Authentication for CrewTodo.

Supports:
- Secret hashing (bcrypt) for passwords and organization join secrets
- JWT session tokens and email verification tokens
- Redis revocation list for logged-out sessions
- ``authenticate`` / ``get_identity``: the identity provider boundary
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.config import get_settings
from crewtodo.core.database import get_session
from crewtodo.core.errors import Unauthenticated, ValidationError
from crewtodo.core.redis import get_redis

log = structlog.get_logger()
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)

SESSION_PURPOSE = "session"
VERIFY_EMAIL_PURPOSE = "verify_email"

# bcrypt only ever reads this many bytes of its input.
MAX_SECRET_BYTES = 72

# ---------------------------------------------------------------------------
# Secret hashing
# ---------------------------------------------------------------------------

def hash_secret(secret: str) -> str:
    """Hash a password or join secret using bcrypt with a random salt.

    Raises ``ValidationError`` for secrets longer than ``MAX_SECRET_BYTES``
    UTF-8 bytes rather than letting bcrypt reject or truncate them.
    """
    if len(secret.encode()) > MAX_SECRET_BYTES:
        raise ValidationError(f"Secrets and passwords must be at most {MAX_SECRET_BYTES} bytes")
    return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_secret(secret: str, hashed: str) -> bool:
    """Verify a password or join secret against a bcrypt hash."""
    if len(secret.encode()) > MAX_SECRET_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret.encode(), hashed.encode())
    except ValueError:
        # Malformed hash in storage never authenticates.
        return False


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: Optional[str],
    email_verified: bool,
    *,
    purpose: str = SESSION_PURPOSE,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "email_verified": email_verified,
        "purpose": purpose,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def create_verification_token(user_id: uuid.UUID, email: str) -> str:
    token, _ = create_jwt(
        user_id,
        email,
        False,
        purpose=VERIFY_EMAIL_PURPOSE,
        expires_delta=timedelta(hours=settings.verification_expire_hours),
    )
    return token


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> bool:
    """Add a JWT ID to the revocation list. Returns False if Redis is not configured."""
    redis = await get_redis()
    if redis is None:
        log.warning("auth.revocation_unavailable", jti=jti)
        return False
    await redis.setex(f"jwt:revoked:{jti}", ttl_seconds, "1")
    return True


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    if redis is None:
        return False
    try:
        return await redis.exists(f"jwt:revoked:{jti}") > 0
    except RedisError as exc:
        log.warning("auth.revocation_check_failed", jti=jti, error=str(exc))
        return False


# ---------------------------------------------------------------------------
# Identity provider boundary
# ---------------------------------------------------------------------------

class Identity:
    """The authenticated caller: a stable user id and verified-email facts."""

    def __init__(
        self,
        user_id: uuid.UUID,
        email: Optional[str],
        email_verified: bool,
        jti: Optional[str] = None,
        expires_at: Optional[int] = None,
    ):
        self.user_id = user_id
        self.email = email
        self.email_verified = email_verified
        self.jti = jti
        self.expires_at = expires_at


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


async def authenticate(request: Request, session: AsyncSession) -> Identity:
    """Resolve the caller from a bearer session token or raise ``Unauthenticated``.

    The first successful authentication of a user id creates its user and
    profile rows.
    """
    token = _bearer_token(request)
    if not token:
        raise Unauthenticated("Authentication required")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid or expired session")

    if payload.get("purpose") != SESSION_PURPOSE:
        raise Unauthenticated("Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise Unauthenticated("Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise Unauthenticated("Invalid or expired session")

    from crewtodo.services.users import ensure_user

    user = await ensure_user(
        user_id,
        payload.get("email"),
        bool(payload.get("email_verified", False)),
        session,
    )
    return Identity(
        user_id=user.id,
        email=user.email,
        email_verified=user.email_verified,
        jti=jti,
        expires_at=payload.get("exp"),
    )


async def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),  # documents the scheme in OpenAPI
    session: AsyncSession = Depends(get_session),
) -> Identity:
    """Main authentication dependency."""
    identity = await authenticate(request, session)
    request.state.identity = identity
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(user_id=str(identity.user_id))
    return identity
