"""Profile endpoints: the caller's own display name and avatar reference."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.database import get_session
from crewtodo.core.events import commit_and_publish
from crewtodo.services import users as user_service
from crewtodo_shared.schemas.users import ProfileResponse, ProfileUpdateRequest

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_profile(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await user_service.get_profile(identity.user_id, session)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    profile = await user_service.update_profile(identity.user_id, body, session)
    await commit_and_publish(session)
    return profile
