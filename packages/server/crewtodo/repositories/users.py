"""User and profile repository."""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crewtodo.models.user import Profile, User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def add(self, user: User, profile: Profile) -> User:
        self.session.add(user)
        await self.session.flush()
        self.session.add(profile)
        await self.session.flush()
        return user

    async def save(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_profile(self, user_id: uuid.UUID) -> Optional[Profile]:
        return await self.session.get(Profile, user_id)

    async def save_profile(self, profile: Profile) -> Profile:
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def profiles_for(self, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Profile]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(Profile).where(Profile.id.in_(ids)))
        return {p.id: p for p in result.scalars().all()}
