"""Event log repository."""

from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crewtodo.models.event import Event


class EventRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, event: Event) -> Event:
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_visible(
        self,
        user_id: uuid.UUID,
        org_ids: Iterable[uuid.UUID],
        after: int = 0,
        limit: int = 100,
    ) -> list[Event]:
        """Events in the user's organizations or about the user, oldest first."""
        ids = list(org_ids)
        conditions = [Event.user_id == user_id, Event.actor_id == user_id]
        if ids:
            conditions.append(Event.organization_id.in_(ids))
        result = await self.session.execute(
            select(Event)
            .where(Event.id > after, or_(*conditions))
            .order_by(Event.id)
            .limit(limit)
        )
        return list(result.scalars().all())
