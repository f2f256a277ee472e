"""Ordered tag sets stored in a join table (``task_tags`` / ``template_tags``)."""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Iterable, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select


class TagTable:
    """Read and replace the tags of rows owned by ``owner_column``."""

    def __init__(self, session: AsyncSession, model, owner_column: str):
        self.session = session
        self.model = model
        self.owner_column = owner_column

    def _owner(self):
        return getattr(self.model, self.owner_column)

    async def for_owners(self, owner_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        ids = list(owner_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(self._owner(), self.model.tag)
            .where(self._owner().in_(ids))
            .order_by(self._owner(), self.model.position)
        )
        tags: dict[uuid.UUID, list[str]] = defaultdict(list)
        for owner_id, tag in result.all():
            tags[owner_id].append(tag)
        return tags

    async def replace(self, owner_id: uuid.UUID, tags: Sequence[str]) -> None:
        await self.clear(owner_id)
        for position, tag in enumerate(tags):
            self.session.add(self.model(**{self.owner_column: owner_id, "tag": tag, "position": position}))
        await self.session.flush()

    async def clear(self, owner_id: uuid.UUID) -> None:
        await self.session.execute(delete(self.model).where(self._owner() == owner_id))
