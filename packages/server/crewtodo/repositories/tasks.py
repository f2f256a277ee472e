"""Task repository: the only place task queries are built."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crewtodo.models.task import Task, TaskTag

from .tags import TagTable


@dataclass(frozen=True)
class TaskQuery:
    """Typed listing criteria; ``None`` fields impose no restriction."""

    owner_id: Optional[uuid.UUID] = None
    organization_id: Optional[uuid.UUID] = None
    personal_only: bool = False
    is_complete: Optional[bool] = None
    priority: Optional[str] = None
    tag: Optional[str] = None
    limit: Optional[int] = None


class TaskRepository:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tags = TagTable(session, TaskTag, "task_id")

    async def get(self, task_id: uuid.UUID) -> Optional[Task]:
        return await self.session.get(Task, task_id)

    async def add(self, task: Task, tags: Sequence[str]) -> Task:
        self.session.add(task)
        await self.session.flush()
        await self.tags.replace(task.id, tags)
        return task

    async def save(self, task: Task, tags: Optional[Sequence[str]] = None) -> Task:
        self.session.add(task)
        await self.session.flush()
        if tags is not None:
            await self.tags.replace(task.id, tags)
        return task

    async def delete(self, task: Task) -> None:
        await self.tags.clear(task.id)
        await self.session.delete(task)
        await self.session.flush()

    def _select(self, query: TaskQuery):
        stmt = select(Task)
        if query.owner_id is not None:
            stmt = stmt.where(Task.owner_id == query.owner_id)
        if query.personal_only:
            stmt = stmt.where(Task.organization_id.is_(None))
        elif query.organization_id is not None:
            stmt = stmt.where(Task.organization_id == query.organization_id)
        if query.is_complete is not None:
            stmt = stmt.where(Task.is_complete == query.is_complete)
        if query.priority is not None:
            stmt = stmt.where(Task.priority == query.priority)
        if query.tag is not None:
            stmt = stmt.join(TaskTag, TaskTag.task_id == Task.id).where(TaskTag.tag == query.tag)
        return stmt

    async def find(self, query: TaskQuery) -> list[Task]:
        """Tasks matching ``query``, newest first."""
        stmt = self._select(query).order_by(Task.created_at.desc(), Task.id)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def distinct_tags(self, query: TaskQuery) -> list[str]:
        task_ids = select(self._select(query).subquery().c.id)
        result = await self.session.execute(
            select(TaskTag.tag).where(TaskTag.task_id.in_(task_ids)).distinct().order_by(TaskTag.tag)
        )
        return [row[0] for row in result.all()]
