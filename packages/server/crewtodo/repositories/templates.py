"""Template repository."""

from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crewtodo.models.template import Template, TemplateTag

from .tags import TagTable


class TemplateRepository:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.tags = TagTable(session, TemplateTag, "template_id")

    async def get(self, template_id: uuid.UUID) -> Optional[Template]:
        return await self.session.get(Template, template_id)

    async def add(self, template: Template, tags: Sequence[str]) -> Template:
        self.session.add(template)
        await self.session.flush()
        await self.tags.replace(template.id, tags)
        return template

    async def save(self, template: Template, tags: Optional[Sequence[str]] = None) -> Template:
        self.session.add(template)
        await self.session.flush()
        if tags is not None:
            await self.tags.replace(template.id, tags)
        return template

    async def delete(self, template: Template) -> None:
        await self.tags.clear(template.id)
        await self.session.delete(template)
        await self.session.flush()

    async def list_for_orgs(self, org_ids: Iterable[uuid.UUID]) -> list[Template]:
        ids = list(org_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(Template)
            .where(Template.organization_id.in_(ids))
            .order_by(Template.created_at.desc(), Template.id)
        )
        return list(result.scalars().all())
