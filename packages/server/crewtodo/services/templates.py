"""
Templates ("frequent tasks"): reusable task blueprints owned by an organization.

Only the organization's creator manages its templates; any member may turn a
template into a task of their own.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core import access
from crewtodo.core.errors import NotFound, require_text
from crewtodo.core.events import record_event
from crewtodo.models.task import Task
from crewtodo.models.template import Template
from crewtodo.repositories import OrganizationRepository, TaskRepository, TemplateRepository
from crewtodo.services.organizations import get_org_or_404, require_membership
from crewtodo.services.tasks import enrich_task
from crewtodo_shared.schemas.tasks import TaskRead, TemplateCreate, TemplateRead, TemplateUpdate

log = structlog.get_logger()


def _to_read(template: Template, tags: Sequence[str]) -> TemplateRead:
    return TemplateRead(
        id=template.id,
        title=template.title,
        description=template.description,
        priority=template.priority,
        tags=list(tags),
        organization_id=template.organization_id,
        creator_id=template.creator_id,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


async def _enrich(session: AsyncSession, templates: Sequence[Template]) -> list[TemplateRead]:
    tags = await TemplateRepository(session).tags.for_owners(t.id for t in templates)
    return [_to_read(t, tags.get(t.id, [])) for t in templates]


async def get_template_or_404(session: AsyncSession, template_id: uuid.UUID) -> Template:
    template = await TemplateRepository(session).get(template_id)
    if template is None:
        raise NotFound("Template not found")
    return template


async def _require_manager(
    session: AsyncSession, actor_id: uuid.UUID, org_id: uuid.UUID
) -> None:
    org = await get_org_or_404(org_id, session)
    access.require(
        access.can_manage_template(actor_id, org),
        "Only the organization creator can manage its templates",
    )


async def create_template(
    session: AsyncSession,
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    template_in: TemplateCreate,
) -> TemplateRead:
    await _require_manager(session, actor_id, org_id)
    template = Template(
        title=require_text(template_in.title, "title"),
        description=template_in.description,
        priority=template_in.priority.value if template_in.priority else None,
        organization_id=org_id,
        creator_id=actor_id,
    )
    await TemplateRepository(session).add(template, template_in.tags)

    await record_event(
        session, "template.created", {"template_id": str(template.id), "title": template.title},
        actor_id, organization_id=org_id,
    )
    log.info("template.created", template_id=str(template.id), org_id=str(org_id))
    return _to_read(template, template_in.tags)


async def update_template(
    session: AsyncSession,
    actor_id: uuid.UUID,
    template_id: uuid.UUID,
    template_in: TemplateUpdate,
) -> TemplateRead:
    template = await get_template_or_404(session, template_id)
    await _require_manager(session, actor_id, template.organization_id)

    data = template_in.model_dump(exclude_unset=True)
    if "title" in data:
        template.title = require_text(data["title"], "title")
    if "description" in data:
        template.description = data["description"]
    if "priority" in data:
        template.priority = data["priority"].value if data["priority"] else None
    tags = (data["tags"] or []) if "tags" in data else None

    template.updated_at = datetime.now(timezone.utc)
    repo = TemplateRepository(session)
    await repo.save(template, tags)

    await record_event(
        session, "template.updated", {"template_id": str(template.id), "fields": sorted(data)},
        actor_id, organization_id=template.organization_id,
    )
    return (await _enrich(session, [template]))[0]


async def delete_template(
    session: AsyncSession, actor_id: uuid.UUID, template_id: uuid.UUID
) -> None:
    template = await get_template_or_404(session, template_id)
    org_id = template.organization_id
    await _require_manager(session, actor_id, org_id)
    await TemplateRepository(session).delete(template)

    await record_event(
        session, "template.deleted", {"template_id": str(template_id)},
        actor_id, organization_id=org_id,
    )
    log.info("template.deleted", template_id=str(template_id), org_id=str(org_id))


async def get_template(
    session: AsyncSession, actor_id: uuid.UUID, template_id: uuid.UUID
) -> TemplateRead:
    template = await get_template_or_404(session, template_id)
    await require_membership(actor_id, template.organization_id, session)
    return (await _enrich(session, [template]))[0]


async def list_templates(
    session: AsyncSession, actor_id: uuid.UUID, org_id: uuid.UUID
) -> list[TemplateRead]:
    await get_org_or_404(org_id, session)
    await require_membership(actor_id, org_id, session)
    templates = await TemplateRepository(session).list_for_orgs([org_id])
    return await _enrich(session, templates)


async def list_managed_templates(
    session: AsyncSession, actor_id: uuid.UUID
) -> list[TemplateRead]:
    """Templates of every organization the actor created."""
    orgs = await OrganizationRepository(session).list_created_by(actor_id)
    templates = await TemplateRepository(session).list_for_orgs(o.id for o in orgs)
    return await _enrich(session, templates)


async def instantiate_template(
    session: AsyncSession, actor_id: uuid.UUID, template_id: uuid.UUID
) -> TaskRead:
    """Create a fresh, incomplete task for the actor from a template."""
    template = await get_template_or_404(session, template_id)
    await require_membership(actor_id, template.organization_id, session)

    tags = (await TemplateRepository(session).tags.for_owners([template.id])).get(template.id, [])
    task = Task(
        title=template.title,
        description=template.description,
        is_complete=False,
        due_date=None,
        priority=template.priority,
        owner_id=actor_id,
        organization_id=template.organization_id,
    )
    await TaskRepository(session).add(task, tags)

    await record_event(
        session, "task.created",
        {"task_id": str(task.id), "title": task.title, "template_id": str(template.id)},
        actor_id, organization_id=task.organization_id,
    )
    log.info("template.instantiated", template_id=str(template.id), task_id=str(task.id))
    return await enrich_task(session, task)
