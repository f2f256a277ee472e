"""
Task service layer: task CRUD, scoped listings and completion toggling.

Handles:
- Ownership rules (only the owner mutates a task)
- Organization scoping (org tasks are readable by every member)
- Listing filters on status, priority and tag
- Enrichment of task rows with their ordered tags for API responses
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core import access
from crewtodo.core.config import get_settings
from crewtodo.core.errors import Forbidden, NotFound, ValidationError, require_text
from crewtodo.core.events import record_event
from crewtodo.models.task import Task
from crewtodo.repositories import MembershipRepository, TaskQuery, TaskRepository
from crewtodo.services.organizations import get_org_or_404
from crewtodo_shared.schemas.common import OWNED_SCOPE, PERSONAL_SCOPE, StatusFilter
from crewtodo_shared.schemas.tasks import TaskCreate, TaskFilters, TaskRead, TaskUpdate

log = structlog.get_logger()

Scope = Union[str, uuid.UUID]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_scope(raw: str) -> Scope:
    """``personal``, ``owned`` or an organization id."""
    if raw in (PERSONAL_SCOPE, OWNED_SCOPE):
        return raw
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise ValidationError(
            f"scope must be '{PERSONAL_SCOPE}', '{OWNED_SCOPE}' or an organization id"
        )


async def get_task_or_404(session: AsyncSession, task_id: uuid.UUID) -> Task:
    task = await TaskRepository(session).get(task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


def _to_read(task: Task, tags: Sequence[str]) -> TaskRead:
    return TaskRead(
        id=task.id,
        title=task.title,
        description=task.description,
        is_complete=task.is_complete,
        due_date=task.due_date,
        priority=task.priority,
        tags=list(tags),
        owner_id=task.owner_id,
        organization_id=task.organization_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


async def enrich_task(session: AsyncSession, task: Task) -> TaskRead:
    tags = await TaskRepository(session).tags.for_owners([task.id])
    return _to_read(task, tags.get(task.id, []))


async def enrich_tasks(session: AsyncSession, tasks: Sequence[Task]) -> list[TaskRead]:
    """Batch variant of ``enrich_task``: one tag query for the whole page."""
    tags = await TaskRepository(session).tags.for_owners(t.id for t in tasks)
    return [_to_read(t, tags.get(t.id, [])) for t in tasks]


def _event_payload(task: Task) -> dict:
    return {"task_id": str(task.id), "title": task.title}


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_task(
    session: AsyncSession,
    owner_id: uuid.UUID,
    task_in: TaskCreate,
) -> TaskRead:
    title = require_text(task_in.title, "title")

    if task_in.organization_id is not None:
        await get_org_or_404(task_in.organization_id, session)
    if task_in.organization_id is not None and get_settings().enforce_task_org_membership:
        membership = await MembershipRepository(session).get(task_in.organization_id, owner_id)
        if membership is None:
            raise Forbidden("You are not a member of this organization")

    task = Task(
        title=title,
        description=task_in.description,
        is_complete=task_in.is_complete,
        due_date=task_in.due_date,
        priority=task_in.priority.value if task_in.priority else None,
        owner_id=owner_id,
        organization_id=task_in.organization_id,
    )
    await TaskRepository(session).add(task, task_in.tags)

    await record_event(
        session, "task.created", _event_payload(task), owner_id,
        organization_id=task.organization_id,
    )
    log.info("task.created", task_id=str(task.id), owner=str(owner_id))
    return _to_read(task, task_in.tags)


async def get_task(
    session: AsyncSession, actor_id: uuid.UUID, task_id: uuid.UUID
) -> TaskRead:
    task = await get_task_or_404(session, task_id)
    membership = None
    if task.organization_id is not None:
        membership = await MembershipRepository(session).get(task.organization_id, actor_id)
    access.require(access.can_view_task(actor_id, task, membership))
    return await enrich_task(session, task)


async def update_task(
    session: AsyncSession,
    actor_id: uuid.UUID,
    task_id: uuid.UUID,
    task_in: TaskUpdate,
) -> TaskRead:
    task = await get_task_or_404(session, task_id)
    access.require(
        access.can_mutate_task(actor_id, task), "Only the task owner can change it"
    )

    data = task_in.model_dump(exclude_unset=True)
    if "title" in data:
        task.title = require_text(data["title"], "title")
    if "description" in data:
        task.description = data["description"]
    if "due_date" in data:
        task.due_date = data["due_date"]
    if "priority" in data:
        task.priority = data["priority"].value if data["priority"] else None
    if "is_complete" in data and data["is_complete"] is not None:
        task.is_complete = data["is_complete"]

    tags = None
    if "tags" in data:
        tags = data["tags"] or []

    task.updated_at = datetime.now(timezone.utc)
    await TaskRepository(session).save(task, tags)

    await record_event(
        session, "task.updated", {**_event_payload(task), "fields": sorted(data)}, actor_id,
        organization_id=task.organization_id,
    )
    log.info("task.updated", task_id=str(task.id), fields=sorted(data))
    return await enrich_task(session, task)


async def delete_task(
    session: AsyncSession, actor_id: uuid.UUID, task_id: uuid.UUID
) -> None:
    task = await get_task_or_404(session, task_id)
    access.require(
        access.can_mutate_task(actor_id, task), "Only the task owner can delete it"
    )
    payload = _event_payload(task)
    org_id = task.organization_id
    await TaskRepository(session).delete(task)

    await record_event(session, "task.deleted", payload, actor_id, organization_id=org_id)
    log.info("task.deleted", task_id=str(task_id), owner=str(actor_id))


async def toggle_complete(
    session: AsyncSession, actor_id: uuid.UUID, task_id: uuid.UUID
) -> TaskRead:
    task = await get_task_or_404(session, task_id)
    access.require(
        access.can_mutate_task(actor_id, task), "Only the task owner can change it"
    )
    task.is_complete = not task.is_complete
    task.updated_at = datetime.now(timezone.utc)
    await TaskRepository(session).save(task)

    await record_event(
        session, "task.toggled", {**_event_payload(task), "is_complete": task.is_complete},
        actor_id, organization_id=task.organization_id,
    )
    return await enrich_task(session, task)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def _scope_query(
    session: AsyncSession,
    actor_id: uuid.UUID,
    scope: Scope,
    filters: Optional[TaskFilters] = None,
    limit: Optional[int] = None,
) -> TaskQuery:
    filters = filters or TaskFilters()
    is_complete = None
    if filters.status is not None:
        is_complete = filters.status == StatusFilter.COMPLETED
    common = dict(
        is_complete=is_complete,
        priority=filters.priority.value if filters.priority else None,
        tag=filters.tag.strip() if filters.tag else None,
        limit=limit,
    )

    if scope == PERSONAL_SCOPE:
        return TaskQuery(owner_id=actor_id, personal_only=True, **common)
    if scope == OWNED_SCOPE:
        return TaskQuery(owner_id=actor_id, **common)

    membership = await MembershipRepository(session).get(scope, actor_id)
    if not access.can_view_organization(actor_id, membership):
        raise Forbidden("You are not a member of this organization")
    return TaskQuery(organization_id=scope, **common)


async def list_tasks(
    session: AsyncSession,
    actor_id: uuid.UUID,
    scope: Scope,
    filters: Optional[TaskFilters] = None,
    limit: Optional[int] = None,
) -> list[TaskRead]:
    """Tasks in ``scope`` matching every supplied filter, newest first."""
    query = await _scope_query(session, actor_id, scope, filters, limit)
    tasks = await TaskRepository(session).find(query)
    return await enrich_tasks(session, tasks)


async def list_tags(
    session: AsyncSession, actor_id: uuid.UUID, scope: Scope
) -> list[str]:
    query = await _scope_query(session, actor_id, scope)
    return await TaskRepository(session).distinct_tags(query)
