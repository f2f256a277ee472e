"""
Task endpoints: CRUD, completion toggle, scoped listings and tag pickers.

Scopes: ``personal`` (the caller's tasks outside any org), ``owned`` (every
task the caller owns) or an organization id (all tasks of that org, members
only). Only a task's owner may change or delete it.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.database import get_session
from crewtodo.core.events import commit_and_publish
from crewtodo.services import tasks as task_service
from crewtodo_shared.schemas.common import PERSONAL_SCOPE, StatusFilter, TaskPriority
from crewtodo_shared.schemas.tasks import (
    TagListResponse,
    TaskCreate,
    TaskFilters,
    TaskRead,
    TaskUpdate,
)

router = APIRouter()
org_router = APIRouter()


def task_filters(
    status: Optional[StatusFilter] = None,
    priority: Optional[TaskPriority] = None,
    tag: Optional[str] = None,
) -> TaskFilters:
    return TaskFilters(status=status, priority=priority, tag=tag or None)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@router.get("", response_model=List[TaskRead])
async def list_tasks_endpoint(
    scope: str = Query(PERSONAL_SCOPE, description="personal, owned or an organization id"),
    filters: TaskFilters = Depends(task_filters),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """List tasks in a scope, newest first, with optional status/priority/tag filters."""
    return await task_service.list_tasks(
        session, identity.user_id, task_service.parse_scope(scope), filters
    )


@router.get("/tags", response_model=TagListResponse)
async def list_tags_endpoint(
    scope: str = Query(PERSONAL_SCOPE),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    tags = await task_service.list_tags(
        session, identity.user_id, task_service.parse_scope(scope)
    )
    return TagListResponse(data=tags)


@org_router.get("", response_model=List[TaskRead])
async def list_org_tasks_endpoint(
    org_id: uuid.UUID,
    filters: TaskFilters = Depends(task_filters),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await task_service.list_tasks(session, identity.user_id, org_id, filters)


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------


@router.post("", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    body: TaskCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.create_task(session, identity.user_id, body)
    await commit_and_publish(session)
    return task


@router.get("/{task_id}", response_model=TaskRead)
async def get_task_endpoint(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await task_service.get_task(session, identity.user_id, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task_endpoint(
    task_id: uuid.UUID,
    body: TaskUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.update_task(session, identity.user_id, task_id, body)
    await commit_and_publish(session)
    return task


@router.delete("/{task_id}", status_code=204)
async def delete_task_endpoint(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    await task_service.delete_task(session, identity.user_id, task_id)
    await commit_and_publish(session)
    return Response(status_code=204)


@router.post("/{task_id}/toggle", response_model=TaskRead)
async def toggle_task_endpoint(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.toggle_complete(session, identity.user_id, task_id)
    await commit_and_publish(session)
    return task
