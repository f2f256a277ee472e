"""
Template ("frequent task") endpoints.

GET    /api/v1/orgs/{org_id}/templates        - List an org's templates (members)
POST   /api/v1/orgs/{org_id}/templates        - Create (org creator)
GET    /api/v1/templates                      - Templates of orgs the caller created
GET    /api/v1/templates/{id}                 - Read (members)
PATCH  /api/v1/templates/{id}                 - Update (org creator)
DELETE /api/v1/templates/{id}                 - Delete (org creator)
POST   /api/v1/templates/{id}/instantiate     - Create a task from it (members)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.database import get_session
from crewtodo.core.events import commit_and_publish
from crewtodo.services import templates as template_service
from crewtodo_shared.schemas.tasks import TaskRead, TemplateCreate, TemplateRead, TemplateUpdate

router = APIRouter()
org_router = APIRouter()


@org_router.get("", response_model=List[TemplateRead])
async def list_org_templates(
    org_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await template_service.list_templates(session, identity.user_id, org_id)


@org_router.post("", response_model=TemplateRead, status_code=201)
async def create_template(
    org_id: uuid.UUID,
    body: TemplateCreate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    template = await template_service.create_template(session, identity.user_id, org_id, body)
    await commit_and_publish(session)
    return template


@router.get("", response_model=List[TemplateRead])
async def list_managed_templates(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await template_service.list_managed_templates(session, identity.user_id)


@router.get("/{template_id}", response_model=TemplateRead)
async def get_template(
    template_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await template_service.get_template(session, identity.user_id, template_id)


@router.patch("/{template_id}", response_model=TemplateRead)
async def update_template(
    template_id: uuid.UUID,
    body: TemplateUpdate,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    template = await template_service.update_template(
        session, identity.user_id, template_id, body
    )
    await commit_and_publish(session)
    return template


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    await template_service.delete_template(session, identity.user_id, template_id)
    await commit_and_publish(session)
    return Response(status_code=204)


@router.post("/{template_id}/instantiate", response_model=TaskRead, status_code=201)
async def instantiate_template(
    template_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    task = await template_service.instantiate_template(session, identity.user_id, template_id)
    await commit_and_publish(session)
    return task
