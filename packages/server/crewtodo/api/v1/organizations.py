"""
Organization API endpoints.

GET    /api/v1/orgs                           - List orgs the caller belongs to
POST   /api/v1/orgs                           - Create an org (caller becomes admin)
POST   /api/v1/orgs/join                      - Join by name with the join secret
GET    /api/v1/orgs/{org_id}                  - Org details (members only)
PATCH  /api/v1/orgs/{org_id}                  - Update name/description/secret (creator only)
POST   /api/v1/orgs/{org_id}/join             - Join by id with the join secret
GET    /api/v1/orgs/{org_id}/members          - Member list (members only)
DELETE /api/v1/orgs/{org_id}/members/{user_id} - Remove a member (creator only)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.database import get_session
from crewtodo.core.events import commit_and_publish
from crewtodo.services import organizations as org_service
from crewtodo_shared.schemas.common import Role
from crewtodo_shared.schemas.organizations import (
    MemberListResponse,
    MembershipResponse,
    OrgCreateRequest,
    OrgJoinByIdRequest,
    OrgJoinRequest,
    OrgListResponse,
    OrgResponse,
    OrgUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=OrgListResponse)
async def list_orgs(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to, newest membership first."""
    items = await org_service.list_user_organizations(identity.user_id, session)
    return OrgListResponse(data=items)


@router.post("", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreateRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its admin."""
    org = await org_service.create_organization(identity.user_id, body, session)
    await commit_and_publish(session)
    response = OrgResponse.model_validate(org)
    return response.model_copy(update={"is_creator": True, "role": Role.ADMIN})


@router.post("/join", response_model=MembershipResponse, status_code=201)
async def join_org(
    body: OrgJoinRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    membership = await org_service.join_organization(
        identity.user_id, body.name, body.join_secret, session
    )
    await commit_and_publish(session)
    return membership


@router.get("/{org_id}", response_model=OrgResponse)
async def get_org(
    org_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.get_organization(identity.user_id, org_id, session)


@router.patch("/{org_id}", response_model=OrgResponse)
async def update_org(
    org_id: uuid.UUID,
    body: OrgUpdateRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """Update org details (creator only). A new join secret does not affect existing members."""
    await org_service.update_organization(identity.user_id, org_id, body, session)
    await commit_and_publish(session)
    return await org_service.get_organization(identity.user_id, org_id, session)


@router.post("/{org_id}/join", response_model=MembershipResponse, status_code=201)
async def join_org_by_id(
    org_id: uuid.UUID,
    body: OrgJoinByIdRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    membership = await org_service.join_organization_by_id(
        identity.user_id, org_id, body.join_secret, session
    )
    await commit_and_publish(session)
    return membership


@router.get("/{org_id}/members", response_model=MemberListResponse)
async def list_members(
    org_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    await org_service.get_org_or_404(org_id, session)
    await org_service.require_membership(identity.user_id, org_id, session)
    members = await org_service.list_members(org_id, session)
    return MemberListResponse(data=members)


@router.delete("/{org_id}/members/{user_id}", status_code=204)
async def remove_member(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    await org_service.remove_member(identity.user_id, org_id, user_id, session)
    await commit_and_publish(session)
    return Response(status_code=204)
