"""
Organization directory: organizations, join credentials and memberships.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core import access
from crewtodo.core.auth import hash_secret
from crewtodo.core.errors import Conflict, Forbidden, NotFound, Unauthorized, require_text
from crewtodo.core.events import MEMBERSHIP_CREATED, MEMBERSHIP_REMOVED, record_event
from crewtodo.models.organization import Membership, Organization
from crewtodo.repositories import MembershipRepository, OrganizationRepository
from crewtodo_shared.schemas.common import Role
from crewtodo_shared.schemas.organizations import OrgCreateRequest, OrgUpdateRequest

log = structlog.get_logger()


async def get_org_or_404(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    org = await OrganizationRepository(session).get(org_id)
    if org is None:
        raise NotFound("Organization not found")
    return org


async def require_membership(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Membership:
    """The caller's membership in ``org_id``; ``Forbidden`` for non-members."""
    membership = await MembershipRepository(session).get(org_id, actor_id)
    if not access.can_view_organization(actor_id, membership):
        raise Forbidden("You are not a member of this organization")
    return membership


async def list_user_organizations(
    user_id: uuid.UUID, session: AsyncSession, limit: Optional[int] = None
) -> list[dict]:
    """Organizations the user belongs to, most recently joined first."""
    rows = await MembershipRepository(session).list_for_user(user_id, limit=limit)
    return [
        {
            "id": org.id,
            "name": org.name,
            "description": org.description,
            "role": membership.role,
            "is_creator": org.creator_id == user_id,
            "joined_at": membership.joined_at,
        }
        for membership, org in rows
    ]


async def create_organization(
    creator_id: uuid.UUID,
    req: OrgCreateRequest,
    session: AsyncSession,
) -> Organization:
    """Create an org and make the creator its admin, in one transaction."""
    name = require_text(req.name, "name")
    secret = require_text(req.join_secret, "join_secret")

    org = Organization(
        name=name,
        description=req.description,
        join_secret_hash=hash_secret(secret),
        creator_id=creator_id,
    )
    await OrganizationRepository(session).add(org)

    await MembershipRepository(session).add(
        Membership(organization_id=org.id, user_id=creator_id, role=Role.ADMIN.value)
    )

    await record_event(
        session, "org.created", {"name": org.name}, creator_id, organization_id=org.id
    )
    await record_event(
        session,
        MEMBERSHIP_CREATED,
        {"role": Role.ADMIN.value},
        creator_id,
        organization_id=org.id,
        user_id=creator_id,
    )
    log.info("org.created", org_id=str(org.id), creator=str(creator_id))
    return org


async def _join(
    actor_id: uuid.UUID, org: Organization, supplied_secret: str, session: AsyncSession
) -> Membership:
    memberships = MembershipRepository(session)
    existing = await memberships.get(org.id, actor_id)
    try:
        access.ensure_can_join(actor_id, org, supplied_secret, existing)
    except (Conflict, Unauthorized) as exc:
        log.info("org.join_rejected", org_id=str(org.id), user_id=str(actor_id), reason=exc.code)
        raise

    membership = await memberships.add(
        Membership(organization_id=org.id, user_id=actor_id, role=Role.MEMBER.value)
    )
    await record_event(
        session,
        MEMBERSHIP_CREATED,
        {"role": membership.role},
        actor_id,
        organization_id=org.id,
        user_id=actor_id,
    )
    log.info("org.joined", org_id=str(org.id), user_id=str(actor_id))
    return membership


async def join_organization(
    actor_id: uuid.UUID, name: str, supplied_secret: str, session: AsyncSession
) -> Membership:
    """Join by name. Names are not unique; the oldest organization with the name is used."""
    candidates = await OrganizationRepository(session).find_by_name(name.strip())
    if not candidates:
        raise NotFound("No organization with that name")
    return await _join(actor_id, candidates[0], supplied_secret, session)


async def join_organization_by_id(
    actor_id: uuid.UUID, org_id: uuid.UUID, supplied_secret: str, session: AsyncSession
) -> Membership:
    org = await get_org_or_404(org_id, session)
    return await _join(actor_id, org, supplied_secret, session)


async def remove_member(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    target_user_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    org = await get_org_or_404(org_id, session)
    access.require(
        access.can_remove_member(actor_id, org, target_user_id),
        "Only the organization creator can remove other members",
    )

    memberships = MembershipRepository(session)
    membership = await memberships.get(org_id, target_user_id)
    if membership is None:
        raise NotFound("Member not found")
    await memberships.delete(membership)

    await record_event(
        session,
        MEMBERSHIP_REMOVED,
        {},
        actor_id,
        organization_id=org_id,
        user_id=target_user_id,
    )
    log.info("org.member_removed", org_id=str(org_id), user_id=str(target_user_id), by=str(actor_id))


async def update_organization(
    actor_id: uuid.UUID,
    org_id: uuid.UUID,
    req: OrgUpdateRequest,
    session: AsyncSession,
) -> Organization:
    org = await get_org_or_404(org_id, session)
    access.require(
        access.can_edit_organization(actor_id, org),
        "Only the organization creator can edit it",
    )

    changed = []
    if req.name is not None:
        org.name = require_text(req.name, "name")
        changed.append("name")
    if req.description is not None:
        org.description = req.description
        changed.append("description")
    if req.join_secret is not None:
        org.join_secret_hash = hash_secret(require_text(req.join_secret, "join_secret"))
        changed.append("join_secret")

    org.updated_at = datetime.now(timezone.utc)
    await OrganizationRepository(session).save(org)

    await record_event(
        session, "org.updated", {"fields": changed}, actor_id, organization_id=org.id
    )
    log.info("org.updated", org_id=str(org.id), fields=changed)
    return org


async def get_organization(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> dict:
    org = await get_org_or_404(org_id, session)
    membership = await require_membership(actor_id, org_id, session)
    return {
        "id": org.id,
        "name": org.name,
        "description": org.description,
        "creator_id": org.creator_id,
        "is_creator": org.creator_id == actor_id,
        "role": membership.role,
        "created_at": org.created_at,
        "updated_at": org.updated_at,
    }


async def list_members(org_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    """Members with their profile display data, in join order."""
    org = await get_org_or_404(org_id, session)
    rows = await MembershipRepository(session).list_for_org(org_id)
    return [
        {
            "id": membership.id,
            "user_id": membership.user_id,
            "role": membership.role,
            "joined_at": membership.joined_at,
            "display_name": profile.full_name if profile else None,
            "avatar_url": profile.avatar_url if profile else None,
            "is_creator": membership.user_id == org.creator_id,
        }
        for membership, profile in rows
    ]
