"""Organization and membership repositories."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from crewtodo.core.errors import Conflict
from crewtodo.models.organization import Membership, Organization
from crewtodo.models.user import Profile


class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, org_id: uuid.UUID) -> Optional[Organization]:
        return await self.session.get(Organization, org_id)

    async def find_by_name(self, name: str) -> list[Organization]:
        """All organizations with exactly this name, oldest first."""
        result = await self.session.execute(
            select(Organization)
            .where(Organization.name == name)
            .order_by(Organization.created_at, Organization.id)
        )
        return list(result.scalars().all())

    async def list_created_by(self, user_id: uuid.UUID) -> list[Organization]:
        result = await self.session.execute(
            select(Organization)
            .where(Organization.creator_id == user_id)
            .order_by(Organization.created_at)
        )
        return list(result.scalars().all())

    async def add(self, org: Organization) -> Organization:
        self.session.add(org)
        await self.session.flush()
        return org

    async def save(self, org: Organization) -> Organization:
        self.session.add(org)
        await self.session.flush()
        return org


class MembershipRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, org_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Membership]:
        result = await self.session.execute(
            select(Membership).where(
                Membership.organization_id == org_id,
                Membership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, membership: Membership) -> Membership:
        """Insert a membership; the (organization, user) unique constraint is the
        authoritative duplicate guard and surfaces as ``Conflict``."""
        self.session.add(membership)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise Conflict("You are already a member of this organization") from exc
        return membership

    async def delete(self, membership: Membership) -> None:
        await self.session.delete(membership)
        await self.session.flush()

    async def list_for_org(
        self, org_id: uuid.UUID
    ) -> list[tuple[Membership, Optional[Profile]]]:
        result = await self.session.execute(
            select(Membership, Profile)
            .join(Profile, Profile.id == Membership.user_id, isouter=True)
            .where(Membership.organization_id == org_id)
            .order_by(Membership.joined_at, Membership.id)
        )
        return [(m, p) for m, p in result.all()]

    async def list_for_user(
        self, user_id: uuid.UUID, limit: Optional[int] = None
    ) -> list[tuple[Membership, Organization]]:
        stmt = (
            select(Membership, Organization)
            .join(Organization, Organization.id == Membership.organization_id)
            .where(Membership.user_id == user_id)
            .order_by(Membership.joined_at.desc(), Membership.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [(m, o) for m, o in result.all()]

    async def org_ids_for_user(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.session.execute(
            select(Membership.organization_id).where(Membership.user_id == user_id)
        )
        return [row[0] for row in result.all()]
