"""
Access control decisions.

Every function here is a pure decision over ids and already-loaded rows: no
queries, no writes. Services load the facts, ask the matching ``can_*``
function and call ``require`` before touching storage. No other module
re-derives a permission.

Creator rules ignore membership role: an admin who did not create an
organization cannot edit it or remove its members, nor manage its templates.
"""

from __future__ import annotations

import uuid
from typing import Optional

from crewtodo.core.auth import verify_secret
from crewtodo.core.errors import Conflict, Forbidden, Unauthorized
from crewtodo.models.organization import Membership, Organization
from crewtodo.models.task import Task


def require(allowed: bool, message: Optional[str] = None) -> None:
    """Raise ``Forbidden`` unless a decision allowed the action."""
    if not allowed:
        raise Forbidden(message)


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

def can_edit_organization(actor_id: uuid.UUID, org: Organization) -> bool:
    return actor_id == org.creator_id


def can_view_organization(actor_id: uuid.UUID, membership: Optional[Membership]) -> bool:
    """Members (any role) may read an organization and its member list."""
    return membership is not None and membership.user_id == actor_id


def can_join(
    actor_id: uuid.UUID,
    org: Organization,
    supplied_secret: str,
    existing_membership: Optional[Membership],
) -> bool:
    if existing_membership is not None and existing_membership.user_id == actor_id:
        return False
    return verify_secret(supplied_secret, org.join_secret_hash)


def ensure_can_join(
    actor_id: uuid.UUID,
    org: Organization,
    supplied_secret: str,
    existing_membership: Optional[Membership],
) -> None:
    """Explain a negative ``can_join``: ``Conflict`` first, then ``Unauthorized``."""
    if existing_membership is not None and existing_membership.user_id == actor_id:
        raise Conflict("You are already a member of this organization")
    if not can_join(actor_id, org, supplied_secret, existing_membership):
        raise Unauthorized("Incorrect organization secret")


def can_remove_member(
    actor_id: uuid.UUID, org: Organization, target_user_id: uuid.UUID
) -> bool:
    # The creator's own membership is what keeps the org alive.
    return actor_id == org.creator_id and target_user_id != actor_id


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def can_mutate_task(actor_id: uuid.UUID, task: Task) -> bool:
    return actor_id == task.owner_id


def can_view_task(
    actor_id: uuid.UUID, task: Task, membership: Optional[Membership]
) -> bool:
    if task.owner_id == actor_id:
        return True
    return (
        task.organization_id is not None
        and membership is not None
        and membership.organization_id == task.organization_id
        and membership.user_id == actor_id
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def can_manage_template(actor_id: uuid.UUID, org: Organization) -> bool:
    return actor_id == org.creator_id
