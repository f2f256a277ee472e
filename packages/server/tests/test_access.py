"""
Unit tests for access decisions (no DB needed).
"""

from __future__ import annotations

import uuid

import pytest

from crewtodo.core import access
from crewtodo.core.auth import hash_secret
from crewtodo.core.errors import Conflict, Forbidden, Unauthorized
from crewtodo.models.organization import Membership, Organization
from crewtodo.models.task import Task


@pytest.fixture
def creator_id():
    return uuid.uuid4()


@pytest.fixture
def org(creator_id):
    return Organization(name="Acme", join_secret_hash=hash_secret("s3cret"), creator_id=creator_id)


class TestOrganizationDecisions:
    def test_only_creator_edits(self, org, creator_id):
        assert access.can_edit_organization(creator_id, org)
        assert not access.can_edit_organization(uuid.uuid4(), org)

    def test_admin_who_is_not_creator_cannot_edit(self, org):
        admin = uuid.uuid4()
        Membership(organization_id=org.id, user_id=admin, role="admin")
        assert not access.can_edit_organization(admin, org)
        assert not access.can_manage_template(admin, org)

    def test_view_requires_own_membership(self, org):
        user = uuid.uuid4()
        assert not access.can_view_organization(user, None)
        mine = Membership(organization_id=org.id, user_id=user)
        assert access.can_view_organization(user, mine)
        assert not access.can_view_organization(uuid.uuid4(), mine)

    def test_join_with_correct_secret(self, org):
        assert access.can_join(uuid.uuid4(), org, "s3cret", None)

    def test_join_with_wrong_secret(self, org):
        assert not access.can_join(uuid.uuid4(), org, "guess", None)
        with pytest.raises(Unauthorized):
            access.ensure_can_join(uuid.uuid4(), org, "guess", None)

    def test_join_when_already_member_conflicts_before_secret_check(self, org):
        user = uuid.uuid4()
        existing = Membership(organization_id=org.id, user_id=user)
        assert not access.can_join(user, org, "s3cret", existing)
        with pytest.raises(Conflict):
            access.ensure_can_join(user, org, "wrong", existing)

    def test_creator_removes_others_but_not_self(self, org, creator_id):
        assert access.can_remove_member(creator_id, org, uuid.uuid4())
        assert not access.can_remove_member(creator_id, org, creator_id)
        assert not access.can_remove_member(uuid.uuid4(), org, uuid.uuid4())


class TestTaskDecisions:
    def test_only_owner_mutates(self):
        owner = uuid.uuid4()
        task = Task(title="t", owner_id=owner)
        assert access.can_mutate_task(owner, task)
        assert not access.can_mutate_task(uuid.uuid4(), task)

    def test_personal_task_visible_to_owner_only(self):
        owner = uuid.uuid4()
        task = Task(title="t", owner_id=owner)
        assert access.can_view_task(owner, task, None)
        assert not access.can_view_task(uuid.uuid4(), task, None)

    def test_org_task_visible_to_members(self):
        org_id, owner, member = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        task = Task(title="t", owner_id=owner, organization_id=org_id)
        membership = Membership(organization_id=org_id, user_id=member)
        assert access.can_view_task(member, task, membership)
        # Membership in a different org does not count.
        other = Membership(organization_id=uuid.uuid4(), user_id=member)
        assert not access.can_view_task(member, task, other)

    def test_require_raises_forbidden(self):
        access.require(True)
        with pytest.raises(Forbidden) as exc_info:
            access.require(False, "nope")
        assert exc_info.value.message == "nope"
        assert exc_info.value.status_code == 403
