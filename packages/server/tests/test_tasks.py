"""
Integration tests for Task endpoints.

Tests cover:
- Ownership: only the owner updates, toggles or deletes
- Scoped listings (personal, owned, organization) and filters
- Tag normalization and the distinct-tag picker
- Org membership required to file a task in an org
"""

from __future__ import annotations

import uuid

import pytest
from httpx import AsyncClient

from crewtodo.core.config import get_settings
from crewtodo_shared.schemas.tasks import TaskCreate, normalize_tags


async def create_task(client: AsyncClient, caller, **fields):
    body = {"title": "Write report", **fields}
    response = await client.post("/api/v1/tasks", json=body, headers=caller.headers)
    assert response.status_code == 201, response.text
    return response.json()


async def create_org_with_member(client: AsyncClient, creator, member=None):
    response = await client.post(
        "/api/v1/orgs", json={"name": "Acme", "join_secret": "s3cret"}, headers=creator.headers
    )
    org = response.json()
    if member is not None:
        await client.post(
            f"/api/v1/orgs/{org['id']}/join", json={"join_secret": "s3cret"}, headers=member.headers
        )
    return org


# ---------------------------------------------------------------------------
# Unit tests: schema normalization
# ---------------------------------------------------------------------------


class TestTagNormalization:
    def test_trims_dedupes_and_keeps_order(self):
        assert normalize_tags([" work ", "home", "work", "", "  "]) == ["work", "home"]

    def test_task_create_normalizes(self):
        task = TaskCreate(title="x", tags=["b", "a", "b"])
        assert task.tags == ["b", "a"]


# ---------------------------------------------------------------------------
# Integration tests
# ---------------------------------------------------------------------------


class TestTaskCrud:
    @pytest.mark.asyncio
    async def test_create_defaults(self, client, alice):
        task = await create_task(client, alice, tags=["work", " work", "urgent"], priority="high")
        assert task["is_complete"] is False
        assert task["owner_id"] == str(alice.id)
        assert task["organization_id"] is None
        assert task["tags"] == ["work", "urgent"]
        assert task["priority"] == "high"

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, client, alice):
        response = await client.post("/api/v1/tasks", json={"title": "  "}, headers=alice.headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, client, alice, bob):
        task = await create_task(client, alice)
        response = await client.patch(
            f"/api/v1/tasks/{task['id']}", json={"title": "Hijacked"}, headers=bob.headers
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
        assert response.json()["title"] == "Write report"

    @pytest.mark.asyncio
    async def test_owner_updates_fields_and_tags(self, client, alice):
        task = await create_task(client, alice, tags=["a"], priority="low", due_date="2026-11-01")
        response = await client.patch(
            f"/api/v1/tasks/{task['id']}",
            json={"title": "Final report", "tags": ["b", "c"], "priority": None},
            headers=alice.headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Final report"
        assert data["tags"] == ["b", "c"]
        assert data["priority"] is None
        assert data["due_date"] == "2026-11-01"

    @pytest.mark.asyncio
    async def test_toggle_flips_completion(self, client, alice, bob):
        task = await create_task(client, alice)
        url = f"/api/v1/tasks/{task['id']}/toggle"

        assert (await client.post(url, headers=bob.headers)).status_code == 403

        first = await client.post(url, headers=alice.headers)
        assert first.json()["is_complete"] is True
        second = await client.post(url, headers=alice.headers)
        assert second.json()["is_complete"] is False

    @pytest.mark.asyncio
    async def test_delete_then_delete_again(self, client, alice, bob):
        task = await create_task(client, alice)
        url = f"/api/v1/tasks/{task['id']}"

        assert (await client.delete(url, headers=bob.headers)).status_code == 403
        assert (await client.delete(url, headers=alice.headers)).status_code == 204
        assert (await client.delete(url, headers=alice.headers)).status_code == 404
        assert (await client.get(url, headers=alice.headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_missing_task_is_not_found(self, client, alice):
        response = await client.patch(
            f"/api/v1/tasks/{uuid.uuid4()}", json={"title": "x"}, headers=alice.headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_personal_task_hidden_from_others(self, client, alice, bob):
        task = await create_task(client, alice)
        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=bob.headers)
        assert response.status_code == 403


class TestOrganizationTasks:
    @pytest.mark.asyncio
    async def test_non_member_cannot_file_into_org(self, client, alice, carol):
        org = await create_org_with_member(client, alice)
        response = await client.post(
            "/api/v1/tasks",
            json={"title": "Sneaky", "organization_id": org["id"]},
            headers=carol.headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_membership_check_can_be_switched_off(self, client, alice, carol, monkeypatch):
        monkeypatch.setattr(get_settings(), "enforce_task_org_membership", False)
        org = await create_org_with_member(client, alice)
        response = await client.post(
            "/api/v1/tasks",
            json={"title": "Legacy", "organization_id": org["id"]},
            headers=carol.headers,
        )
        assert response.status_code == 201
        assert response.json()["organization_id"] == org["id"]
        assert response.json()["owner_id"] == str(carol.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("enforce", [True, False])
    async def test_unknown_org_is_not_found(self, client, alice, monkeypatch, enforce):
        monkeypatch.setattr(get_settings(), "enforce_task_org_membership", enforce)
        response = await client.post(
            "/api/v1/tasks",
            json={"title": "Orphan", "organization_id": str(uuid.uuid4())},
            headers=alice.headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_members_see_each_others_org_tasks(self, client, alice, bob, carol):
        org = await create_org_with_member(client, alice, bob)
        task = await create_task(client, bob, organization_id=org["id"])

        response = await client.get(f"/api/v1/orgs/{org['id']}/tasks", headers=alice.headers)
        assert [t["id"] for t in response.json()] == [task["id"]]

        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=alice.headers)
        assert response.status_code == 200

        # Visible, but not mutable, for a fellow member.
        response = await client.post(f"/api/v1/tasks/{task['id']}/toggle", headers=alice.headers)
        assert response.status_code == 403

        response = await client.get(f"/api/v1/orgs/{org['id']}/tasks", headers=carol.headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_removed_member_loses_visibility(self, client, alice, bob):
        org = await create_org_with_member(client, alice, bob)
        task = await create_task(client, alice, organization_id=org["id"])
        await client.delete(f"/api/v1/orgs/{org['id']}/members/{bob.id}", headers=alice.headers)

        response = await client.get(f"/api/v1/tasks/{task['id']}", headers=bob.headers)
        assert response.status_code == 403


class TestListings:
    @pytest.mark.asyncio
    async def test_scopes_and_ordering(self, client, alice, bob):
        org = await create_org_with_member(client, alice, bob)
        first = await create_task(client, alice, title="first")
        second = await create_task(client, alice, title="second", organization_id=org["id"])
        third = await create_task(client, alice, title="third")
        await create_task(client, bob, title="bob's")

        personal = await client.get("/api/v1/tasks", params={"scope": "personal"}, headers=alice.headers)
        assert [t["id"] for t in personal.json()] == [third["id"], first["id"]]

        owned = await client.get("/api/v1/tasks", params={"scope": "owned"}, headers=alice.headers)
        assert [t["id"] for t in owned.json()] == [third["id"], second["id"], first["id"]]

        in_org = await client.get("/api/v1/tasks", params={"scope": org["id"]}, headers=bob.headers)
        assert [t["id"] for t in in_org.json()] == [second["id"]]

    @pytest.mark.asyncio
    async def test_invalid_scope(self, client, alice):
        response = await client.get("/api/v1/tasks", params={"scope": "everything"}, headers=alice.headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_filters_combine(self, client, alice):
        done_high = await create_task(client, alice, title="a", priority="high", tags=["work"])
        await client.post(f"/api/v1/tasks/{done_high['id']}/toggle", headers=alice.headers)
        open_high = await create_task(client, alice, title="b", priority="high", tags=["home", "work"])
        await create_task(client, alice, title="c", priority="low", tags=["work"])

        async def ids(**params):
            response = await client.get("/api/v1/tasks", params=params, headers=alice.headers)
            assert response.status_code == 200
            return {t["id"] for t in response.json()}

        assert await ids(status="completed") == {done_high["id"]}
        assert await ids(status="pending", priority="high") == {open_high["id"]}
        assert await ids(tag="home") == {open_high["id"]}
        assert len(await ids(tag="work")) == 3
        assert len(await ids()) == 3
        assert await ids(tag="missing") == set()

    @pytest.mark.asyncio
    async def test_distinct_tags(self, client, alice):
        await create_task(client, alice, tags=["work", "home"])
        await create_task(client, alice, tags=["work", "errand"])
        response = await client.get("/api/v1/tasks/tags", headers=alice.headers)
        assert response.json()["data"] == ["errand", "home", "work"]
