"""
Integration tests for templates ("frequent tasks").

Tests cover:
- Only the organization creator manages templates, even against org admins
- Members list and instantiate; non-members are refused
- Instantiation copies the template into a fresh, incomplete task
"""

from __future__ import annotations

import uuid

import pytest


@pytest.fixture
async def acme(client, alice, bob):
    response = await client.post(
        "/api/v1/orgs", json={"name": "Acme", "join_secret": "s3cret"}, headers=alice.headers
    )
    org = response.json()
    await client.post(
        f"/api/v1/orgs/{org['id']}/join", json={"join_secret": "s3cret"}, headers=bob.headers
    )
    return org


async def create_template(client, org, caller, **fields):
    body = {"title": "Weekly sync notes", "priority": "medium", "tags": ["meeting", "team"], **fields}
    return await client.post(f"/api/v1/orgs/{org['id']}/templates", json=body, headers=caller.headers)


class TestTemplateManagement:
    @pytest.mark.asyncio
    async def test_creator_creates_member_cannot(self, client, acme, alice, bob):
        response = await create_template(client, acme, bob)
        assert response.status_code == 403

        response = await create_template(client, acme, alice)
        assert response.status_code == 201
        data = response.json()
        assert data["organization_id"] == acme["id"]
        assert data["creator_id"] == str(alice.id)
        assert data["tags"] == ["meeting", "team"]

    @pytest.mark.asyncio
    async def test_create_in_missing_org(self, client, alice):
        response = await client.post(
            f"/api/v1/orgs/{uuid.uuid4()}/templates", json={"title": "x"}, headers=alice.headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_delete_are_creator_only(self, client, acme, alice, bob):
        template = (await create_template(client, acme, alice)).json()
        url = f"/api/v1/templates/{template['id']}"

        assert (await client.patch(url, json={"title": "x"}, headers=bob.headers)).status_code == 403
        assert (await client.delete(url, headers=bob.headers)).status_code == 403

        response = await client.patch(url, json={"title": "Retro notes", "tags": ["retro"]}, headers=alice.headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Retro notes"
        assert response.json()["tags"] == ["retro"]
        assert response.json()["priority"] == "medium"

        assert (await client.delete(url, headers=alice.headers)).status_code == 204
        assert (await client.delete(url, headers=alice.headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_listings(self, client, acme, alice, bob, carol):
        await create_template(client, acme, alice)

        response = await client.get(f"/api/v1/orgs/{acme['id']}/templates", headers=bob.headers)
        assert response.status_code == 200
        assert len(response.json()) == 1

        response = await client.get(f"/api/v1/orgs/{acme['id']}/templates", headers=carol.headers)
        assert response.status_code == 403

        managed = await client.get("/api/v1/templates", headers=alice.headers)
        assert len(managed.json()) == 1
        assert (await client.get("/api/v1/templates", headers=bob.headers)).json() == []


class TestInstantiate:
    @pytest.mark.asyncio
    async def test_member_instantiates_own_copy(self, client, acme, alice, bob):
        template = (await create_template(client, acme, alice, description="Agenda")).json()

        response = await client.post(f"/api/v1/templates/{template['id']}/instantiate", headers=bob.headers)
        assert response.status_code == 201
        task = response.json()
        assert task["title"] == template["title"]
        assert task["description"] == "Agenda"
        assert task["priority"] == "medium"
        assert task["tags"] == ["meeting", "team"]
        assert task["organization_id"] == acme["id"]
        assert task["owner_id"] == str(bob.id)
        assert task["is_complete"] is False
        assert task["due_date"] is None

        # The creator cannot change bob's copy.
        response = await client.patch(f"/api/v1/tasks/{task['id']}", json={"title": "x"}, headers=alice.headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_non_member_cannot_instantiate(self, client, acme, alice, carol):
        template = (await create_template(client, acme, alice)).json()
        response = await client.post(f"/api/v1/templates/{template['id']}/instantiate", headers=carol.headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_template(self, client, bob):
        response = await client.post(f"/api/v1/templates/{uuid.uuid4()}/instantiate", headers=bob.headers)
        assert response.status_code == 404
