"""
Tests for domain events: persistence alongside mutations, visibility,
replay cursors and post-commit publishing.
"""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import RedisError

from crewtodo.core.events import REDIS_PUBSUB_CHANNEL, is_visible


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


async def event_types(client, caller, **params):
    response = await client.get("/api/v1/events", params=params, headers=caller.headers)
    assert response.status_code == 200
    return [e["type"] for e in response.json()["data"]]


class TestVisibility:
    def test_rules(self):
        me, org = uuid.uuid4(), str(uuid.uuid4())
        assert is_visible({"organization_id": org}, me, {org})
        assert not is_visible({"organization_id": org}, me, set())
        assert is_visible({"user_id": str(me)}, me, set())
        assert is_visible({"actor_id": str(me)}, me, set())
        assert not is_visible({"actor_id": str(uuid.uuid4())}, me, set())


class TestEventLog:
    @pytest.mark.asyncio
    async def test_members_see_org_events(self, client, acme, alice, bob, carol):
        types = await event_types(client, bob)
        assert types == ["org.created", "membership.created", "membership.created"]
        assert await event_types(client, carol) == []

    @pytest.mark.asyncio
    async def test_personal_task_events_are_private(self, client, acme, alice, bob):
        await client.post("/api/v1/tasks", json={"title": "private"}, headers=alice.headers)
        assert "task.created" in await event_types(client, alice)
        assert "task.created" not in await event_types(client, bob)

    @pytest.mark.asyncio
    async def test_removed_member_keeps_seeing_own_removal(self, client, acme, alice, bob):
        await client.delete(f"/api/v1/orgs/{acme['id']}/members/{bob.id}", headers=alice.headers)
        types = await event_types(client, bob)
        assert "membership.removed" in types
        assert "org.created" not in types

    @pytest.mark.asyncio
    async def test_cursor_pages_forward(self, client, acme, alice):
        first = await client.get("/api/v1/events", params={"limit": 2}, headers=alice.headers)
        body = first.json()
        assert len(body["data"]) == 2
        rest = await client.get("/api/v1/events", params={"after": body["cursor"]}, headers=alice.headers)
        assert [e["type"] for e in rest.json()["data"]] == ["membership.created"]
        assert rest.json()["cursor"] > body["cursor"]

    @pytest.mark.asyncio
    async def test_rejected_mutation_records_nothing(self, client, acme, alice, bob):
        before = await event_types(client, alice)
        await client.patch(f"/api/v1/orgs/{acme['id']}", json={"name": "Bobco"}, headers=bob.headers)
        assert await event_types(client, alice) == before


class TestPublishing:
    @pytest.mark.asyncio
    async def test_published_after_commit(self, client, alice):
        redis = MagicMock()
        redis.publish = AsyncMock(return_value=1)
        with patch("crewtodo.core.events.get_redis", AsyncMock(return_value=redis)):
            response = await client.post("/api/v1/tasks", json={"title": "ship it"}, headers=alice.headers)
        assert response.status_code == 201

        channel, message = redis.publish.await_args.args
        assert channel == REDIS_PUBSUB_CHANNEL
        data = json.loads(message)
        assert data["type"] == "task.created"
        assert data["payload"]["task_id"] == response.json()["id"]
        assert data["actor_id"] == str(alice.id)

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_fail_request(self, client, alice):
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=RedisError("gone"))
        with patch("crewtodo.core.events.get_redis", AsyncMock(return_value=redis)):
            response = await client.post("/api/v1/tasks", json={"title": "ship it"}, headers=alice.headers)
        assert response.status_code == 201
        assert "task.created" in await event_types(client, alice)

    @pytest.mark.asyncio
    async def test_stream_requires_redis(self, client, alice):
        response = await client.get("/api/v1/events/stream", headers=alice.headers)
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "UNAVAILABLE"
