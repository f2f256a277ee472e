"""
Domain events: a persisted log plus Redis Pub/Sub fan-out and an SSE stream.

Services call ``record_event`` inside their transaction, so the event row
commits or rolls back with the change it describes. Endpoints finish with
``commit_and_publish``; publishing happens strictly after commit and a Redis
failure never fails the request.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, AsyncGenerator, Iterable, Optional
from uuid import UUID

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.core.redis import get_redis
from crewtodo.models.event import Event

log = structlog.get_logger()

REDIS_PUBSUB_CHANNEL = "crewtodo:events"
HEARTBEAT_INTERVAL = 30  # seconds
PENDING_KEY = "pending_events"

MEMBERSHIP_CREATED = "membership.created"
MEMBERSHIP_REMOVED = "membership.removed"


async def record_event(
    session: AsyncSession,
    event_type: str,
    payload: dict[str, Any],
    actor_id: UUID | None,
    organization_id: UUID | None = None,
    user_id: UUID | None = None,
) -> Event:
    """Persist an event row in the current transaction and queue it for publishing."""
    event = Event(
        type=event_type,
        actor_id=actor_id,
        organization_id=organization_id,
        user_id=user_id,
        payload=payload,
    )
    session.add(event)
    await session.flush()
    session.info.setdefault(PENDING_KEY, []).append(event)
    return event


def event_to_dict(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "type": event.type,
        "actor_id": str(event.actor_id) if event.actor_id else None,
        "organization_id": str(event.organization_id) if event.organization_id else None,
        "user_id": str(event.user_id) if event.user_id else None,
        "payload": event.payload,
        "created_at": event.created_at.isoformat(),
    }


async def publish_event(event: Event) -> bool:
    """Publish one committed event. Returns False when it was not delivered."""
    redis = await get_redis()
    if redis is None:
        return False
    try:
        await redis.publish(REDIS_PUBSUB_CHANNEL, json.dumps(event_to_dict(event)))
    except RedisError as exc:
        log.warning("events.publish_failed", event_id=event.id, type=event.type, error=str(exc))
        return False
    return True


async def commit_and_publish(session: AsyncSession) -> None:
    """Commit the unit of work, then fan out the events it recorded."""
    await session.commit()
    pending: list[Event] = session.info.pop(PENDING_KEY, [])
    for event in pending:
        await publish_event(event)


def is_visible(event_data: dict[str, Any], user_id: UUID, org_ids: set[str]) -> bool:
    """An event is visible to members of its organization and to the users it names."""
    me = str(user_id)
    if event_data.get("organization_id") and event_data["organization_id"] in org_ids:
        return True
    return event_data.get("user_id") == me or event_data.get("actor_id") == me


def _track_membership(event_data: dict[str, Any], user_id: UUID, org_ids: set[str]) -> None:
    if event_data.get("user_id") != str(user_id) or not event_data.get("organization_id"):
        return
    if event_data["type"] == MEMBERSHIP_CREATED:
        org_ids.add(event_data["organization_id"])
    elif event_data["type"] == MEMBERSHIP_REMOVED:
        org_ids.discard(event_data["organization_id"])


async def event_stream(
    request: Request,
    user_id: UUID,
    org_ids: Iterable[UUID],
    replay: Optional[list[Event]] = None,
) -> AsyncGenerator[dict | str, None]:
    """SSE generator: replayed events first, then live events from Pub/Sub.

    The set of visible organizations follows the user's own membership events.
    """
    visible_orgs = {str(org_id) for org_id in org_ids}
    max_seen_id = 0

    redis = await get_redis()
    pubsub = redis.pubsub()
    await pubsub.subscribe(REDIS_PUBSUB_CHANNEL)

    last_beat = time.monotonic()
    try:
        for event in replay or []:
            data = event_to_dict(event)
            _track_membership(data, user_id, visible_orgs)
            max_seen_id = max(max_seen_id, event.id)
            yield {"event": data["type"], "id": str(event.id), "data": json.dumps(data)}

        while True:
            if await request.is_disconnected():
                break

            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message is None:
                if time.monotonic() - last_beat >= HEARTBEAT_INTERVAL:
                    last_beat = time.monotonic()
                    yield ": heartbeat\n\n"
                continue

            if message["type"] != "message":
                continue
            data = json.loads(message["data"])
            _track_membership(data, user_id, visible_orgs)
            if data["id"] <= max_seen_id or not is_visible(data, user_id, visible_orgs):
                continue
            max_seen_id = data["id"]
            yield {"event": data["type"], "id": str(data["id"]), "data": json.dumps(data)}
    except asyncio.CancelledError:
        log.info("events.stream_cancelled", user_id=str(user_id))
        raise
    finally:
        await pubsub.unsubscribe(REDIS_PUBSUB_CHANNEL)
        await pubsub.aclose()
