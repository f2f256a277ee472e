"""
Event endpoints.

- GET /        - Replay events visible to the caller after a cursor
- GET /stream  - Live SSE stream of visible events, replaying from Last-Event-ID
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from crewtodo.core.auth import Identity, get_identity
from crewtodo.core.database import get_session
from crewtodo.core.errors import Unavailable
from crewtodo.core.events import event_stream
from crewtodo.core.redis import get_redis
from crewtodo.repositories import EventRepository, MembershipRepository
from crewtodo_shared.schemas.statistics import EventListResponse, EventRead

router = APIRouter()

MAX_REPLAY_EVENTS = 1000


@router.get("", response_model=EventListResponse)
async def list_events(
    after: int = Query(0, ge=0, description="Return events with a larger id"),
    limit: int = Query(100, ge=1, le=MAX_REPLAY_EVENTS),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """Events in the caller's organizations or about the caller, oldest first."""
    org_ids = await MembershipRepository(session).org_ids_for_user(identity.user_id)
    events = await EventRepository(session).list_visible(
        identity.user_id, org_ids, after=after, limit=limit
    )
    cursor = events[-1].id if events else after
    return EventListResponse(data=[EventRead.model_validate(e) for e in events], cursor=cursor)


@router.get("/stream")
async def stream_events(
    request: Request,
    last_event_id: Optional[int] = Header(None, alias="Last-Event-ID"),
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """
    Stream visible events via SSE.

    Emits `: heartbeat` comments every 30 seconds to keep the connection alive.
    """
    if await get_redis() is None:
        raise Unavailable("Live events are not available on this server")

    org_ids = await MembershipRepository(session).org_ids_for_user(identity.user_id)
    replay = []
    if last_event_id is not None:
        replay = await EventRepository(session).list_visible(
            identity.user_id, org_ids, after=last_event_id, limit=MAX_REPLAY_EVENTS
        )
    return EventSourceResponse(event_stream(request, identity.user_id, org_ids, replay))
