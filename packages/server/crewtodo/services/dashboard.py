"""Dashboard: a compact summary of the caller's own work."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from crewtodo.repositories import TaskQuery, TaskRepository
from crewtodo.services import statistics
from crewtodo.services.organizations import list_user_organizations
from crewtodo.services.tasks import enrich_tasks

RECENT_TASKS = 5
DASHBOARD_ORGS = 5


async def build_dashboard(session: AsyncSession, user_id: uuid.UUID) -> dict:
    repo = TaskRepository(session)
    owned = await repo.find(TaskQuery(owner_id=user_id))
    counts = statistics.by_status(owned)
    recent = await enrich_tasks(session, owned[:RECENT_TASKS])
    orgs = await list_user_organizations(user_id, session, limit=DASHBOARD_ORGS)
    return {
        "total": len(owned),
        "completed": counts["completed"],
        "pending": counts["pending"],
        "completion_rate": statistics.completion_rate(owned),
        "recent_tasks": recent,
        "organizations": [{"id": o["id"], "name": o["name"]} for o in orgs],
    }
