"""
API v1 Router

Organization-scoped collections are nested under /orgs/{org_id}.
"""

from fastapi import APIRouter

from . import events, organizations, profile, statistics, tasks, templates

router = APIRouter()

router.include_router(organizations.router, prefix="/orgs", tags=["Organizations"])
router.include_router(tasks.org_router, prefix="/orgs/{org_id}/tasks", tags=["Tasks"])
router.include_router(templates.org_router, prefix="/orgs/{org_id}/templates", tags=["Templates"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(templates.router, prefix="/templates", tags=["Templates"])
router.include_router(statistics.router, tags=["Statistics"])
router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(events.router, prefix="/events", tags=["Events"])


@router.get("/", tags=["API"])
async def api_root():
    """API root - returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/{org_id}/members",
            "/orgs/{org_id}/tasks",
            "/orgs/{org_id}/templates",
            "/tasks",
            "/templates",
            "/statistics",
            "/dashboard",
            "/profile",
            "/events",
        ],
    }
