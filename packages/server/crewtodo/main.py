"""
CrewTodo API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError

from crewtodo.api.v1 import router as api_v1_router
from crewtodo.api.v1.auth import router as auth_router
from crewtodo.core.config import get_settings
from crewtodo.core.database import get_session_context, init_db
from crewtodo.core.errors import CoreError, Unavailable, error_payload
from crewtodo.core.logging_setup import configure_logging
from crewtodo.core.redis import close_redis, get_redis
from crewtodo_shared.schemas.common import ErrorResponse

settings = get_settings()
log = structlog.get_logger()


async def core_error_handler(request: Request, exc: CoreError) -> JSONResponse:
    if exc.status_code >= 500:
        log.warning("request.unavailable", path=request.url.path, code=exc.code)
    else:
        log.info("request.rejected", path=request.url.path, code=exc.code, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Store failures raised outside a session dependency (e.g. after an explicit commit).
    log.warning("db.unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content=error_payload(Unavailable()))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="CrewTodo",
        description="Personal and team tasks with shared organizations, templates and statistics.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        responses={
            status: {"model": ErrorResponse}
            for status in (401, 403, 404, 409, 503)
        },
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Last-Event-ID"],
    )

    app.add_exception_handler(CoreError, core_error_handler)
    app.add_exception_handler(OperationalError, store_error_handler)
    app.add_exception_handler(InterfaceError, store_error_handler)

    # Auth routes
    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the store answers and Redis, when configured, responds."""
        async with get_session_context() as session:
            await session.execute(text("SELECT 1"))
        redis = await get_redis()
        if redis is not None:
            try:
                await redis.ping()
            except RedisError as exc:
                log.warning("redis.unavailable", error=str(exc))
                raise Unavailable()
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        configure_logging(settings.log_level, settings.log_format)
        if settings.auto_create_tables:
            await init_db()
        log.info("CrewTodo starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("CrewTodo shutting down")
        await close_redis()

    return app


app = create_app()
