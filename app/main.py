"""
Task Tracker API - Main Application
===================================

FastAPI application entry point with middleware configuration
and route registration.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import newrelic.agent

from app.config import settings

# Configure logging for the application (root logger defaults to WARNING)
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import tasks
from app.core.errors import setup_exception_handlers
from app.db.gateway import get_default_gateway
from app.db.session import close_db, init_db
from app.schemas.common import ErrorResponse
from app.services.task_service import TaskService

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# New Relic Transaction Enrichment Middleware (Raw ASGI)
# =============================================================================

class NewRelicTransactionMiddleware:
    """
    Raw ASGI middleware that enriches every New Relic transaction with
    custom attributes for filtering, alerting and dashboarding.

    Raw ASGI rather than ``BaseHTTPMiddleware`` so the route handler runs in
    the same task and New Relic's contextvars-based spans stay attached.

    Captures: response status, latency, HTTP method and route pattern.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500  # default until we capture the real one

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000

            txn = newrelic.agent.current_transaction()
            if txn:
                # Route pattern (e.g. "/api/tasks/{task_id}") for grouping
                route = scope.get("route")
                route_path = route.path if route else scope.get("path", "unknown")

                newrelic.agent.add_custom_attributes([
                    ("http.method", scope.get("method", "")),
                    ("http.route", route_path),
                    ("http.status_code", status_code),
                    ("http.duration_ms", round(duration_ms, 2)),
                    ("environment", settings.ENVIRONMENT),
                ])


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup warms the database pool and seeds the sample task; failures
    are logged and startup continues so health checks still answer.
    Shutdown disposes the engine.
    """
    logger.info("Starting Task Tracker API environment=%s", settings.ENVIRONMENT)

    try:
        await init_db()
    except Exception as e:
        logger.warning("Database connection failed: %s", e)
    else:
        if settings.SEED_SAMPLE_TASK:
            try:
                service = TaskService(
                    get_default_gateway(),
                    duration_unit=settings.DURATION_INPUT_UNIT,
                )
                seeded = await service.ensure_sample_task()
                if seeded is not None:
                    logger.info("sample_task_seeded task=%s", seeded.id)
            except Exception as e:
                logger.warning("Sample task seeding failed: %s", e)

    yield

    logger.info("Shutting down Task Tracker API...")
    await close_db()
    get_default_gateway.cache_clear()


# Create FastAPI application
app = FastAPI(
    title="Task Tracker API",
    description="""
## Task Tracker Backend

Create, list, delete and complete tasks, and read the completed-task counter.

- Durations are sent in minutes and stored in seconds.
- Completing a task removes it and increments the counter exactly once.
    """,
    version=API_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        404: {"model": ErrorResponse, "description": "Resource not found"},
        422: {"description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
        503: {"model": ErrorResponse, "description": "Persistence service unavailable"},
    },
)

# Configure CORS
_origins = settings.allowed_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials="*" not in _origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# New Relic transaction enrichment (adds custom attrs to every transaction)
app.add_middleware(NewRelicTransactionMiddleware)

# Setup exception handlers
setup_exception_handlers(app)


# =============================================================================
# Health Check Endpoints
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the current status of the API.
    """
    return {
        "status": "healthy",
        "version": API_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/", tags=["Health"])
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Task Tracker API",
        "version": API_VERSION,
        "docs": "/docs" if settings.is_development else "Disabled in production",
    }


# =============================================================================
# API Routes
# =============================================================================

app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
