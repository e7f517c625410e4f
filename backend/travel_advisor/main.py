"""Travel Advisor API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AdvisorError → FAILED envelope
    - CORS configured from settings (not hardcoded)
    - Database, upstream clients and scheduler initialized in lifespan, torn down in reverse

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Scheduler gets an orchestrator factory so each run builds fresh per-run wiring
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from travel_advisor.api.dependencies import build_orchestrator
from travel_advisor.api.error_handlers import register_error_handlers
from travel_advisor.api.routes import advisories, health
from travel_advisor.config import get_settings
from travel_advisor.infrastructure.advisory_store import SqlAdvisoryStore
from travel_advisor.infrastructure.database import init_db
from travel_advisor.infrastructure.observability import setup_logging
from travel_advisor.infrastructure.upstream import close_upstream, init_upstream
from travel_advisor.services.scheduler import AdvisoryScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await db.create_all()
    clients = init_upstream(settings)

    scheduler = None
    if settings.scheduler_enabled:
        store = SqlAdvisoryStore(
            db, preserve_created_at=settings.sync_preserve_created_at,
        )
        scheduler = AdvisoryScheduler(
            lambda: build_orchestrator(store, clients, settings), settings,
        )
        scheduler.start()
    app.state.scheduler = scheduler
    logger.info("Travel Advisor API started")
    yield
    logger.info("Travel Advisor API shutting down")
    if scheduler:
        await scheduler.stop()
    await close_upstream()
    await db.dispose()


app = FastAPI(
    title="Travel Advisor API", version="1.0.0", lifespan=lifespan,
)

# CORS origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes, registered explicitly
app.include_router(health.router)
app.include_router(advisories.router)

register_error_handlers(app)
