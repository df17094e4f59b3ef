"""CrowdChain API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map CrowdChainError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Shutdown cancels in-flight settlements (they stay pending) and closes subscribers;
      startup re-schedules whatever was left pending

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - SQLite URLs get create_all on startup (local runs); PostgreSQL is migrated by alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdchain.api.error_handlers import register_error_handlers
from crowdchain.api.routes import (
    admin, auth, creator_requests, events, health, projects, users,
)
from crowdchain.config import get_settings
from crowdchain.infrastructure.database import init_db
from crowdchain.infrastructure.observability import setup_logging
from crowdchain.services.account_service import AccountService
from crowdchain.services.broadcaster import get_broadcaster
from crowdchain.services.settlement import get_settlement_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_url.startswith("sqlite"):
        await manager.create_schema()

    broadcaster = get_broadcaster()
    scheduler = get_settlement_scheduler()
    async with manager.session() as db:
        await AccountService(db, broadcaster, settings).ensure_admin()
    await scheduler.resume_pending()
    logger.info(
        "CrowdChain API started (settlement policy: %s)", settings.settlement_policy,
    )
    yield
    logger.info("CrowdChain API shutting down")
    await scheduler.shutdown()
    broadcaster.close_all()
    await manager.dispose()


app = FastAPI(
    title="CrowdChain API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration (ExMA: no convention-over-config)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(creator_requests.router)
app.include_router(admin.router)
app.include_router(users.router)
app.include_router(events.router)

register_error_handlers(app)
