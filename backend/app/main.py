"""User Journey Analytics API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AnalyticsError → structured JSON responses
    - CORS: tracking snippet endpoints open to any origin, dashboard API limited to CORS_ORIGINS
    - Database initialized on startup via lifespan context manager, disposed on shutdown
    - SEED_ON_STARTUP seeds default plans and the admin account before serving

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - The SPA index is served with site tracking codes injected; other static
      files go through StaticFiles untouched
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.cors import SplitCORSMiddleware
from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    admin, ai_features, auth, billing, collect, custom_events, custom_reports,
    event_browser, funnels, health, internal_ips, privacy, projects, public_site, reports,
)
from app.config import get_settings
from app.core.tracking_codes import inject_tracking
from app.infrastructure import database
from app.infrastructure.database import get_db, init_db
from app.infrastructure.observability import setup_logging
from app.services.seed import seed_database
from app.services.tracking_code_cache import get_tracking_codes

logger = logging.getLogger(__name__)

STATIC_DIR = "static"
INDEX_FILE = os.path.join(STATIC_DIR, "index.html")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.seed_on_startup:
        async with database.db_manager.session() as db:
            result = await seed_database(db)
        logger.info(f"Startup seed: {result}")
    logger.info("User Journey Analytics API started")
    yield
    logger.info("User Journey Analytics API shutting down")
    await database.db_manager.dispose()


app = FastAPI(
    title="User Journey Analytics API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(SplitCORSMiddleware, allow_origins=settings.cors_origins)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(collect.router)
app.include_router(event_browser.router)
app.include_router(reports.router)
app.include_router(funnels.router)
app.include_router(custom_events.router)
app.include_router(custom_reports.router)
app.include_router(privacy.router)
app.include_router(internal_ips.router)
app.include_router(ai_features.router)
app.include_router(billing.router)
app.include_router(admin.router)
app.include_router(public_site.router)
app.include_router(public_site.sitemap_router)


# Mounted AFTER API routes so /api/v1/* takes precedence
if os.path.isfile(INDEX_FILE):

    @app.get("/", include_in_schema=False)
    async def spa_index(db: AsyncSession = Depends(get_db)):
        with open(INDEX_FILE, encoding="utf-8") as f:
            page = f.read()
        return HTMLResponse(inject_tracking(page, await get_tracking_codes(db)))

if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
