"""NoteHub API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map NoteHubError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, blob store and notification hub initialized on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py so tests can build bare apps with them
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notehub.api.error_handlers import register_error_handlers
from notehub.api.routes import auth, chat, events, files, health, requests, users
from notehub.config import get_settings
from notehub.infrastructure import database
from notehub.infrastructure.blob_store import init_blob_store
from notehub.infrastructure.database import init_db
from notehub.infrastructure.notification_hub import init_notification_hub
from notehub.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


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
    init_blob_store(settings.upload_dir)
    init_notification_hub(settings.event_queue_size)
    logger.info("NoteHub API started")
    yield
    logger.info("NoteHub API shutting down")
    if database.db_manager:
        await database.db_manager.dispose()


app = FastAPI(
    title="NoteHub API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(requests.router)
app.include_router(chat.router)
app.include_router(files.router)
app.include_router(events.router)

register_error_handlers(app)
