"""Data Room API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map DataRoomError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, scratch directory, content store and maintenance loop are set up in
      the lifespan and torn down in reverse order

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Upload ceiling middleware is pure ASGI so the request body is never buffered
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dataroom.api.error_handlers import register_error_handlers
from dataroom.api.routes import data_rooms, documents, health
from dataroom.api.upload_limit import UploadSizeLimitMiddleware
from dataroom.config import get_settings
from dataroom.infrastructure import database
from dataroom.infrastructure.content_store_client import (
    close_content_store, init_content_store,
)
from dataroom.infrastructure.observability import setup_logging
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
from dataroom.services.maintenance import MaintenanceLoop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    receiver = TemporaryUploadReceiver(settings.upload_policy())
    await receiver.ensure_scratch_dir()

    store = None
    if settings.content_store_enabled:
        store = init_content_store(
            api_url=settings.content_store_api_url,
            jwt=settings.content_store_jwt,
            gateway_url=settings.content_gateway_url,
            max_retries=settings.content_store_max_retries,
            base_delay_ms=settings.content_store_base_delay_ms,
            max_delay_ms=settings.content_store_max_delay_ms,
            timeout_seconds=settings.content_store_timeout_seconds,
        )
    else:
        logger.warning("Content store not configured; uploads stay in scratch storage")

    loop = None
    if settings.maintenance_interval_seconds > 0:
        loop = MaintenanceLoop(
            database.db_manager.session,
            receiver,
            store,
            interval_seconds=settings.maintenance_interval_seconds,
            grace_seconds=settings.orphan_grace_seconds,
            promotion_batch_size=settings.promotion_batch_size,
        )
        loop.start()

    logger.info("Data Room API started")
    yield
    logger.info("Data Room API shutting down")
    if loop is not None:
        await loop.stop()
    await close_content_store()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(title="Data Room API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(UploadSizeLimitMiddleware)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(data_rooms.router)
app.include_router(documents.router)

register_error_handlers(app)
