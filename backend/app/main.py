"""LADTC API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - The route guard middleware runs before every handler; handlers re-check
      access through role_policy
    - Global error handlers map ClubError → {"error", "code"} JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, audit recorder and logging initialized in the lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Audit recorder drained on shutdown so queued entries are not lost on a
      graceful stop
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.infrastructure.database as db_module
from app.api.error_handlers import register_error_handlers
from app.api.route_guard import RouteGuardMiddleware
from app.api.routes import activity_logs, admin_members, admin_users, health, members
from app.config import get_settings
from app.core.route_policy import build_default_policy
from app.infrastructure.observability import setup_logging
from app.infrastructure.repositories import SqlAuditLogRepository
from app.services.audit_recorder import AuditRecorder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_module.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.audit_recorder = AuditRecorder(
        SqlAuditLogRepository(db_module.db_manager.session),
        max_size=settings.audit_queue_size,
    )
    logger.info("LADTC API started")
    yield
    logger.info("LADTC API shutting down")
    await app.state.audit_recorder.stop()
    await db_module.db_manager.dispose()


app = FastAPI(title="LADTC API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(RouteGuardMiddleware, policy=build_default_policy())
# Added last so it wraps the guard: rejected requests still carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(members.router)
app.include_router(admin_members.router)
app.include_router(activity_logs.router)
app.include_router(admin_users.router)

register_error_handlers(app)
