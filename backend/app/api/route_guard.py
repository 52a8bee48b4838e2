"""Route Guard Middleware — classify, resolve, decide before any handler runs.

Invariants:
    - Exactly one guard decision per request; a protected route never reaches its
      handler without an allowed Identity
    - The resolved principal is stored on request.state.identity for handlers
    - SessionStoreUnavailableError, or any other resolution failure, is logged and
      the request proceeds as ANONYMOUS (fail closed: protected routes answer
      401 / login redirect, never 5xx)
    - Requests without a credential never touch the session store

Design Decisions:
    - db_manager is read from the database module at call time, so the store
      follows whatever manager the lifespan (or a test) installed
    - Pure decision logic lives in core/route_guard.py; this class only does IO
      and turns GuardDecision into a Starlette response
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

import app.infrastructure.database as db_module
from app.config import get_settings
from app.core.credentials import extract_credential
from app.core.errors import SessionStoreUnavailableError
from app.core.identity import ANONYMOUS, Principal
from app.core.route_guard import GuardOutcome, decide
from app.core.route_policy import RoutePolicy, build_default_policy
from app.infrastructure.repositories import SqlSessionStore
from app.services.session_resolver import SessionResolver

logger = logging.getLogger(__name__)


async def resolve_identity(credential: str | None, path: str) -> Principal:
    """Credential → principal; any resolution failure degrades to ANONYMOUS."""
    if not credential:
        return ANONYMOUS
    settings = get_settings()
    manager = db_module.db_manager
    store = SqlSessionStore(manager.session if manager else None)
    resolver = SessionResolver(store, secret=settings.session_secret)
    try:
        return await resolver.resolve(credential)
    except SessionStoreUnavailableError as e:
        logger.error(
            e.message,
            extra={"error_code": e.code, "path": path},
        )
        return ANONYMOUS
    except Exception:
        logger.error(
            "Session resolution failed",
            exc_info=True,
            extra={"error_code": "SESSION_RESOLUTION_FAILED", "path": path},
        )
        return ANONYMOUS


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Per-request access gate in front of every route."""

    def __init__(self, app, policy: RoutePolicy | None = None):
        super().__init__(app)
        self.policy = policy or build_default_policy()

    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        path = request.url.path
        credential = extract_credential(
            request.cookies, request.headers, settings.session_cookie_names,
        )
        identity = await resolve_identity(credential, path)
        request.state.identity = identity

        decision = decide(
            self.policy.classify(path),
            identity,
            path,
            login_path=settings.login_path,
            access_denied_path=settings.access_denied_path,
        )
        if decision.outcome is GuardOutcome.PASS:
            return await call_next(request)

        logger.info(
            f"Route guard {decision.outcome.value} ({decision.status_code})",
            extra={
                "path": path,
                "user_id": getattr(identity, "user_id", None),
            },
        )
        if decision.outcome is GuardOutcome.REDIRECT:
            return RedirectResponse(decision.location, status_code=decision.status_code)
        return JSONResponse(status_code=decision.status_code, content=decision.body)
