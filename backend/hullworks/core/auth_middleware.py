"""HULLWORKS MES — JWT auth middleware: reads Bearer header or session cookie, sets request.state.user."""
import logging
from typing import Callable
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hullworks.api.deps import CurrentUser
from hullworks.config import get_settings
from hullworks.core.security import decode_token

logger = logging.getLogger(__name__)


def _user_from_payload(payload: dict | None) -> CurrentUser | None:
    if not payload or payload.get("type") != "access":
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    try:
        department_id = payload.get("department_id")
        return CurrentUser(
            id=UUID(sub),
            email=payload.get("email") or "unknown",
            role=payload.get("role", "OPERATOR"),
            department_id=UUID(department_id) if department_id else None,
        )
    except ValueError:
        logger.warning("Malformed token claims for sub=%s", sub)
        return None


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Extract JWT from Authorization header (or the auth cookie) and populate request.state.user."""

    PUBLIC_PATHS = {
        "/api/v1/auth/login",
        "/health",
        "/api/v1/docs",
        "/api/v1/redoc",
        "/api/v1/openapi.json",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.user = None

        path = request.url.path
        if path in self.PUBLIC_PATHS or path.startswith("/api/v1/docs") or path.startswith("/api/v1/redoc"):
            return await call_next(request)

        # ── 1. Bearer token ─────────────────────────────────────────────────
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            request.state.user = _user_from_payload(decode_token(auth[7:].strip()))
            return await call_next(request)

        # ── 2. httpOnly cookie set by /auth/login ───────────────────────────
        token = request.cookies.get(get_settings().AUTH_COOKIE_NAME)
        if token:
            request.state.user = _user_from_payload(decode_token(token))

        return await call_next(request)
