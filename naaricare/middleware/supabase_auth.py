"""Supabase JWT verification middleware for FastAPI.

Validates the Bearer access token on every request (except public routes),
extracts claims, and sets ``request.state.auth`` with the authenticated
user context that route handlers consume via ``get_current_user``.
Sign-up, sign-in and token refresh all happen against Supabase Auth
directly; this service only verifies the resulting tokens.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import jwt as pyjwt
from fastapi import Request, Response
from jwt import PyJWKClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from naaricare.config import Settings, get_settings
from naaricare.dependencies import AuthContext

logger = logging.getLogger("naaricare.auth")

# Paths that do not require authentication
PUBLIC_PATHS: set[str] = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def _is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc")


def _unauthorized(detail: str) -> Response:
    return Response(
        content=f'{{"detail":"{detail}"}}',
        status_code=401,
        media_type="application/json",
    )


class SupabaseAuthMiddleware(BaseHTTPMiddleware):
    """Verify Supabase-issued JWTs and populate request.state.auth."""

    def __init__(self, app: Any, settings: Settings | None = None) -> None:
        super().__init__(app)
        self._settings = settings or get_settings()
        self._jwks_client = PyJWKClient(
            self._settings.jwks_url,
            cache_keys=True,
            lifespan=3600,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if _is_public(request.url.path):
            return await call_next(request)

        # OPTIONS requests pass through (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header")

        token = auth_header.removeprefix("Bearer ").strip()

        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256", "ES256"],
                audience=self._settings.supabase_jwt_audience,
            )
        except pyjwt.ExpiredSignatureError:
            return _unauthorized("Token expired")
        except pyjwt.PyJWTError as exc:
            logger.warning("JWT validation failed: %s", exc)
            return _unauthorized("Invalid token")

        try:
            user_id = uuid.UUID(str(payload.get("sub", "")))
        except ValueError:
            logger.warning("JWT has a non-UUID subject")
            return _unauthorized("Invalid token")

        request.state.auth = AuthContext(
            user_id=user_id,
            email=payload.get("email"),
            session_id=payload.get("session_id"),
        )

        return await call_next(request)
