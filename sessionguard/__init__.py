"""Application factory and top-level wiring for the session guard.

The package has two faces. In-process, a consuming application builds a
``CredentialStore``, a ``Router`` with the ``NavigationGuard`` installed, a
``SessionTracker`` subscribed to navigation events and a ``SessionApiClient``
for outbound calls. Over HTTP, :func:`create_app` serves the same route table
with FastAPI: *what* it wires up is the signed session cookie that holds the
tokens, *when* the guard runs is before every page request, *why* is so that
browser navigation and in-process navigation follow the same rules, and *how*
is one GET endpoint per named route plus a small ``/api/session`` API.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .core.config import AppSettings, settings as default_settings
from .core.errors import NavigationError, http_exception_handler, navigation_error_handler, validation_exception_handler
from .core.routes import default_routes
from .deps.guard import NavigationGuard
from .middlewares import RequestIdMiddleware
from .schemas.routes import RouteRecord
from .services.api_client import SessionApiClient, is_session_invalidation_error
from .services.credentials import CredentialKind, CredentialStore, JsonFileStorage, MemoryStorage
from .services.navigation import Location, Router
from .services.session import SessionTracker


def _principal_resolver(app_settings: AppSettings):
    def resolve(session: Mapping[str, object]) -> str:
        if session.get(app_settings.ADMIN_TOKEN_KEY):
            return "admin"
        if session.get(app_settings.USER_TOKEN_KEY):
            return "user"
        return "anonymous"

    return resolve


def create_app(
    app_settings: AppSettings | None = None,
    routes: Sequence[RouteRecord] | None = None,
) -> FastAPI:
    app_settings = app_settings or default_settings
    app = FastAPI(title=app_settings.APP_NAME)
    app.state.settings = app_settings
    app.state.router = Router(routes if routes is not None else default_routes())

    # Added first so it runs inside SessionMiddleware and sees the decoded session.
    app.add_middleware(RequestIdMiddleware, principal_resolver=_principal_resolver(app_settings))
    app.add_middleware(
        SessionMiddleware,
        secret_key=app_settings.APP_SECRET,
        session_cookie=app_settings.SESSION_COOKIE_NAME,
        max_age=app_settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=False,  # set True once the app is always accessed via HTTPS at the edge
    )

    from .routers import api_session, pages

    app.include_router(api_session.router)
    app.include_router(pages.build_router(app.state.router))

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NavigationError, navigation_error_handler)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


__all__ = [
    "CredentialKind",
    "CredentialStore",
    "JsonFileStorage",
    "Location",
    "MemoryStorage",
    "NavigationGuard",
    "Router",
    "SessionApiClient",
    "SessionTracker",
    "create_app",
    "is_session_invalidation_error",
]
