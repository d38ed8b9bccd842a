"""Beginner-friendly overview for this module.

WHAT: Serves every named route of the route table over HTTP.
WHEN: Each GET to a page path, before anything page-specific happens.
WHY: The browser host needs the same gate as the in-process router.
HOW: Build a credential store over the session cookie, ask the
`NavigationGuard` for a decision, redirect with `?next=` or report the page.

File: sessionguard/routers/pages.py
"""


from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from ..deps.guard import NavigationGuard, get_session_store
from ..schemas.routes import RouteLocation
from ..services.credentials import CredentialKind, CredentialStore
from ..services.navigation import Router

logger = logging.getLogger("sessionguard.guards")


def _page_endpoint(location: RouteLocation, table: Router):
    async def endpoint(request: Request, store: CredentialStore = Depends(get_session_store)):
        app_settings = request.app.state.settings
        guard = NavigationGuard(
            store,
            login_route=app_settings.LOGIN_ROUTE,
            admin_login_route=app_settings.ADMIN_LOGIN_ROUTE,
        )
        redirect = guard.evaluate(location)
        if redirect is not None:
            target = table.resolve(redirect)
            logger.info(
                "guard.blocked",
                extra={"extra_data": {"to": location.path, "redirect": target.path}},
            )
            return RedirectResponse(url=f"{target.path}?next={quote(location.path)}", status_code=302)
        # Placeholder for the page component mounted by the consuming app.
        return JSONResponse(
            {
                "route": location.name,
                "path": location.path,
                "isLoggedIn": store.has(CredentialKind.USER),
            }
        )

    endpoint.__name__ = f"page_{(location.name or 'root').replace('-', '_')}"
    return endpoint


def build_router(table: Router) -> APIRouter:
    router = APIRouter(tags=["pages"])
    for location in table.named_routes:
        router.add_api_route(
            location.path,
            _page_endpoint(location, table),
            methods=["GET"],
            name=location.name,
            include_in_schema=False,
        )
    return router
