from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Request

from ..core.config import settings
from ..schemas.routes import Redirect, RouteLocation
from ..services.credentials import CredentialKind, CredentialStore, SessionStorage
from ..services.navigation import Proceed, Router

logger = logging.getLogger("sessionguard.guards")


class NavigationGuard:
    """Gate run before every navigation.

    Rules, first match wins:

    1. the target requires admin and there is no admin token -> admin login;
    2. the target requires auth and there is no user token -> login;
    3. otherwise the navigation goes ahead untouched.

    The admin rule runs first on purpose, so a route flagged both ways is
    judged on the admin token alone when it is missing. Nothing is remembered
    between calls and a blocked navigation is dropped, not replayed later.
    """

    def __init__(
        self,
        store: CredentialStore,
        *,
        login_route: str | None = None,
        admin_login_route: str | None = None,
    ) -> None:
        self.store = store
        self.login_route = login_route or settings.LOGIN_ROUTE
        self.admin_login_route = admin_login_route or settings.ADMIN_LOGIN_ROUTE

    def evaluate(self, to: RouteLocation) -> Optional[Redirect]:
        if to.meta.requires_admin and not self.store.has(CredentialKind.ADMIN):
            return Redirect(target=self.admin_login_route)
        if to.meta.requires_auth and not self.store.has(CredentialKind.USER):
            return Redirect(target=self.login_route)
        return None

    def __call__(self, to: RouteLocation, from_: RouteLocation | None, proceed: Proceed) -> None:
        redirect = self.evaluate(to)
        if redirect is None:
            proceed()
            return
        logger.info(
            "guard.blocked",
            extra={"extra_data": {"to": to.path, "redirect": redirect.target}},
        )
        proceed(redirect)

    def install(self, router: Router) -> Callable[[], None]:
        return router.before_each(self)


def get_session_store(request: Request) -> CredentialStore:
    """Credential store backed by the signed session cookie of this request."""
    app_settings = getattr(request.app.state, "settings", settings)
    return CredentialStore(
        SessionStorage(request.session),
        user_key=app_settings.USER_TOKEN_KEY,
        admin_key=app_settings.ADMIN_TOKEN_KEY,
    )
