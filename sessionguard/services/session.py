from __future__ import annotations

import logging
from typing import Callable, Optional

from ..schemas.routes import RouteLocation
from .credentials import CredentialKind, CredentialStore
from .navigation import Router

logger = logging.getLogger("sessionguard.session")


class SessionTracker:
    """Keeps ``is_logged_in`` in line with the stored user credential.

    Once mounted, every completed navigation re-derives the flag, which picks
    up credentials cleared elsewhere (for example by the API client after a
    401).
    """

    def __init__(self, store: CredentialStore, router: Router | None = None) -> None:
        self.store = store
        self.router = router
        self._is_logged_in = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_logged_in(self) -> bool:
        return self._is_logged_in

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def check_auth_state(self) -> bool:
        self._is_logged_in = self.store.has(CredentialKind.USER)
        return self._is_logged_in

    def login(self, token: str) -> None:
        self.store.set(CredentialKind.USER, token)
        self._is_logged_in = True
        logger.info("session.login")

    def logout(self) -> None:
        self.store.clear(CredentialKind.USER)
        self._is_logged_in = False
        logger.info("session.logout")

    def mount(self) -> None:
        self.check_auth_state()
        if self.router is not None and self._unsubscribe is None:
            self._unsubscribe = self.router.after_each(self._on_route_change)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_route_change(self, to: RouteLocation, from_: RouteLocation | None) -> None:
        was_logged_in = self._is_logged_in
        if self.check_auth_state() != was_logged_in:
            logger.debug(
                "session.state_changed",
                extra={"extra_data": {"route": to.path, "is_logged_in": self._is_logged_in}},
            )
