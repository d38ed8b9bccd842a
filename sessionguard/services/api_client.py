from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar

import httpx

from ..core.config import settings
from ..core.errors import ApiError, SessionInvalidatedError
from ..middlewares import credential_kind_ctx_var
from .credentials import CredentialKind, CredentialStore
from .navigation import Location

logger = logging.getLogger("sessionguard.api")

T = TypeVar("T")

# Broad on purpose: any message mentioning a session counts, false positives included.
INVALIDATION_MARKERS = (
    "session",
    "token expired",
    "invalid token",
    "session expired",
    "session has been invalidated",
    "session not found",
)

_PASSTHROUGH_OPTIONS = {"json", "content", "data", "params", "timeout"}


def _field(error: Any, name: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(name)
    return getattr(error, name, None)


def _statuses_of(error: Any) -> List[Any]:
    statuses = [_field(error, name) for name in ("status", "status_code", "statusCode")]
    response = _field(error, "response")
    if isinstance(response, httpx.Response):
        statuses.append(response.status_code)
    return statuses


def is_session_invalidation_error(error: Any) -> bool:
    """True when ``error`` looks like the server rejected the session.

    Accepts exceptions, parsed JSON bodies and plain objects. A status of
    exactly 401 always counts; otherwise the lower-cased ``message`` is
    checked against :data:`INVALIDATION_MARKERS`. A 2xx status with a matching
    message still counts.
    """
    if not error:
        return False
    if 401 in _statuses_of(error):
        return True
    message = _field(error, "message")
    if message is None and isinstance(error, BaseException) and error.args:
        message = error.args[0]
    if not isinstance(message, str):
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in INVALIDATION_MARKERS)


class SessionApiClient:
    """httpx wrapper that sends the stored bearer token and reacts to 401s.

    When a response says the session is gone, the matching credential is
    cleared, a warning is logged and ``location`` is sent to the login page
    with a hard navigation. The call then fails with
    :class:`SessionInvalidatedError`.
    """

    def __init__(
        self,
        store: CredentialStore,
        location: Location,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        login_path: str | None = None,
        admin_login_path: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.location = location
        self.login_path = login_path or settings.LOGIN_PATH
        self.admin_login_path = admin_login_path or settings.ADMIN_LOGIN_PATH
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.API_BASE_URL if base_url is None else base_url,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "SessionApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_headers(self, is_admin: bool = False, extra: Mapping[str, str] | None = None) -> httpx.Headers:
        headers = httpx.Headers({"Content-Type": "application/json"})
        token = self.store.get(CredentialKind.ADMIN if is_admin else CredentialKind.USER)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra:
            # Caller headers go last and replace defaults case-insensitively.
            headers.update(extra)
        return headers

    async def request(
        self,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
        is_admin: bool = False,
    ) -> Any:
        opts: Dict[str, Any] = dict(options or {})
        method = str(opts.pop("method", "GET")).upper()
        headers = self.build_headers(is_admin, opts.pop("headers", None))
        if "body" in opts:
            opts["content"] = opts.pop("body")
        unknown = set(opts) - _PASSTHROUGH_OPTIONS
        if unknown:
            raise TypeError(f"Unsupported request options: {', '.join(sorted(unknown))}")
        kind = CredentialKind.ADMIN if is_admin else CredentialKind.USER
        kind_token = credential_kind_ctx_var.set(kind.value)
        try:
            response = await self._client.request(method, url, headers=headers, **opts)
            return await self.handle_api_response(response, is_admin=is_admin)
        finally:
            credential_kind_ctx_var.reset(kind_token)

    async def handle_api_response(self, response: httpx.Response, is_admin: bool = False) -> Any:
        if response.status_code == 401:
            self.handle_session_invalidation(is_admin)
            raise SessionInvalidatedError()

        await response.aread()
        if not response.is_success:
            try:
                error_data = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise ApiError(
                    f"HTTP Error: {response.status_code} {response.reason_phrase}",
                    status=response.status_code,
                ) from None
            if is_session_invalidation_error(error_data):
                self.handle_session_invalidation(is_admin)
                raise SessionInvalidatedError()
            message = error_data.get("message") if isinstance(error_data, dict) else None
            raise ApiError(
                message or f"HTTP Error: {response.status_code}",
                status=response.status_code,
                details=error_data,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ApiError(
                f"Invalid JSON in response: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            ) from exc

    def handle_session_invalidation(self, is_admin: bool = False) -> None:
        kind = CredentialKind.ADMIN if is_admin else CredentialKind.USER
        self.store.clear(kind)
        logger.warning(
            "Session has been invalidated. Please log in again.",
            extra={"extra_data": {"credential": kind.value}},
        )
        self.location.assign(self.admin_login_path if is_admin else self.login_path)

    async def with_session_handling(self, call: Callable[[], Awaitable[T]], is_admin: bool = False) -> T:
        try:
            return await call()
        except SessionInvalidatedError:
            raise
        except Exception as exc:
            if is_session_invalidation_error(exc):
                self.handle_session_invalidation(is_admin)
                raise SessionInvalidatedError() from exc
            raise
