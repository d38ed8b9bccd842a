from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from typing import Callable, Mapping
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
credential_kind_ctx_var: ContextVar[str | None] = ContextVar("credential_kind", default=None)
logger = logging.getLogger("sessionguard.request")

PrincipalResolver = Callable[[Mapping[str, object]], str]


def _anonymous(_session: Mapping[str, object]) -> str:
    return "anonymous"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and the credential kind it carried.

    Must sit inside ``SessionMiddleware`` so the signed cookie has already been
    decoded into ``scope["session"]`` when ``dispatch`` runs.
    """

    def __init__(  # type: ignore[override]
        self,
        app,
        header_name: str = "X-Request-ID",
        principal_resolver: PrincipalResolver | None = None,
    ) -> None:
        super().__init__(app)
        self.header_name = header_name
        self.principal_resolver = principal_resolver or _anonymous

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid4())
        principal = self.principal_resolver(request.scope.get("session") or {})
        token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(principal)
        request.state.request_id = request_id
        request.state.principal = principal
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            response.headers[self.header_name] = request_id
            response.headers.setdefault("X-Response-Time", f"{duration_ms:.2f}ms")
            logger.info(
                "request.completed",
                extra={
                    "extra_data": {
                        "method": request.method,
                        "path": request.url.path,
                        "status": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )
            return response
        finally:
            request_id_ctx_var.reset(token)
            principal_ctx_var.reset(principal_token)
