from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

SESSION_INVALIDATED_MESSAGE = "Session invalidated. Please log in again."


class SessionGuardError(Exception):
    """Base class for every error raised by the session guard."""


class ApiError(SessionGuardError):
    """An outbound API call failed with a non-success response."""

    def __init__(self, message: str, *, status: int | None = None, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class SessionInvalidatedError(ApiError):
    """The server no longer accepts the stored credential."""

    def __init__(self, message: str = SESSION_INVALIDATED_MESSAGE) -> None:
        super().__init__(message, status=401)


class NavigationError(SessionGuardError):
    pass


class RouteNotFoundError(NavigationError):
    pass


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": exc.errors()},
        )
    raise exc


async def navigation_error_handler(request: Request, exc: NavigationError):
    code = "route_not_found" if isinstance(exc, RouteNotFoundError) else "navigation_error"
    status_code = status.HTTP_404_NOT_FOUND if isinstance(exc, RouteNotFoundError) else status.HTTP_409_CONFLICT
    return ErrorEnvelope(status_code=status_code, code=code, message=str(exc))
