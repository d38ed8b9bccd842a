from __future__ import annotations

from .request_id import RequestIdMiddleware, credential_kind_ctx_var, principal_ctx_var, request_id_ctx_var

__all__ = [
    "RequestIdMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
    "credential_kind_ctx_var",
]
