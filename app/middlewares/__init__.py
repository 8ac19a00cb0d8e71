"""HTTP middleware for the registry API.

``RequestIdMiddleware`` wraps every request so log lines share a correlation
id and the acting user; ``SecurityHeadersMiddleware`` keeps surety payloads
out of browser caches.
"""

from __future__ import annotations

from .request_id import RequestIdMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "principal_ctx_var",
    "request_id_ctx_var",
]
