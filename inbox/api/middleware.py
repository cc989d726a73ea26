"""Middleware for request correlation."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from inbox.core.request_context import set_request_id
from inbox.core.tenant_context import clear_tenant_context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Stamp every request with an ID used by the logging context filter."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_id(request.headers.get("X-Request-Id"))
        clear_tenant_context()
        response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response
