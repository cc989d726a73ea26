"""Request ID context used to correlate log lines of one request."""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current task, generating one if absent."""
    request_id = request_id or uuid.uuid4().hex
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str | None:
    """Get the request ID of the current task."""
    return request_id_var.get()
