"""Mapping of inbox errors onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from inbox.core.errors import (
    ConflictError,
    InternalError,
    InvalidArgumentError,
    MergeFailedError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _invalid_argument(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


async def _internal(request: Request, exc: InternalError) -> JSONResponse:
    content: dict = {"detail": "Internal error"}
    if isinstance(exc, MergeFailedError):
        # Some reassignment may already be committed; retry the whole merge
        content = {"detail": "Merge failed, retry the whole merge", "stats": exc.stats.as_dict()}
    logger.error(f"Internal error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the inbox error handlers on an application."""
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidArgumentError, _invalid_argument)
    app.add_exception_handler(ConflictError, _conflict)
    app.add_exception_handler(InternalError, _internal)
