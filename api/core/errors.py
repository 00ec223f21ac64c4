"""
Exception handlers for failures that originate outside the request logic.

Services raise `HTTPException` for anything the client can act on. What is
left here are storage and media host failures, which are logged and turned
into generic responses without leaking driver details.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .media import MediaError

logger = logging.getLogger(__name__)


async def storage_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error(
        "storage_error method=%s path=%s error=%s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error."},
    )


async def media_error_handler(request: Request, exc: MediaError) -> JSONResponse:
    logger.error("media_error method=%s path=%s error=%s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Media host error."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PyMongoError, storage_error_handler)
    app.add_exception_handler(MediaError, media_error_handler)
