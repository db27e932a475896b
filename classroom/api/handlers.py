"""
Exception handlers.

Turns AuthError subclasses into a consistent JSON error body with the
status class attached to each kind.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from classroom.errors import AuthError

logger = logging.getLogger(__name__)


def error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind.value} on {request.method} {request.url.path}")
    return error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
