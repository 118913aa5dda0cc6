from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from storefront.core.errors import StorefrontError

logger = logging.getLogger(__name__)


def _endpoint(request: Request) -> str:
    return f"{request.method} {request.url.path}"


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        logger.warning(
            "Request rejected (%s): %s endpoint=%s",
            exc.kind,
            exc.message,
            _endpoint(request),
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(content=exc.to_dict(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity violation endpoint=%s error=%s", _endpoint(request), exc.orig)
        return JSONResponse(
            content={"kind": "conflict", "message": "A record with these values already exists"},
            status_code=409,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            content={
                "kind": "validation_error",
                "message": "Invalid request payload",
                "detail": jsonable_encoder(exc.errors()),
            },
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception endpoint=%s", _endpoint(request))
        return JSONResponse(
            content={"kind": "internal_error", "message": "Internal server error"},
            status_code=500,
        )
