"""
FastAPI application entry point for the CMS.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from vibeflare.config import get_settings
from vibeflare.errors import StorageError
from vibeflare.routes import router, site_router
from vibeflare.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts) or "Invalid request body"


def create_app() -> FastAPI:
    settings = get_settings()
    api_root = settings.api_prefix.rstrip("/") + "/"

    # Interactive docs stay off: every non-API path belongs to the page namespace.
    app = FastAPI(
        title="VibeFlare CMS",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(site_router)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _format_validation_error(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(
            status_code=400, content=ErrorResponse(error=message).model_dump()
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(
            "Storage failure on %s %s", request.method, request.url.path, exc_info=exc
        )
        if request.url.path.startswith(api_root):
            return JSONResponse(
                status_code=500, content=ErrorResponse(error=str(exc)).model_dump()
            )
        return PlainTextResponse("Internal Server Error", status_code=500)

    return app


app = create_app()
