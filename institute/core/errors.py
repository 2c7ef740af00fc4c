"""
Domain exceptions and the FastAPI handlers that turn them into the
standard response envelope.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from institute.utils.response import error_response

logger = logging.getLogger(__name__)


class ImportFormatError(Exception):
    """The uploaded file can't be imported at all (no data rows, missing columns)."""


class StoreError(Exception):
    """A read or write against the backing store failed."""

    def __init__(self, message: str, entity_type: str | None = None):
        super().__init__(message)
        self.entity_type = entity_type


class UnknownEntityType(Exception):
    def __init__(self, entity_type: str):
        super().__init__(f"Unknown entity type '{entity_type}'")
        self.entity_type = entity_type


def add_error_handlers(app: FastAPI):
    @app.exception_handler(ImportFormatError)
    async def import_format_handler(request: Request, exc: ImportFormatError):
        return JSONResponse(status_code=400, content=error_response(str(exc)))

    @app.exception_handler(UnknownEntityType)
    async def unknown_entity_handler(request: Request, exc: UnknownEntityType):
        return JSONResponse(status_code=404, content=error_response(str(exc)))

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content=error_response(f"Backend request failed: {exc}"),
        )
