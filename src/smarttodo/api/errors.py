"""Exception handlers mapping validation and storage failures to HTTP."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from smarttodo.engine import StoreError, StoreTimeout, ValidationError

logger = logging.getLogger("smarttodo.api")


def _describe_validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        issues.append({"field": location, "message": str(error.get("msg", "Invalid value"))})
    return issues


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "errors": _describe_validation_errors(exc)},
        )

    @app.exception_handler(ValidationError)
    async def handle_validation(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message},
        )

    @app.exception_handler(StoreTimeout)
    async def handle_store_timeout(request: Request, exc: StoreTimeout) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} timed out: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage temporarily unavailable, retry later"},
            headers={"Retry-After": "1"},
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        # Details were logged where the failure was caught; clients get a generic body.
        logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal storage error"},
        )
