"""Exception handlers producing the standard ``{error, code}`` JSON body."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from inkwell.core.errors import AppError, ConfigError, StoreError, error_response

logger = logging.getLogger(__name__)

# Stable codes for errors raised as plain HTTPException (routing, methods)
_STATUS_TO_CODE = {
    400: "BAD_REQUEST",
    401: "AUTH_ERROR",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
}


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": str(error.get("msg", ""))})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so every failure answers with the same JSON shape."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if isinstance(exc, ConfigError):
            logger.critical(f"Configuration error on {request.method} {request.url.path}")
        elif exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}")
        return error_response(exc)

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        # Driver text stays in the log; the client only sees STORE_ERROR
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return error_response(StoreError())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "details": _validation_details(exc),
            },
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = f"Cannot {request.method} {request.url.path}"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": message,
                "code": _STATUS_TO_CODE.get(exc.status_code, "HTTP_ERROR"),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )
