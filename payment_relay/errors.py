"""
Error taxonomy and the handlers that render it.

Every error response shares the envelope `{success: false, message, error?}`.
Services raise RelayError subclasses; adapters never raise, they return
structured results that services turn into these errors.
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(component="errors")


class RelayError(Exception):
    status_code = 500

    def __init__(
        self,
        message: str,
        error: Any = None,
        status_code: Optional[int] = None,
        **extra: Any,
    ):
        super().__init__(message)
        self.message = message
        self.error = error
        self.extra = extra
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        body.update(self.extra)
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationError(RelayError):
    """Missing or invalid required fields."""

    status_code = 400


class WebhookSignatureError(RelayError):
    status_code = 401


class NotFoundError(RelayError):
    status_code = 404


class UpstreamError(RelayError):
    """Identity, gateway or store call failed in a way the caller must see."""

    status_code = 500


class InternalError(RelayError):
    """Anything unexpected; rendered by the catch-all handler."""

    status_code = 500


def error_response(status_code: int, message: str, error: Any = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status_code=exc.status_code,
            message=exc.message,
            error=exc.error,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return error_response(400, "Invalid request body", details)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    error = InternalError("Internal server error", error=str(exc) or exc.__class__.__name__)
    return JSONResponse(status_code=error.status_code, content=error.to_body())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
