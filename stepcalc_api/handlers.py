"""
API error handling.

Every error response has the same body:

    {"error": {"type": ..., "message": ..., "details": ...}}

Calculator errors are the client's fault (the expression could not be
evaluated) and map to 422; anything else is a 500.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stepcalc.core.config import get_settings
from stepcalc.core.errors import CalculatorError
from stepcalc.core.logging import get_context_logger

logger = get_context_logger(__name__, component="api")


def error_response(status_code: int, error_type: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    """Build the standard error body"""
    error = {"type": error_type, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder({"error": error}))


async def calculator_error_handler(request: Request, exc: CalculatorError) -> JSONResponse:
    """An expression failed to evaluate: report its error type and details"""
    logger.info(
        f"Calculation rejected: {exc.message}",
        extra_data={"path": request.url.path, "error_type": type(exc).__name__, **exc.details}
    )
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, type(exc).__name__, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request body"""
    errors = exc.errors()
    logger.warning("Validation error", extra_data={"path": request.url.path, "errors": errors})
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "ValidationError", "Request validation failed", errors)


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected failure; the message is only exposed with DEBUG on"""
    logger.exception("Unexpected error occurred", extra_data={"path": request.url.path})
    message = str(exc) if get_settings().DEBUG else "An internal error occurred"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalServerError", message)


def register_error_handlers(app: FastAPI) -> None:
    """Register error handlers with FastAPI app"""
    app.add_exception_handler(CalculatorError, calculator_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
