# workpack/logging/exception_handlers.py
"""Exception handlers that answer with JSON and write a log row for each error."""

import logging
import traceback

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from workpack.logging.recorder import record_request, safe_json_dumps
from workpack.query.errors import Forbidden, InvalidQueryError, NotFound

logger = logging.getLogger(__name__)


def _log_error(request: Request, status_code: int, body) -> None:
    try:
        record_request(request, status_code=status_code, response_body=safe_json_dumps(body))
    except SQLAlchemyError as log_error:
        logger.error("Error logging %s response for %s: %s", status_code, request.url.path, log_error)


def _convert_error(error):
    if isinstance(error, dict):
        return {k: _convert_error(v) for k, v in error.items()}
    elif isinstance(error, (list, tuple)):
        return [_convert_error(item) for item in error]
    else:
        return str(error)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to the database."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    _log_error(request, 500, {
        "error": str(exc),
        "type": type(exc).__name__,
        "traceback": traceback.format_exc(),
    })
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


async def response_validation_exception_handler(request: Request, exc: ResponseValidationError):
    _log_error(request, 500, exc.errors())
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error: Response validation failed."},
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    _log_error(request, 422, exc.errors())
    return JSONResponse(status_code=422, content={"detail": _convert_error(exc.errors())})


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions and log 4xx/5xx errors."""
    if exc.status_code >= 400:
        _log_error(request, exc.status_code, {"detail": exc.detail, "headers": getattr(exc, "headers", None)})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ===== QUERY ERRORS =====


async def invalid_query_exception_handler(request: Request, exc: InvalidQueryError):
    """Malformed filters, sort or group parameters: 400 with field-level detail."""
    logger.warning("Rejected query on %s: %s", request.url.path, exc.message)
    content = {"detail": exc.message, "errors": exc.errors()}
    _log_error(request, 400, content)
    return JSONResponse(status_code=400, content=content)


async def not_found_exception_handler(request: Request, exc: NotFound):
    content = {"detail": str(exc)}
    _log_error(request, 404, content)
    return JSONResponse(status_code=404, content=content)


async def forbidden_exception_handler(request: Request, exc: Forbidden):
    content = {"detail": str(exc)}
    _log_error(request, 403, content)
    return JSONResponse(status_code=403, content=content)
