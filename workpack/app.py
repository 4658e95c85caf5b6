"""FastAPI application entry point for the work package query service."""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware

from workpack.core.database import init_db
from workpack.core.router import register_routes
from workpack.logging.exception_handlers import (
    forbidden_exception_handler,
    general_exception_handler,
    http_exception_handler,
    invalid_query_exception_handler,
    not_found_exception_handler,
    request_validation_exception_handler,
    response_validation_exception_handler,
)
from workpack.logging.middleware import LoggingMiddleware
from workpack.query.errors import Forbidden, InvalidQueryError, NotFound


def create_app() -> FastAPI:

    app = FastAPI(
        title="Workpack",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    init_db()

    # Add request logger middleware
    app.add_middleware(LoggingMiddleware)

    # Response validation errors are not seen by the middleware
    app.add_exception_handler(ResponseValidationError, response_validation_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # Query errors
    app.add_exception_handler(InvalidQueryError, invalid_query_exception_handler)
    app.add_exception_handler(NotFound, not_found_exception_handler)
    app.add_exception_handler(Forbidden, forbidden_exception_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    return app
