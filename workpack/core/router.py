# workpack/core/router.py
"""
Module for registering routes in the FastAPI application.
"""

from fastapi import FastAPI

from workpack.logging.router import router as log_router
from workpack.work_packages.router import router as work_package_router


def register_routes(app: FastAPI) -> None:
    """
    Registers all the routes for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.include_router(work_package_router, prefix="/api")
    app.include_router(log_router, prefix="/api")
