# workpack/logging/middleware.py
"""Request/response logging middleware writing to the log table."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from workpack.core.config import APPLICATION_ID, LOG_EXCLUDED_PATHS
from workpack.logging.recorder import HOSTNAME, USERNAME, record_request

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.excluded_paths = list(LOG_EXCLUDED_PATHS)
        logger.info("Logging middleware initialized with username: %s on host: %s, App ID: %s",
                    USERNAME, HOSTNAME, APPLICATION_ID)

    async def dispatch(self, request: Request, call_next: Callable):
        # Skip logging for excluded paths
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        # --- Start timer ---
        start_time = time.time()

        # --- Read request body ---
        body_bytes = await request.body()
        request_body = body_bytes.decode("utf-8", errors="ignore")

        # Reconstruct stream
        async def receive() -> dict:
            return {"type": "http.request", "body": body_bytes}

        request = Request(request.scope, receive=receive)

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        status_code = response.status_code

        response_body = b""
        if isinstance(response, Response) and hasattr(response, "body"):
            response_body = response.body
        elif hasattr(response, "body_iterator"):
            # Streaming response: collect chunks while they pass through
            original_iterator = response.body_iterator
            chunks = []

            async def buffer_iterator():
                nonlocal response_body
                async for chunk in original_iterator:
                    chunks.append(chunk)
                    yield chunk
                response_body = b"".join(chunks)

            response.body_iterator = buffer_iterator()

        def log_to_db():
            body_to_log = response_body.decode("utf-8", errors="ignore") if response_body else "[Response body not available]"
            record_request(
                request,
                status_code=status_code,
                response_body=body_to_log,
                request_body=request_body,
                processing_time=duration_ms,
            )

        response.background = getattr(response, "background", None) or BackgroundTask(log_to_db)
        return response
