# workpack/logging/recorder.py
"""Writes request log rows. Shared by the middleware and the exception handlers."""

import getpass
import json
import logging
import platform
import socket
from datetime import datetime
from typing import Any, Optional

from fastapi import Request

from workpack.core import database
from workpack.core.base_dao import parse_id
from workpack.core.config import APPLICATION_ID
from workpack.logging.models import Log

logger = logging.getLogger(__name__)


def _detect_username() -> str:
    try:
        return getpass.getuser() or "unknown_user"
    except (KeyError, OSError):
        return "unknown_user"


def _detect_hostname() -> str:
    try:
        return socket.gethostname() or platform.node() or "unknown_host"
    except OSError:
        return "unknown_host"


USERNAME = _detect_username()
HOSTNAME = _detect_hostname()


def safe_json_dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, default=str)


def viewer_id_of(request: Request) -> Optional[int]:
    return parse_id(request.headers.get("x-user-id", ""))


def record_request(
    request: Request,
    status_code: int,
    response_body: Optional[str],
    request_body: Optional[str] = None,
    processing_time: Optional[float] = None,
) -> None:
    """Persist one log row in its own session."""
    with database.SessionLocal() as session:
        session.add(Log(
            timestamp=datetime.now(),
            method=request.method,
            path=str(request.url.path),
            query_string=str(request.url.query) or None,
            status_code=status_code,
            client_ip=request.client.host if request.client else None,
            request_headers=json.dumps(dict(request.headers)),
            request_body=request_body,
            response_body=response_body,
            processing_time=processing_time,
            user_agent=request.headers.get("user-agent"),
            viewer_id=viewer_id_of(request),
            username=USERNAME,
            hostname=HOSTNAME,
            application_id=APPLICATION_ID,
        ))
        session.commit()
