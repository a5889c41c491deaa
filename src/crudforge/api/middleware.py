# src/crudforge/api/middleware.py
"""Per-request access logging."""

import socket
import time
from datetime import datetime
from typing import Iterable, Optional

from rich.markup import escape
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..core.logging import Logger, log

TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f %z"


class LogHook(BaseHTTPMiddleware):
    """
    Logs one access line per request.

    2xx/3xx are logged as info, 4xx as warnings and 5xx as errors. Paths in
    `skip_paths` (health checks and the like) are not logged.
    """

    def __init__(self, app, logger: Optional[Logger] = None, skip_paths: Iterable[str] = ()):
        super().__init__(app)
        self.logger = logger or log
        self.skip_paths = frozenset(skip_paths)
        try:
            self.hostname = socket.gethostname()
        except OSError:
            self.hostname = "unknown"

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path
        if path in self.skip_paths:
            return response

        latency = (time.perf_counter() - start) * 1000
        status = response.status_code
        client_ip = request.client.host if request.client else "-"
        data_length = response.headers.get("content-length", "0")
        referer = request.headers.get("referer", "")
        user_agent = request.headers.get("user-agent", "")
        now = datetime.now().astimezone().strftime(TIME_FORMAT)
        message = escape(
            f'{client_ip} - {self.hostname} [{now}] "{request.method} {path}" '
            f'{status} {data_length} "{referer}" "{user_agent}" ({latency:.3f}ms)'
        )
        if status >= 500:
            self.logger.error(message)
        elif status >= 400:
            self.logger.warn(message)
        else:
            self.logger.info(message)
        return response
