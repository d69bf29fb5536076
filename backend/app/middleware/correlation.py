# backend/app/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

For each request:
1. Take the caller's X-Correlation-ID (or X-Request-ID) if it is sane
2. Otherwise generate a UUID
3. Store it in context so every log line of the request carries it
4. Echo it back in the X-Correlation-ID response header

Incoming IDs end up in log lines, so only short IDs made of letters,
digits, '-', '_' and '.' are accepted.

Usage:
    app.add_middleware(CorrelationIdMiddleware)

    curl -H "X-Correlation-ID: backfill-2024-01" http://localhost:8000/health
"""

import logging
import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation ID to every request and its log lines."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    def _get_correlation_id(self, request: Request) -> str:
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if not value:
                continue
            if _VALID_ID.match(value):
                return value
            logger.debug(f"Ignoring malformed {header} header")
        return str(uuid.uuid4())
