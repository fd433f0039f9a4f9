"""Per-request correlation IDs and access logging."""

import re
import time
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"

# Client-supplied IDs end up in log lines; anything else is replaced
_CORRELATION_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_correlation_id(header_value: str | None) -> str:
    if header_value and _CORRELATION_ID_PATTERN.fullmatch(header_value):
        return header_value
    return str(uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags every request and every log line it produces with one ID.

    The ID comes from the ``X-Correlation-Id`` request header when it is
    well-formed, otherwise a UUID4 is generated. It is stored on
    ``request.state.correlation_id``, bound into structlog contextvars
    and echoed back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
        )

        return response
