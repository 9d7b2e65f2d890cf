"""Access logging middleware using structlog."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every HTTP request as one structured ``http_request`` event.

    A request ID (taken from ``X-Request-ID`` or generated) is bound to the
    structlog context for the duration of the request, so service events such
    as ``section_added`` can be correlated with the request that caused them.
    The ID is echoed back in the response header.

    Log fields:
        - request_id, method, path, status_code, duration_ms, client_ip
        - forwarded_for: first X-Forwarded-For hop, when present
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and log access information."""
        start_time = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = None
        if xff_header := request.headers.get("x-forwarded-for"):
            forwarded_for = xff_header.split(",")[0].strip()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_kwargs: dict[str, str | int | float | None] = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            }
            if forwarded_for:
                log_kwargs["forwarded_for"] = forwarded_for

            logger.info("http_request", **log_kwargs)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
