"""
Per-request access log plus request id propagation.
Only method, path, status and timing are logged; bodies and query strings
can carry borrower data.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        method = request.method
        path = request.scope.get("path", "")

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        status = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id

        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "request_finished req_id=%s method=%s path=%s status=%s duration_ms=%.1f",
            request_id, method, path, status, duration_ms,
            extra={"request_id": request_id, "method": method, "path": path,
                   "status": status, "duration_ms": duration_ms},
        )
        return response
