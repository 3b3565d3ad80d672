"""Request logging middleware.

Every request gets a request id in request.state (reused from an inbound
X-Request-ID header when the caller supplies one, e.g. a cron runner) and
echoed back in the X-Request-ID response header. Webhook and poll calls are
logged like any other request so a reconciliation pass can be traced.

Log format:
    INFO [POST] /api/v1/webhooks/signing → 200 (23ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("rw.request")

_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = request.headers.get(_HEADER, "")
        request_id = inbound[:64] if inbound else f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "[%s] %s → unhandled (%.0fms) %s",
                request.method, request.url.path, elapsed_ms, request_id,
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[_HEADER] = request_id
        logger.info(
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
