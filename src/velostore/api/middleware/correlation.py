"""Request-scoped logging context.

Every record logged while a request is handled carries the request id,
the correlation id and the cart identity that SessionMiddleware resolved.
The ids are echoed back as response headers, and one summary line is
logged per request.

Add this middleware before SessionMiddleware so it runs inside it and
finds ``request.state.identity`` already set.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from velostore.core.identity import CartIdentity
from velostore.observability.logging import LogContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Binds request id, correlation id and cart identity for logging.

    An incoming ``x-request-id`` is reused, otherwise one is generated.
    ``x-correlation-id`` falls back to the request id.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or request_id
        request.state.request_id = request_id

        context = {"request_id": request_id, "correlation_id": correlation_id}
        identity: CartIdentity | None = getattr(request.state, "identity", None)
        if identity is not None:
            context["identity"] = identity.key

        started = time.perf_counter()
        with LogContext(**context):
            response = await call_next(request)
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
