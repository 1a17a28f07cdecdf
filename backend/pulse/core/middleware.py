"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pulse.core.context import correlation_scope, new_correlation_id

REQUEST_ID_HEADER = "X-Request-Id"

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse or mint a request id, expose it on request.state, echo it back."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_correlation_id()
        request.state.request_id = request_id
        start = perf_counter()

        with correlation_scope(request_id):
            response = await call_next(request)
            logger.debug(
                "%s %s -> %s (%.0fms)",
                request.method,
                request.url.path,
                response.status_code,
                (perf_counter() - start) * 1000,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
