"""Request logging middleware."""

import time
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hotelops.core.logging import log_request_end
from hotelops.core.security import get_client_ip

logger = structlog.get_logger("hotelops.api.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs every HTTP request with its outcome.

    Uses structured logging only; privileged actions are recorded by the
    audit writer from within route handlers, not here.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request and log request/response."""
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_request_end(
            logger,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id=str(getattr(request.state, "request_id", "unknown")),
            hotel_id=self._get_hotel_id(request),
            client_ip=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return response

    def _get_hotel_id(self, request: Request) -> str | None:
        """Hotel resolved for the request, recorded by the tenant dependency."""
        hotel_id = getattr(request.state, "hotel_id", None)
        return str(hotel_id) if hotel_id is not None else None
