"""Request id middleware."""

from typing import Callable
from uuid import UUID, uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hotelops.core.logging import bind_contextvars, clear_contextvars

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a request id and binds it for logging.

    An incoming ``X-Request-ID`` that is a valid UUID is reused so that
    callers can correlate; otherwise a new one is generated.

    Sets:
        request.state.request_id: The request ID
        X-Request-ID response header: For client correlation
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with a request id bound to the log context."""
        request_id = self._incoming_request_id(request) or uuid4()
        request.state.request_id = request_id

        clear_contextvars()
        bind_contextvars(request_id=str(request_id))
        try:
            response = await call_next(request)
        finally:
            clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = str(request_id)
        return response

    def _incoming_request_id(self, request: Request) -> UUID | None:
        raw = request.headers.get(REQUEST_ID_HEADER)
        if not raw:
            return None
        try:
            return UUID(raw)
        except ValueError:
            return None
