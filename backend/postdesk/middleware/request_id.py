"""
PostDesk Backend — Request ID Middleware
==========================================

What:  Assigns a correlation id to every request and returns it in X-Request-ID.
Why:   Every audit record and log line of one request shares the same id.
How:   Generates a UUID4, stores it in a ContextVar and on request.state.
When:  First application middleware in the chain (runs before audit logging).

Why never reuse the client's id:
    The correlation id must be unique per request. A client-supplied
    X-Request-ID is kept as `client_request_id` for cross-system tracing, but
    a client cannot make two requests share an id in our logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = str(uuid.uuid4())
        token = request_id_var.set(rid)

        request.state.request_id = rid
        request.state.client_request_id = request.headers.get(REQUEST_ID_HEADER)

        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
