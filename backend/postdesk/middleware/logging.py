"""
PostDesk Backend — Audit Logging Middleware
=============================================

What:  Feeds every request through the AuditLogger: one record when the
       request arrives, one when the response (or failure) leaves.
Why:   Correlated, redacted trail of who called what, how long it took, and
       how it ended.
How:   Reads the JSON body of POST/PUT/PATCH requests (Starlette caches it,
       so the route still sees it), times the downstream call, then logs the
       response phase (status < 400) or the error phase (status >= 400, with
       the message the ErrorNormalizer left on request.state.failure).
When:  Runs inside RequestIDMiddleware, so the correlation id already exists.

Response payloads are buffered and logged only when enabled (development by
default); the response is then rebuilt from the buffered bytes with its
original headers.

Health checks are skipped; they run every few seconds and carry no payload.
"""

import json
import time
from typing import Any, Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from postdesk.middleware.request_id import request_id_var
from postdesk.services.audit_logger import AuditLogger

_BODY_METHODS = {"POST", "PUT", "PATCH"}


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        auditor: AuditLogger,
        log_response_payloads: bool = False,
        skip_paths: Iterable[str] = ("/health",),
    ):
        super().__init__(app)
        self.auditor = auditor
        self.log_response_payloads = log_response_payloads
        self.skip_paths = frozenset(skip_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        method = request.method
        rid = getattr(request.state, "request_id", None) or request_id_var.get()

        body = None
        if method in _BODY_METHODS:
            body = _decode(await request.body())
        self.auditor.log_request(
            rid, method, path, request.headers, body,
            client_request_id=getattr(request.state, "client_request_id", None),
        )

        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code

        if status >= 400:
            failure = getattr(request.state, "failure", None)
            message = failure.message if failure is not None else ""
            self.auditor.log_error(rid, method, path, status, duration_ms, message)
            return response

        payload = None
        if self.log_response_payloads:
            response, payload = await self._capture(response)
        self.auditor.log_response(rid, method, path, status, duration_ms, payload)
        return response

    @staticmethod
    async def _capture(response: Response) -> Tuple[Response, Optional[Any]]:
        chunks = [chunk async for chunk in response.body_iterator]
        raw = b"".join(
            chunk if isinstance(chunk, bytes) else chunk.encode("utf-8") for chunk in chunks
        )
        rebuilt = Response(
            content=raw,
            status_code=response.status_code,
            background=response.background,
        )
        rebuilt.raw_headers = list(response.raw_headers)
        return rebuilt, _decode(raw)
