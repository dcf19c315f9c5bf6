"""
PostDesk Backend — Unhandled Error Middleware
===============================================

What:  Last line of defence: any exception no handler claimed becomes an
       error envelope (500 "Internal server error") via the ErrorNormalizer.
Why:   Without it, unexpected failures reach Starlette's ServerErrorMiddleware
       and leave as plain text, breaking the envelope contract. It also sits
       inside the audit middleware, so the 500 is audited like any response.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from postdesk.services.error_normalizer import ErrorNormalizer


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, normalizer: ErrorNormalizer):
        super().__init__(app)
        self.normalizer = normalizer

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self.normalizer.to_response(exc, request)
