"""
PostDesk Backend — Principal Middleware
=========================================

What:  Attaches the caller's Principal (or None) to request.state.principal.
When:  Before any route dependency runs, so the access guard and the
       ownership checks read a resolved identity instead of raw headers.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from postdesk.services.authentication import Authenticator


class PrincipalMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, authenticator: Authenticator):
        super().__init__(app)
        self.authenticator = authenticator

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.principal = self.authenticator.authenticate(request.headers)
        return await call_next(request)
