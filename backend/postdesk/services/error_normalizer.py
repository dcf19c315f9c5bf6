"""
PostDesk Backend — Error Normalizer
=====================================

What:  Turns ANY failure into the error envelope and its HTTP response.
Why:   Single translation point to the wire format: domain code raises typed
       failures, framework code raises its own exceptions, and clients always
       receive the same shape.
How:   classify → resolve status & message → attach field errors / stack →
       log → envelope.

Classification:
    ValidationFailure          → 400 + errors[]
    RequestValidationError     → 400 + errors[] (FastAPI body/query parsing)
    PostDeskError subclasses   → declared status_code + message
    Starlette HTTPException    → its status_code + detail (404 route, 405, ...)
    anything else              → 500 "Internal server error"

Message resolution for declared payloads:
    string          → used as-is
    mapping         → its "message" entry, when that is a string
    otherwise       → "Something went wrong"

`stack` is attached only in development. normalize() never raises: if
building the envelope itself fails, a minimal 500 envelope is returned.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from postdesk.exceptions import PostDeskError, ValidationFailure
from postdesk.schemas.common import ErrorEnvelope, FieldError

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Something went wrong"
INTERNAL_ERROR_MESSAGE = "Internal server error"

# Location prefixes FastAPI puts in front of the field path
_LOC_SOURCES = {"body", "query", "path", "header", "cookie"}


def resolve_message(payload: Any) -> str:
    if isinstance(payload, str) and payload:
        return payload
    if isinstance(payload, Mapping):
        nested = payload.get("message")
        if isinstance(nested, str) and nested:
            return nested
    return FALLBACK_MESSAGE


def _field_from_loc(loc: Tuple[Any, ...]) -> str:
    parts = list(loc)
    if len(parts) > 1 and parts[0] in _LOC_SOURCES:
        parts = parts[1:]
    return ".".join(str(part) for part in parts) or "body"


def _group_request_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = _field_from_loc(tuple(error.get("loc", ())))
        grouped.setdefault(field, []).append(str(error.get("msg", FALLBACK_MESSAGE)))
    return grouped


class ErrorNormalizer:
    """
    Args:
        development: When True, envelopes carry the formatted traceback
    """

    def __init__(self, development: bool = False):
        self.development = development

    def classify(self, exc: BaseException) -> Tuple[int, str, Optional[Dict[str, List[str]]]]:
        """Return (status_code, message, field_errors) for a failure."""
        if isinstance(exc, ValidationFailure):
            return exc.status_code, resolve_message(exc.message), exc.errors

        if isinstance(exc, RequestValidationError):
            return 400, "Validation failed", _group_request_errors(exc)

        if isinstance(exc, PostDeskError):
            status_code = exc.status_code
            if status_code >= 500:
                # Internal details of server-side failures stay in the logs
                return status_code, INTERNAL_ERROR_MESSAGE, None
            return status_code, resolve_message(exc.message), None

        if isinstance(exc, StarletteHTTPException):
            return exc.status_code, resolve_message(exc.detail), None

        return 500, INTERNAL_ERROR_MESSAGE, None

    def normalize(self, exc: BaseException, request: Request) -> ErrorEnvelope:
        try:
            return self._build(exc, request)
        except Exception:
            logger.exception("Error normalizer failed while handling %r", exc)
            return ErrorEnvelope.model_construct(
                status=False,
                status_code=500,
                message=INTERNAL_ERROR_MESSAGE,
                timestamp=datetime.now(timezone.utc),
                path=_safe_path(request),
                method=_safe_method(request),
                errors=None,
                stack=None,
            )

    def to_response(self, exc: BaseException, request: Request) -> JSONResponse:
        envelope = self.normalize(exc, request)
        try:
            content = envelope.to_wire()
        except Exception:
            logger.exception("Could not serialize error envelope")
            content = {
                "status": False,
                "statusCode": 500,
                "message": INTERNAL_ERROR_MESSAGE,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "path": _safe_path(request),
                "method": _safe_method(request),
            }
        return JSONResponse(status_code=content["statusCode"], content=content)

    # ── Internals ─────────────────────────────────────────────────────────

    def _build(self, exc: BaseException, request: Request) -> ErrorEnvelope:
        status_code, message, field_errors = self.classify(exc)
        method = request.method
        path = request.url.path

        if status_code >= 500:
            logger.error(
                "%s %s %d - %s", method, path, status_code, message,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.warning("%s %s %d - %s", method, path, status_code, message)

        envelope = ErrorEnvelope(
            status_code=status_code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            path=path,
            method=method,
            errors=(
                [FieldError(field=f, messages=m) for f, m in field_errors.items()]
                if field_errors
                else None
            ),
            stack=self._stack(exc),
        )
        # Read by the audit middleware for the error-phase record
        request.state.failure = envelope
        return envelope

    def _stack(self, exc: BaseException) -> Optional[str]:
        if not self.development:
            return None
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _safe_path(request: Request) -> str:
    try:
        return request.url.path
    except Exception:
        return ""


def _safe_method(request: Request) -> str:
    try:
        return request.method
    except Exception:
        return ""
