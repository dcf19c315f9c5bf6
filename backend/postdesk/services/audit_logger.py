"""
PostDesk Backend — Audit Logger
=================================

What:  Structured request / response / error records with redaction.
Why:   Every request leaves a correlated trail, without leaking credentials
       or personal secrets into log storage.
How:   One record per phase on the `postdesk.audit` logger. Structured fields
       go in `extra=` (request_id, client_request_id, phase, method, path,
       status, duration_ms, headers, body) so a JSON formatter can index
       them; the redacted body is also rendered into the message for
       plain-text handlers.

Redaction rules:
    Headers: authorization, proxy-authorization, cookie, set-cookie,
             x-api-key, api-key (case-insensitive), and any header whose
             name passes the body-key test below (x-auth-token, ...) → "[REDACTED]"
    Body:    any key whose normalized name contains password, token, secret,
             creditcard, cardnumber or cvv, at any nesting depth → "[REDACTED]"
             (normalized = lower-cased, "-" and "_" removed)

Truncation:
    A serialized payload longer than `max_chars` is replaced by
        {"message": "Response data truncated due to size",
         "preview": <first max_chars characters> + "..."}

Failure policy:
    Every public method swallows its own failures (reported on the module
    logger at DEBUG). Audit problems never change the response.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

REDACTED = "[REDACTED]"
TRUNCATION_NOTICE = "Response data truncated due to size"

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "api-key",
    }
)
SENSITIVE_KEY_FRAGMENTS = ("password", "token", "secret", "creditcard", "cardnumber", "cvv")

logger = logging.getLogger(__name__)


def _normalize_key(key: Any) -> str:
    return str(key).lower().replace("-", "").replace("_", "")


def is_sensitive_key(key: Any) -> bool:
    normalized = _normalize_key(key)
    return any(fragment in normalized for fragment in SENSITIVE_KEY_FRAGMENTS)


def is_sensitive_header(name: str) -> bool:
    return name.lower() in SENSITIVE_HEADERS or is_sensitive_key(name)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, default=str, ensure_ascii=False)


class AuditLogger:
    """
    Args:
        max_chars:   Truncation threshold for serialized payloads
        logger_name: Target logger (default `postdesk.audit`)
    """

    def __init__(self, max_chars: int = 1000, logger_name: str = "postdesk.audit"):
        self.max_chars = max_chars
        self.logger = logging.getLogger(logger_name)

    # ── Redaction & truncation ────────────────────────────────────────────

    @staticmethod
    def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
        return {
            name: REDACTED if is_sensitive_header(name) else value
            for name, value in headers.items()
        }

    def redact_body(self, body: Any) -> Any:
        """Return a redacted copy; the input is never modified."""
        if isinstance(body, Mapping):
            return {
                key: REDACTED if is_sensitive_key(key) else self.redact_body(value)
                for key, value in body.items()
            }
        if isinstance(body, (list, tuple)):
            return [self.redact_body(item) for item in body]
        return body

    def truncate_payload(self, payload: Any) -> Any:
        serialized = payload if isinstance(payload, str) else _to_json(payload)
        if len(serialized) <= self.max_chars:
            return payload
        return {
            "message": TRUNCATION_NOTICE,
            "preview": serialized[: self.max_chars] + "...",
        }

    # ── Phase records ─────────────────────────────────────────────────────

    def log_request(
        self,
        request_id: str,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        client_request_id: Optional[str] = None,
    ) -> None:
        try:
            safe_headers = self.redact_headers(headers or {})
            safe_body = self.truncate_payload(self.redact_body(body)) if body is not None else None
            self.logger.info(
                "[%s] --> %s %s body=%s",
                request_id, method, path, _to_json(safe_body),
                extra={
                    "request_id": request_id,
                    "client_request_id": client_request_id,
                    "phase": "request",
                    "method": method,
                    "path": path,
                    "headers": safe_headers,
                    "body": safe_body,
                },
            )
        except Exception:
            logger.debug("Dropped audit request record", exc_info=True)

    def log_response(
        self,
        request_id: str,
        method: str,
        path: str,
        status: int,
        duration_ms: float,
        body: Any = None,
    ) -> None:
        try:
            safe_body = self.truncate_payload(self.redact_body(body)) if body is not None else None
            self.logger.info(
                "[%s] <-- %s %s %d %.1fms",
                request_id, method, path, status, duration_ms,
                extra={
                    "request_id": request_id,
                    "phase": "response",
                    "method": method,
                    "path": path,
                    "status": status,
                    "duration_ms": round(duration_ms, 2),
                    "body": safe_body,
                },
            )
        except Exception:
            logger.debug("Dropped audit response record", exc_info=True)

    def log_error(
        self,
        request_id: str,
        method: str,
        path: str,
        status: int,
        duration_ms: float,
        message: str = "",
    ) -> None:
        try:
            level = logging.ERROR if status >= 500 else logging.WARNING
            self.logger.log(
                level,
                "[%s] <-- %s %s %d %.1fms - %s",
                request_id, method, path, status, duration_ms, message,
                extra={
                    "request_id": request_id,
                    "phase": "error",
                    "method": method,
                    "path": path,
                    "status": status,
                    "duration_ms": round(duration_ms, 2),
                    "error_message": message,
                },
            )
        except Exception:
            logger.debug("Dropped audit error record", exc_info=True)
