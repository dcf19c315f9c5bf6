"""
PostDesk Backend — Custom Exception Hierarchy
===============================================

What:  Typed failures raised by services, repositories and the access guard.
Why:   Domain code never builds HTTP responses; it raises a typed failure and
       the ErrorNormalizer (services/error_normalizer.py) is the single place
       that turns failures into the wire-level error envelope.
How:   Each class declares its HTTP status as a class attribute and carries a
       user-facing message plus an optional context dict for server logs.
Who:   Raised by services, repositories, query builder and access guard.
When:  During request processing, for expected (classified) failure modes.

Exception Hierarchy:
    PostDeskError (base, declares status_code)
    ├── ValidationFailure  → 400 Bad Request (field-level errors)
    ├── ForbiddenError     → 403 Forbidden
    ├── NotFoundError      → 404 Not Found
    └── ConflictError      → 409 Conflict (duplicate unique field)

    Anything that is not a PostDeskError (or a framework HTTP error) is an
    unclassified failure and is surfaced as 500.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence


class PostDeskError(Exception):
    """
    Base exception for all classified application failures.

    Attributes:
        status_code: HTTP status the failure maps to
        message:     User-facing error description (safe to return)
        context:     Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationFailure(PostDeskError):
    """
    Raised when client input fails one or more field-level rules.

    What:    Carries every violation, grouped per field, so the client can fix
             all of them in one round trip.
    HTTP:    400 Bad Request

    Example envelope fragment:
        "errors": [
            {"field": "email", "messages": ["email must be a valid email address"]},
            {"field": "password", "messages": ["password must be at least 8 characters"]}
        ]
    """

    status_code = 400

    def __init__(
        self,
        errors: Optional[Mapping[str, Sequence[str]]] = None,
        message: str = "Validation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.errors: Dict[str, List[str]] = {
            field: list(messages) for field, messages in (errors or {}).items()
        }

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailure":
        """Shortcut for the common single-violation case."""
        return cls(errors={field: [message]})


class ForbiddenError(PostDeskError):
    """
    Raised when the caller may not invoke a route or touch a resource.

    When:    Access guard denies the caller's role, no principal is present on
             a guarded route, or an ownership check fails.
    HTTP:    403 Forbidden
    """

    status_code = 403

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PostDeskError):
    """
    Raised when a requested resource does not exist.

    Why a custom exception:
        Repositories return None for missing records (not an exception).
        Services convert None → NotFoundError to keep HTTP concerns out of the
        persistence layer while still producing the correct status code.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PostDeskError):
    """
    Raised when a write would violate a uniqueness rule.

    What:    Names the conflicting field so the client can react
             ("email already registered") instead of seeing a raw store error.
    When:    Service pre-check finds a duplicate, or the store rejects the write
             with a unique-constraint violation (translated by the repository).
    HTTP:    409 Conflict
    """

    status_code = 409

    def __init__(
        self,
        resource: str = "Resource",
        field: str = "field",
        value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if value is not None:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} with this {field} already exists"
        ctx = context or {}
        ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.value = value
