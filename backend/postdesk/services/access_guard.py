"""
PostDesk Backend — Access Guard
=================================

What:  Decides whether the caller may invoke a route, from an explicit
       route → required-roles table.
Why:   Authorization rules are data, readable in one place, instead of being
       scattered across handlers.
How:   Pure per-request decision:

    route undeclared                      → allow (routes are public by default)
    declared, no principal                → Forbidden
    declared, principal.role not in set   → Forbidden
    declared, principal.role in set       → allow

Who:   `require_capability(route_key)` is attached to guarded routes as a
       FastAPI dependency; the principal was put on request.state earlier by
       PrincipalMiddleware.
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Tuple

from fastapi import Request

from postdesk.exceptions import ForbiddenError
from postdesk.schemas.auth import Principal, Role

logger = logging.getLogger(__name__)

RouteCapability = Tuple[Role, ...]

_STAFF: RouteCapability = (Role.ADMIN, Role.MANAGER)
_ANY_ACCOUNT: RouteCapability = (Role.USER, Role.MANAGER, Role.ADMIN)

DEFAULT_ROUTE_CAPABILITIES: Dict[str, RouteCapability] = {
    "users.update": _STAFF,
    "users.delete": _STAFF,
    "posts.create": _ANY_ACCOUNT,
    "posts.update": _ANY_ACCOUNT,
    "posts.delete": _ANY_ACCOUNT,
}

NO_PRINCIPAL_MESSAGE = "No authenticated principal found in request"
DENIED_MESSAGE = "You are not allowed to perform this action"


class AccessGuard:
    """
    Args:
        capabilities: route key → ordered roles allowed to call it
    """

    def __init__(self, capabilities: Optional[Mapping[str, RouteCapability]] = None):
        source = DEFAULT_ROUTE_CAPABILITIES if capabilities is None else capabilities
        self.capabilities: Dict[str, RouteCapability] = {
            key: tuple(roles) for key, roles in source.items()
        }

    def required_roles(self, route_key: str) -> Optional[RouteCapability]:
        """None means the route declares no requirement."""
        return self.capabilities.get(route_key)

    def evaluate(self, route_key: str, principal: Optional[Principal]) -> bool:
        required = self.required_roles(route_key)
        if required is None:
            return True
        if principal is None:
            return False
        return principal.role in required

    def authorize(self, route_key: str, principal: Optional[Principal]) -> None:
        """
        Raises:
            ForbiddenError: requirement declared and not met
        """
        if self.evaluate(route_key, principal):
            return

        if principal is None:
            logger.info("Denied %s: no principal", route_key)
            raise ForbiddenError(NO_PRINCIPAL_MESSAGE, context={"route": route_key})

        logger.info("Denied %s for role %s", route_key, principal.role.value)
        raise ForbiddenError(
            DENIED_MESSAGE,
            context={"route": route_key, "role": principal.role.value},
        )


def require_capability(route_key: str) -> Callable[[Request], Optional[Principal]]:
    """
    FastAPI dependency factory.

    Usage:
        @router.delete("/{user_id}")
        async def remove(principal=Depends(require_capability("users.delete"))): ...

    Returns the (possibly absent) principal so handlers can use it for
    ownership checks.
    """

    def dependency(request: Request) -> Optional[Principal]:
        principal = getattr(request.state, "principal", None)
        guard: AccessGuard = request.app.state.access_guard
        guard.authorize(route_key, principal)
        return principal

    return dependency
