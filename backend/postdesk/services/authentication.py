"""
PostDesk Backend — Authentication Collaborator
================================================

What:  Resolves the caller's Principal from an incoming request.
Why:   Credential checking happens upstream (API gateway / auth proxy); this
       service only trusts the identity headers it forwards. The Access Guard
       never sees headers, only the resulting Principal.
"""

import logging
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from postdesk.schemas.auth import PRINCIPAL_ID_MAX_LENGTH, Principal, Role

logger = logging.getLogger(__name__)


class Authenticator(ABC):
    @abstractmethod
    def authenticate(self, headers: Mapping[str, str]) -> Optional[Principal]:
        """Return the caller's principal, or None when the request is anonymous."""


class GatewayHeaderAuthenticator(Authenticator):
    """
    Reads `X-User-Id` / `X-User-Role` (names configurable).

    A missing or over-long id, or a role outside USER/MANAGER/ADMIN, means
    "no principal".
    """

    def __init__(self, id_header: str = "X-User-Id", role_header: str = "X-User-Role"):
        self.id_header = id_header.lower()
        self.role_header = role_header.lower()

    def authenticate(self, headers: Mapping[str, str]) -> Optional[Principal]:
        lowered = {name.lower(): value for name, value in headers.items()}
        principal_id = (lowered.get(self.id_header) or "").strip()
        raw_role = (lowered.get(self.role_header) or "").strip().upper()

        if not principal_id:
            return None
        if len(principal_id) > PRINCIPAL_ID_MAX_LENGTH:
            logger.info(
                "Ignoring identity headers: id longer than %d characters",
                PRINCIPAL_ID_MAX_LENGTH,
            )
            return None

        try:
            role = Role(raw_role)
        except ValueError:
            logger.info("Ignoring identity headers with unknown role '%s'", raw_role)
            return None

        return Principal(id=principal_id, role=role)
