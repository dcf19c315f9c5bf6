"""
PostDesk Backend — Caller Identity Schemas
============================================

What:  The Role enum and the Principal attached to each request.
Who:   Produced by the authentication collaborator (services/authentication.py),
       consumed by the access guard and by ownership checks in PostService.
When:  Principal lifetime = one request; it is never persisted.
"""

import enum

from pydantic import BaseModel


# Width of the stored owner_id column; longer gateway ids are not accepted
PRINCIPAL_ID_MAX_LENGTH = 64


class Role(str, enum.Enum):
    """Caller roles, in increasing order of privilege."""

    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class Principal(BaseModel):
    """Authenticated caller identity, attached before authorization runs."""

    id: str
    role: Role

    model_config = {"frozen": True}
