"""
PostDesk Backend — User Request/Response Schemas
==================================================

What:  Request bodies, response shape and validation rule table for users.
How:   Pydantic checks the JSON shape (types); the rule table checks content
       (required, lengths, e-mail, phone) through validate_fields(), so every
       content violation is reported in one 400 envelope.

Design Decision:
    Request fields are Optional at the Pydantic level on purpose. A missing
    field is then reported by the `required` rule together with all other
    violations, instead of Pydantic stopping at the shape check.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from postdesk.schemas.auth import Role
from postdesk.schemas.common import CamelModel
from postdesk.services.phone import PhoneValidator
from postdesk.services.validation import (
    Rule,
    email_address,
    max_length,
    min_length,
    phone_number,
    required,
)


class UserCreate(CamelModel):
    """Body of POST /users."""

    first_name: Optional[str] = Field(default=None, examples=["John"])
    last_name: Optional[str] = Field(default=None, examples=["Doe"])
    email: Optional[str] = Field(default=None, examples=["john@mail.com"])
    phone_number: Optional[str] = Field(
        default=None,
        examples=["+442083661177"],
        description="Phone number in international format",
    )
    password: Optional[str] = Field(default=None, examples=["StrongP@ssw0rd"])


class UserUpdate(UserCreate):
    """Body of PATCH /users/{id}; only the fields sent are validated and applied."""


class UserResponse(CamelModel):
    """
    Public representation of a user.

    Why no password: the digest never leaves the service, not even hashed.
    """

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone_number: str
    role: Role
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def user_rules(phone_validator: PhoneValidator) -> Dict[str, List[Rule]]:
    """Rule table for UserCreate/UserUpdate, keyed by wire field name."""
    return {
        "firstName": [required(), max_length(100)],
        "lastName": [required(), max_length(100)],
        "email": [required(), email_address(), max_length(255)],
        "phoneNumber": [required(), phone_number(phone_validator)],
        "password": [required(), min_length(8), max_length(50)],
    }
