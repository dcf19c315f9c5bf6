"""
PostDesk Backend — Phone Number Validation
============================================

What:  PhoneValidator interface plus the libphonenumber-backed implementation.
Why:   Phone validation is an opaque collaborator: services only ask
       "is this valid?", so tests can swap in a trivial fake.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

import phonenumbers

# Characters users type for readability; stripped before validation/storage
_FORMATTING_CHARS = re.compile(r"[\s\-()]")


def normalize_phone_number(value: str) -> str:
    """'+44 (20) 8366-1177' → '+442083661177'."""
    return _FORMATTING_CHARS.sub("", value or "")


class PhoneValidator(ABC):
    """Contract: is_valid(value) → bool, never raises for bad input."""

    @abstractmethod
    def is_valid(self, value: str) -> bool:
        ...


class LibPhoneNumberValidator(PhoneValidator):
    """
    Validates numbers with the `phonenumbers` port of Google's libphonenumber.

    Without a default region only international format (+<country code>...)
    is accepted, matching what the API documents.
    """

    def __init__(self, default_region: Optional[str] = None):
        self.default_region = default_region

    def is_valid(self, value: str) -> bool:
        if not value:
            return False
        try:
            parsed = phonenumbers.parse(value, self.default_region)
        except phonenumbers.NumberParseException:
            return False
        return phonenumbers.is_valid_number(parsed)
