"""
PostDesk Backend — Declarative Field Validation
=================================================

What:  Small rule factories plus validate_fields(), which runs a table of
       `field → [rules]` against a payload and raises one ValidationFailure
       listing every violation.
Why:   Rule tables sit next to the DTO they describe (schemas/user.py,
       schemas/post.py) and are plain data, so they are easy to read, test and
       reuse across create/update without framework metadata.
How:   A Rule wraps a check (field, value) → error message or None. Checks are
       skipped for absent values unless the rule applies to absent values
       (only `required` does).

Example:
    USER_RULES = {
        "email": [required(), email_address()],
        "password": [required(), min_length(8), max_length(50)],
    }
    validate_fields({"email": "nope"}, USER_RULES)
    → ValidationFailure(errors={"email": ["email must be a valid email address"],
                                "password": ["password should not be empty"]})
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from email_validator import EmailNotValidError, validate_email

from postdesk.exceptions import ValidationFailure
from postdesk.services.phone import PhoneValidator


@dataclass(frozen=True)
class Rule:
    check: Callable[[str, Any], Optional[str]]
    applies_to_absent: bool = False


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def required() -> Rule:
    def check(field: str, value: Any) -> Optional[str]:
        if _is_blank(value):
            return f"{field} should not be empty"
        return None

    return Rule(check, applies_to_absent=True)


def min_length(n: int) -> Rule:
    def check(field: str, value: Any) -> Optional[str]:
        if len(str(value)) < n:
            return f"{field} must be at least {n} characters"
        return None

    return Rule(check)


def max_length(n: int) -> Rule:
    def check(field: str, value: Any) -> Optional[str]:
        if len(str(value)) > n:
            return f"{field} must be at most {n} characters"
        return None

    return Rule(check)


def matches(pattern: str, message: str) -> Rule:
    compiled = re.compile(pattern)

    def check(field: str, value: Any) -> Optional[str]:
        if not compiled.fullmatch(str(value)):
            return message
        return None

    return Rule(check)


def email_address() -> Rule:
    def check(field: str, value: Any) -> Optional[str]:
        try:
            validate_email(str(value), check_deliverability=False)
        except EmailNotValidError:
            return f"{field} must be a valid email address"
        return None

    return Rule(check)


def phone_number(validator: PhoneValidator) -> Rule:
    def check(field: str, value: Any) -> Optional[str]:
        if not validator.is_valid(str(value)):
            return "Please provide a valid phone number in international format"
        return None

    return Rule(check)


def validate_fields(
    payload: Mapping[str, Any],
    rules: Mapping[str, Sequence[Rule]],
    *,
    partial: bool = False,
) -> None:
    """
    Run every rule for every field; raise once with all violations.

    Args:
        payload: Field values keyed by their wire (camelCase) names
        rules:   Rule table for the DTO
        partial: PATCH semantics; fields missing from the payload are skipped
                 entirely, including their `required` rule

    Raises:
        ValidationFailure: at least one rule failed
    """
    errors: Dict[str, List[str]] = {}

    for field, field_rules in rules.items():
        if partial and field not in payload:
            continue
        value = payload.get(field)
        absent = _is_blank(value)

        for rule in field_rules:
            if absent and not rule.applies_to_absent:
                continue
            message = rule.check(field, value)
            if message:
                errors.setdefault(field, []).append(message)

    if errors:
        raise ValidationFailure(errors=errors)
