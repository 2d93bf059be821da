"""Field-level validation of shipping details.

Every field is checked independently so the UI can list all problems at
once. Within a field the first failing rule wins (required, then length,
then shape). Pure: no I/O, no side effects.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from checkout.shipping.details import SHIPPING_FIELDS

# Letters including Latin-1 accented ones, spaces, apostrophes and hyphens
_NAME_RE = re.compile(r"^[a-zA-ZÀ-ÿ\s'-]+$")
_CITY_RE = re.compile(r"^[a-zA-ZÀ-ÿ\s.'-]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_STATE_RE = re.compile(r"^[a-zA-Z]{2}$")
_ZIP_RE = re.compile(r"^[0-9]{5}(-[0-9]{4})?$")
_PHONE_RE = re.compile(r"^\+?[0-9\s\-()]{7,20}$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def _value(details, name: str) -> str:
    raw = details.get(name) if isinstance(details, Mapping) else getattr(details, name, None)
    return (raw or "").strip()


def _check_name(value: str, label: str) -> str | None:
    if not value:
        return f"{label} is required"
    if len(value) < 2:
        return f"{label} must be at least 2 characters"
    if not _NAME_RE.match(value):
        return f"{label} should only contain letters"
    return None


def _check_email(value: str) -> str | None:
    if not value:
        return "Email is required"
    if not _EMAIL_RE.match(value):
        return "Invalid email address"
    return None


def _check_address(value: str) -> str | None:
    if not value:
        return "Address is required"
    if len(value) < 5:
        return "Please enter a complete address"
    return None


def _check_city(value: str) -> str | None:
    if not value:
        return "City is required"
    if not _CITY_RE.match(value):
        return "City should only contain letters"
    return None


def _check_state(value: str) -> str | None:
    if not value:
        return "State is required"
    if len(value) != 2:
        return "Enter a valid 2-letter state abbreviation (e.g. NY)"
    if not _STATE_RE.match(value):
        return "State should only contain letters"
    return None


def _check_zip_code(value: str) -> str | None:
    if not value:
        return "ZIP code is required"
    if not _ZIP_RE.match(value):
        return "Enter a valid US ZIP code (e.g. 75068 or 75068-1234)"
    return None


def _check_phone(value: str) -> str | None:
    if not value:
        return "Phone number is required"
    if not _PHONE_RE.match(value):
        return "Enter a valid phone number (7-20 digits)"
    return None


_RULES = {
    "first_name": lambda v: _check_name(v, "First name"),
    "last_name": lambda v: _check_name(v, "Last name"),
    "email": _check_email,
    "address": _check_address,
    "city": _check_city,
    "state": _check_state,
    "zip_code": _check_zip_code,
    "phone": _check_phone,
}


def validate(details) -> ValidationResult:
    """Validate shipping details given as a ``ShippingDetails`` or a plain mapping."""
    errors = {}
    for name in SHIPPING_FIELDS:
        message = _RULES[name](_value(details, name))
        if message:
            errors[name] = message
    return ValidationResult(valid=not errors, errors=errors)
