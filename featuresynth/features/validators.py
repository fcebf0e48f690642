"""Field validators shared by the form-like features. Each raises ValidationError."""

import re

from featuresynth.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")


def require(field: str, value, label: str | None = None) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(field, f"{label or field.replace('_', ' ').capitalize()} is required")
    return text


def email(field: str, value) -> str:
    text = require(field, value, "Email")
    if not EMAIL_PATTERN.match(text):
        raise ValidationError(field, "Enter a valid email address")
    return text.lower()


def phone(field: str, value) -> str:
    text = require(field, value, "Phone number")
    compact = re.sub(r"[\s\-()]", "", text)
    if not PHONE_PATTERN.match(compact):
        raise ValidationError(field, "Enter a valid phone number")
    return compact


def min_length(field: str, value, length: int, label: str | None = None) -> str:
    text = require(field, value, label)
    if len(text) < length:
        name = label or field.replace("_", " ").capitalize()
        raise ValidationError(field, f"{name} must be at least {length} characters")
    return text


def one_of(field: str, value, choices) -> str:
    text = require(field, value)
    if text not in choices:
        raise ValidationError(field, f"Choose one of: {', '.join(choices)}")
    return text


def int_in_range(field: str, value, minimum: int, maximum: int) -> int:
    text = require(field, value).replace(",", "")
    try:
        number = int(text)
    except ValueError:
        raise ValidationError(field, "Enter a whole number")
    if not minimum <= number <= maximum:
        raise ValidationError(field, f"Must be between {minimum:,} and {maximum:,}")
    return number
