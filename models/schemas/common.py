import re

from marshmallow import ValidationError

PASSWORD_MIN_LENGTH = 8
_PASSWORD_CLASSES = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


def strip_string(value):
    return value.strip() if isinstance(value, str) else value


def validate_password(value: str) -> None:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    if not _PASSWORD_CLASSES.match(value):
        raise ValidationError("Password must contain at least one lowercase letter, one uppercase letter, and one number.")


def validate_name(value: str) -> None:
    if not value or len(value) < 2:
        raise ValidationError("Name must be at least 2 characters.")
    if len(value) > 100:
        raise ValidationError("Name cannot exceed 100 characters.")
