"""Field rules shared by the request models.

Each rule takes the raw value and returns the normalized one, or raises
``ValueError`` with the message reported for that field. Request models wire
the rules to their fields with ``field_validator``; pydantic runs them in
declaration order and collects every failure into one error list.
"""

import re

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72
TITLE_MAX_LENGTH = 200

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def strip_text(value):
    if isinstance(value, str):
        return value.strip()
    return value


def clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError('Name is required')
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValueError(f'Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters')
    return value


def clean_email(value: str) -> str:
    return value.strip().lower()


def check_password_strength(value: str) -> str:
    if not value:
        raise ValueError('Password is required')
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f'Password must be at least {PASSWORD_MIN_LENGTH} characters')
    if len(value.encode('utf-8')) > PASSWORD_MAX_BYTES:
        raise ValueError(f'Password cannot exceed {PASSWORD_MAX_BYTES} bytes')
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            'Password must contain at least one uppercase letter, one lowercase letter and one number'
        )
    return value


def require_password(value: str) -> str:
    if not value:
        raise ValueError('Password is required')
    return value


def clean_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError('Title is required')
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f'Title cannot exceed {TITLE_MAX_LENGTH} characters')
    return value


def clean_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def clean_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None

    tags: list[str] = []
    for tag in value:
        tag = tag.strip()
        if not tag:
            raise ValueError('Tags cannot be empty')
        tags.append(tag)
    return tags

