from typing import Optional

from laneboard.core.exceptions import ValidationError


def clean_name(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace and reject names that end up empty"""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name can't be blank")
    return value


def require_name(value: Optional[str]) -> str:
    """Service-level variant of clean_name: a missing name is blank too"""
    try:
        cleaned = clean_name(value)
    except ValueError as e:
        raise ValidationError(str(e))
    if cleaned is None:
        raise ValidationError("Name can't be blank")
    return cleaned
