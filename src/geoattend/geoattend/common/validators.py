from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_length(value: Optional[str], field_name: str, *, min_len: int = 0, max_len: int) -> str:
    text = (value or "").strip()
    if len(text) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    if len(text) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return text


def optional_text(value: Optional[str], field_name: str, *, max_len: int) -> Optional[str]:
    """Strip optional free text; empty becomes None."""
    text = (value or "").strip()
    if not text:
        return None
    return require_length(text, field_name, max_len=max_len)


def require_number(value: object, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_name} must be a finite number")
    return number
