"""Small coercion helpers for JSON request payloads."""
from __future__ import annotations

import math
from typing import Iterable, Mapping

from .errors import ValidationError


def text(
    payload: Mapping[str, object],
    key: str,
    *,
    label: str | None = None,
    required: bool = False,
    max_length: int | None = None,
) -> str | None:
    label = label or key
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"Please provide {label}")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} cannot be more than {max_length} characters")
    return value


def choice(value: object, options: Iterable[str], label: str) -> str:
    options = tuple(options)
    if value not in options:
        raise ValidationError(f"{label} must be one of: {', '.join(options)}")
    return str(value)


def number(value: object, label: str, *, minimum: float | None = None) -> float:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number")
    try:
        value = float(value if isinstance(value, (int, float)) else str(value))
    except (ValueError, OverflowError):
        raise ValidationError(f"{label} must be a number") from None
    # float() accepts "inf" and "nan".
    if not math.isfinite(value):
        raise ValidationError(f"{label} must be a finite number")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{label} must be at least {minimum:g}")
    return float(value)


def integer(value: object, label: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value)
        else:
            raise ValidationError(f"{label} must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{label} must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{label} must be at most {maximum}")
    return value


def boolean(value: object, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ValidationError(f"{label} must be true or false")


def string_list(value: object, label: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"{label} must be a list of strings")
    return list(value)
