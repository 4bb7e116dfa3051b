"""Shared config validation helpers."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


def as_mapping(value: Any, context: str) -> dict[str, Any]:
    """Require mapping value."""
    if not isinstance(value, dict):
        raise ValueError(f"{context} must be a mapping.")
    return value


def opt_mapping(value: Any, context: str) -> dict[str, Any]:
    """Return mapping or empty mapping for None."""
    if value is None:
        return {}
    return as_mapping(value, context)


def required(mapping: Mapping[str, Any], key: str, context: str) -> Any:
    """Require mapping key existence."""
    if not isinstance(mapping, Mapping):
        raise ValueError(f"{context} must be a mapping.")
    if key not in mapping:
        raise ValueError(f"Missing required key '{key}' in {context}.")
    return mapping[key]


def to_float(value: Any, key: str, context: str) -> float:
    """Convert value to float with contextual error message."""
    if isinstance(value, bool):
        raise ValueError(f"{context}.{key} must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}.{key} must be a number, got {value!r}.") from exc


def to_int(value: Any, key: str, context: str) -> int:
    """Convert value to int with contextual error message."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"{context}.{key} must be an integer, got {value!r}.")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}.{key} must be an integer, got {value!r}.") from exc


def to_bool(value: Any, key: str, context: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{context}.{key} must be true or false, got {value!r}.")
    return value


def to_str(value: Any, key: str, context: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{context}.{key} must be a non-empty string, got {value!r}.")
    return value


def to_str_list(value: Any, key: str, context: str, *, allow_empty: bool = False) -> list[str]:
    """Require a list of non-empty strings."""
    if not isinstance(value, list) or (not value and not allow_empty):
        raise ValueError(f"{context}.{key} must be a non-empty list.")
    return [to_str(item, f"{key}[{idx}]", context) for idx, item in enumerate(value)]


def to_int_list(value: Any, key: str, context: str) -> list[int]:
    if not isinstance(value, list):
        raise ValueError(f"{context}.{key} must be a list.")
    return [to_int(item, f"{key}[{idx}]", context) for idx, item in enumerate(value)]


def ensure_choice(name: str, value: str, allowed: Sequence[str]) -> str:
    """Validate str choice and return normalized value."""
    val = str(value).lower()
    if val not in allowed:
        joined = ", ".join(allowed)
        raise ValueError(f"{name} must be one of: {joined}. Got '{val}'.")
    return val


def ensure_nonnegative(name: str, value: float, *, allow_zero: bool = True) -> float:
    """Validate scalar non-negativity for already-numeric values."""
    x = float(value)
    if allow_zero:
        if x < 0.0:
            raise ValueError(f"{name} must be >= 0.")
    elif x <= 0.0:
        raise ValueError(f"{name} must be > 0.")
    return x


def ensure_fraction(name: str, value: float) -> float:
    x = float(value)
    if not 0.0 <= x <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {x}.")
    return x
