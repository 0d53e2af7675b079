"""Argument coercion for tool calls coming from the model."""

from typing import Any

from linrelay.errors import ValidationError


def optional_int(args: dict[str, Any], key: str) -> int | None:
    """Read an integer argument, accepting numeric strings and integral floats."""
    value = args.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Error: {key} must be a number")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Error: {key} must be a number") from exc


def optional_str(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None:
        return None
    return str(value)


def optional_str_list(args: dict[str, Any], *keys: str) -> list[str] | None:
    """First non-empty list among ``keys``; aliases cover older argument names."""
    for key in keys:
        value = args.get(key)
        if value is None:
            continue
        if not isinstance(value, list):
            raise ValidationError(f"Error: {key} must be a list of IDs")
        return [str(v) for v in value]
    return None
