"""Shared sanitization utilities for the MCP layer.

These functions provide input validation and sanitization
for all MCP tools to ensure consistent handling.
"""

from typing import Any, List, Optional

from devmem.core.validation import sanitize_number, sanitize_string  # noqa: F401
from devmem.types import ValidationError


def validate_enum(
    value: Any,
    field_name: str,
    valid_values: List[str],
    default: Optional[str] = None,
    required: bool = False,
) -> str:
    """Validate enum values.

    Raises:
        ValidationError: If validation fails
    """
    if value is None:
        if required or default is None:
            raise ValidationError(f"{field_name} is required")
        return default

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    if value not in valid_values:
        raise ValidationError(f"{field_name} must be one of {valid_values}, got '{value}'")

    return value


def validate_int(
    value: Any,
    field_name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
    default: Optional[int] = None,
) -> int:
    """Validate an integer argument (whole-valued floats are accepted)."""
    number = sanitize_number(value, field_name, min_val, max_val, default)
    if number != int(number):
        raise ValidationError(f"{field_name} must be an integer, got {value}")
    return int(number)


def validate_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean, got {type(value).__name__}")
    return value


def optional_string(arguments: dict, field_name: str, max_length: int = 1000) -> Optional[str]:
    """Sanitize an optional string argument, mapping empty to None."""
    return sanitize_string(arguments.get(field_name), field_name, max_length, required=False) or None
