"""Input validation for devmem.

Provides the ``ValidationMixin`` used by :class:`~devmem.core.MemoryEngine`
and standalone helpers shared with the MCP and CLI layers:

- ``sanitize_string``: string validation + control-char stripping
- ``sanitize_number``: numeric validation + NaN/Infinity rejection
"""

import logging
import math
import re
from typing import Any, Optional

from devmem.types import VALID_PRIORITIES, ValidationError

logger = logging.getLogger(__name__)


def sanitize_string(
    value: Any, field_name: str, max_length: int = 1000, required: bool = True
) -> str:
    """Sanitize and validate string inputs.

    Args:
        value: The value to sanitize.
        field_name: Name of the field for error messages.
        max_length: Maximum allowed string length.
        required: If True, empty strings are rejected.

    Returns:
        Sanitized string.

    Raises:
        ValidationError: If validation fails.
    """
    if value is None and not required:
        return ""

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string, got {type(value).__name__}")

    if required and not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")

    if len(value) > max_length:
        raise ValidationError(
            f"{field_name} too long (max {max_length} characters, got {len(value)})"
        )

    # Remove null bytes and control characters except newlines and tabs
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)


def sanitize_number(
    value: Any,
    field_name: str,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    default: Optional[float] = None,
) -> float:
    """Validate numeric inputs, rejecting NaN and Infinity.

    Raises:
        ValidationError: If validation fails.
    """
    if value is None:
        if default is not None:
            return default
        raise ValidationError(f"{field_name} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got bool")

    if not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number, got {type(value).__name__}")

    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise ValidationError(f"{field_name} must be a finite number, got {value}")

    if min_val is not None and value < min_val:
        raise ValidationError(f"{field_name} must be >= {min_val}, got {value}")

    if max_val is not None and value > max_val:
        raise ValidationError(f"{field_name} must be <= {max_val}, got {value}")

    return float(value)


class ValidationMixin:
    """Input validation operations for MemoryEngine."""

    def _validate_string_input(
        self, value: Any, field_name: str, max_length: int = 1000, required: bool = True
    ) -> str:
        return sanitize_string(value, field_name, max_length, required=required)

    def _validate_optional(self, value: Any, field_name: str, max_length: int = 1000):
        """Sanitize an optional string, mapping empty to None."""
        if value is None:
            return None
        return sanitize_string(value, field_name, max_length, required=False) or None

    def _validate_priority(self, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int) or value not in VALID_PRIORITIES:
            raise ValidationError(f"priority must be 0, 1, or 2, got {value!r}")
        return value

    def _validate_id(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"id must be a positive integer, got {value!r}")
        return value

    def _validate_limit(self, value: Any, default: int, max_val: int) -> int:
        return int(sanitize_number(value, "limit", 1, max_val, default))
