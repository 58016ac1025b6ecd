"""
Rule-driven validation for form values.

Checks run in a fixed order and stop at the first failure:
required, pattern, then numeric range for NUMBER fields.
"""

import math
import re
from typing import Any, Optional

import structlog

from .domain.entities import FieldConfig, SanitizationType, ValidationResult

logger = structlog.get_logger(__name__)

REQUIRED_MESSAGE = "This field is required"
INVALID_FORMAT_MESSAGE = "Invalid format"
INVALID_NUMBER_MESSAGE = "Must be a valid number"

# Longest numeric prefix, the way browsers parse number inputs
FLOAT_PREFIX = re.compile(r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float(value: Any) -> float:
    """
    Parse the leading number of a value, returning NaN when there is none.

    "12.5kg" parses as 12.5 and "abc" as NaN; "nan" and "inf" are not
    numbers here, only "Infinity" is.

    Args:
        value: Raw value

    Returns:
        Parsed float (possibly NaN)
    """
    if isinstance(value, bool):
        return float("nan")
    if isinstance(value, (int, float)):
        return float(value)
    match = FLOAT_PREFIX.match(str(value).strip())
    if not match:
        return float("nan")
    return float(match.group(0).replace("Infinity", "inf"))


def stringify(value: Any) -> str:
    """Render a form value as the string validation rules operate on."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _format_bound(bound: float) -> str:
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)


def _matches(pattern, value: str) -> Optional[bool]:
    """Search value for pattern; None when the pattern cannot be compiled."""
    try:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        return compiled.search(value) is not None
    except (re.error, TypeError, AttributeError) as e:
        logger.warning("Ignoring invalid validation pattern", error=str(e))
        return None


def validate_value(value: Any, config: Any = None) -> ValidationResult:
    """
    Validate a value against a field configuration.

    Args:
        value: Value to check (stringified for required/pattern checks)
        config: FieldConfig or mapping; missing or malformed configs accept everything

    Returns:
        ValidationResult with the first failing rule's message
    """
    field_config = FieldConfig.coerce(config)
    text = stringify(value)
    is_empty = not text.strip()

    if field_config.required and is_empty:
        return ValidationResult(is_valid=False, error=REQUIRED_MESSAGE)

    if field_config.pattern and not is_empty:
        if _matches(field_config.pattern, text) is False:
            return ValidationResult(is_valid=False, error=INVALID_FORMAT_MESSAGE)

    if field_config.type == SanitizationType.NUMBER and not is_empty:
        number = parse_float(value)
        if math.isnan(number):
            return ValidationResult(is_valid=False, error=INVALID_NUMBER_MESSAGE)
        if field_config.min is not None and number < field_config.min:
            return ValidationResult(
                is_valid=False,
                error=f"Must be at least {_format_bound(field_config.min)}",
            )
        if field_config.max is not None and number > field_config.max:
            return ValidationResult(
                is_valid=False,
                error=f"Must be at most {_format_bound(field_config.max)}",
            )

    return ValidationResult(is_valid=True)
