"""
Type-driven sanitization for form input.

Every form in the dashboard funnels user input through ``sanitize_value``
before storing it. Each sanitization type applies a fixed cleaning rule and a
default length cap; a field's ``custom_sanitizer`` and ``max_length`` are
applied afterwards. Sanitization never raises.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Union

import bleach
import structlog

from .domain.entities import FieldConfig, SanitizationType

logger = structlog.get_logger(__name__)

# Default length caps per type
MAX_TEXT_LENGTH = 5000
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20
MAX_SEARCH_LENGTH = 100

# Markup allow-list for rich text fields
ALLOWED_TAGS = frozenset(
    {"a", "b", "br", "em", "i", "li", "ol", "p", "strong", "u", "ul"}
)
ALLOWED_ATTRIBUTES = ["href", "title", "target", "rel"]
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

ANGLE_BRACKETS = re.compile(r"[<>]")
PHONE_DISALLOWED = re.compile(r"[^0-9+\-() ]")
SEARCH_DISALLOWED = re.compile(r"['\";]")
NUMBER_DISALLOWED = re.compile(r"[^0-9.\-]")
SCRIPT_BLOCKS = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)

# Types whose rules trim surrounding whitespace
_TRIMMING_TYPES = frozenset(
    {
        SanitizationType.TEXT,
        SanitizationType.EMAIL,
        SanitizationType.PHONE,
        SanitizationType.SEARCH,
    }
)


class MarkupSanitizer(ABC):
    """Allow-list sanitizer for rich text markup."""

    @abstractmethod
    def sanitize(
        self,
        markup: str,
        allowed_tags: Iterable[str],
        allowed_attributes: Iterable[str],
    ) -> str:
        """
        Strip every tag and attribute not in the allow-lists.

        Args:
            markup: Untrusted markup
            allowed_tags: Tag names to keep
            allowed_attributes: Attribute names to keep on any allowed tag

        Returns:
            Safe markup
        """


class BleachMarkupSanitizer(MarkupSanitizer):
    """Markup sanitizer backed by bleach."""

    def __init__(self, protocols: Iterable[str] = ALLOWED_PROTOCOLS):
        self.protocols = frozenset(protocols)

    def sanitize(
        self,
        markup: str,
        allowed_tags: Iterable[str],
        allowed_attributes: Iterable[str],
    ) -> str:
        # bleach keeps the text of stripped tags, so drop script bodies first
        markup = SCRIPT_BLOCKS.sub("", markup)
        return bleach.clean(
            markup,
            tags=frozenset(allowed_tags),
            attributes=list(allowed_attributes),
            protocols=self.protocols,
            strip=True,
            strip_comments=True,
        )


default_markup_sanitizer = BleachMarkupSanitizer()


def _clip(value: str, limit: Optional[int], trimmed: bool = True) -> str:
    """Truncate to limit without leaving trailing whitespace on trimmed types."""
    if limit is None or len(value) <= limit:
        return value
    value = value[:limit]
    return value.rstrip() if trimmed else value


def sanitize_text(value: str) -> str:
    return _clip(ANGLE_BRACKETS.sub("", value).strip(), MAX_TEXT_LENGTH)


def sanitize_email(value: str) -> str:
    return _clip(value.strip().lower(), MAX_EMAIL_LENGTH)


def sanitize_phone(value: str) -> str:
    return _clip(PHONE_DISALLOWED.sub("", value).strip(), MAX_PHONE_LENGTH)


def sanitize_search(value: str) -> str:
    """Remove quote and statement-terminator characters from search input."""
    return _clip(SEARCH_DISALLOWED.sub("", value).strip(), MAX_SEARCH_LENGTH)


def sanitize_number(value: str) -> str:
    return NUMBER_DISALLOWED.sub("", value)


def sanitize_html(
    value: str, markup_sanitizer: Optional[MarkupSanitizer] = None
) -> str:
    """
    Clean rich text through the markup allow-list.

    Falls back to plain text rules if the markup sanitizer fails.
    """
    sanitizer = markup_sanitizer or default_markup_sanitizer
    try:
        return sanitizer.sanitize(value, ALLOWED_TAGS, ALLOWED_ATTRIBUTES)
    except Exception as e:
        logger.error(
            "Markup sanitizer failed, falling back to text rules",
            error=str(e),
            exc_info=True,
        )
        return sanitize_text(value)


_TYPE_SANITIZERS = {
    SanitizationType.TEXT: sanitize_text,
    SanitizationType.EMAIL: sanitize_email,
    SanitizationType.PHONE: sanitize_phone,
    SanitizationType.SEARCH: sanitize_search,
    SanitizationType.NUMBER: sanitize_number,
}


def sanitize_value(
    raw: Any,
    sanitization_type: Union[SanitizationType, str, None] = SanitizationType.TEXT,
    config: Any = None,
    markup_sanitizer: Optional[MarkupSanitizer] = None,
) -> str:
    """
    Sanitize a raw form value.

    Applies the type rule, then ``config.custom_sanitizer``, then clamps to
    ``config.max_length``. Unknown types degrade to text rules.

    Args:
        raw: Raw input (non-strings are stringified, None becomes "")
        sanitization_type: How to clean the value
        config: FieldConfig or mapping for the field
        markup_sanitizer: Override for HTML cleaning

    Returns:
        Sanitized string
    """
    field_config = FieldConfig.coerce(config)
    kind = SanitizationType.parse(sanitization_type or SanitizationType.TEXT)
    value = "" if raw is None else raw if isinstance(raw, str) else str(raw)

    if kind == SanitizationType.HTML:
        value = sanitize_html(value, markup_sanitizer)
    elif kind != SanitizationType.NONE:
        value = _TYPE_SANITIZERS[kind](value)

    if field_config.custom_sanitizer is not None:
        try:
            value = str(field_config.custom_sanitizer(value))
        except Exception as e:
            logger.warning(
                "Custom sanitizer failed, keeping type-sanitized value",
                sanitization_type=kind.value,
                error=str(e),
            )

    return _clip(value, field_config.max_length, trimmed=kind in _TRIMMING_TYPES)
