"""
Domain entities for form sanitization and login attempt governance.

Core business objects describing how a form field is cleaned and checked,
the state of a form, and the per-account security record driving lockouts.
These entities are framework-agnostic and contain only business logic.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Pattern, Set, Union

import structlog

logger = structlog.get_logger(__name__)


class SanitizationType(str, Enum):
    """How a field value is cleaned before it is stored."""

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    HTML = "html"
    SEARCH = "search"
    NUMBER = "number"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "SanitizationType":
        """Coerce a raw value to a sanitization type, defaulting to TEXT."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.TEXT
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.TEXT


# Accepted spellings when a field config arrives as a plain mapping
_CONFIG_KEYS = {
    "type": "type",
    "maxLength": "max_length",
    "max_length": "max_length",
    "min": "min",
    "max": "max",
    "required": "required",
    "pattern": "pattern",
    "customSanitizer": "custom_sanitizer",
    "custom_sanitizer": "custom_sanitizer",
}


@dataclass(frozen=True)
class FieldConfig:
    """
    Per-field contract governing both sanitization and validation.

    Attributes:
        type: Sanitization type (None means TEXT when sanitizing)
        max_length: Hard cap applied after all other sanitization
        min: Lower bound for NUMBER fields
        max: Upper bound for NUMBER fields
        required: Reject empty values
        pattern: Regular expression the non-empty value must match
        custom_sanitizer: Extra transformation applied after the type rules
    """

    type: Optional[SanitizationType] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    required: bool = False
    pattern: Optional[Union[str, Pattern[str]]] = None
    custom_sanitizer: Optional[Callable[[str], str]] = None

    def __post_init__(self):
        if self.type is not None and not isinstance(self.type, SanitizationType):
            object.__setattr__(self, "type", SanitizationType.parse(self.type))
        if self.max_length is not None:
            object.__setattr__(self, "max_length", max(0, int(self.max_length)))
        for bound in ("min", "max"):
            value = getattr(self, bound)
            if value is not None:
                object.__setattr__(self, bound, float(value))

    @property
    def sanitization_type(self) -> SanitizationType:
        return self.type or SanitizationType.TEXT

    @classmethod
    def coerce(cls, config: Any) -> "FieldConfig":
        """
        Build a FieldConfig from None, an existing config, or a mapping.

        Unknown keys are ignored. A config that cannot be built degrades to
        an empty config (text sanitization, every value passes validation).

        Args:
            config: Raw configuration

        Returns:
            FieldConfig instance
        """
        if isinstance(config, cls):
            return config
        if not isinstance(config, Mapping):
            if config is not None:
                logger.warning(
                    "Ignoring malformed field config",
                    config_type=type(config).__name__,
                )
            return cls()

        kwargs = {
            _CONFIG_KEYS[key]: value
            for key, value in config.items()
            if key in _CONFIG_KEYS and value is not None
        }
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed field config", error=str(e))
            return cls()


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single value."""

    is_valid: bool
    error: Optional[str] = None


@dataclass
class FormState:
    """Snapshot of a form: values, per-field errors, touched fields and dirtiness."""

    values: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    touched_fields: Set[str] = field(default_factory=set)
    is_dirty: bool = False


@dataclass
class SecurityRecord:
    """
    Failed-login bookkeeping for one account.

    Timestamps are timezone-aware UTC datetimes.
    """

    failed_attempts: int = 0
    last_failed_attempt: Optional[datetime] = None
    account_locked_until: Optional[datetime] = None


@dataclass(frozen=True)
class LoginAttemptResult:
    """Decision returned by the login attempt governor."""

    allowed: bool
    remaining_attempts: Optional[int] = None
    lockout_until: Optional[datetime] = None
    lockout_minutes: Optional[int] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LockoutPolicy:
    """
    Thresholds driving the login attempt governor.

    Defaults match the production policy; tests inject smaller values.
    """

    max_failed_attempts: int = 5
    initial_lockout_minutes: int = 5
    max_lockout_minutes: int = 60
    attempt_window_minutes: int = 15
    warning_threshold: int = 2
    max_backoff_exponent: int = 4

    @classmethod
    def from_settings(cls, settings) -> "LockoutPolicy":
        """Build the policy from application settings."""
        return cls(
            max_failed_attempts=settings.MAX_FAILED_ATTEMPTS,
            initial_lockout_minutes=settings.INITIAL_LOCKOUT_MINUTES,
            max_lockout_minutes=settings.MAX_LOCKOUT_MINUTES,
            attempt_window_minutes=settings.ATTEMPT_WINDOW_MINUTES,
            warning_threshold=settings.LOCKOUT_WARNING_THRESHOLD,
        )
