"""
Form state controller composing sanitization and validation.

Tracks values, per-field errors, touched fields and dirtiness for a single
form. UI adapters call ``handle_change``/``handle_blur`` with event-like
objects; everything else is imperative.
"""

import copy
import inspect
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

import structlog

from .domain.entities import FieldConfig, FormState, SanitizationType
from .sanitization import MarkupSanitizer, sanitize_value
from .validation import parse_float, validate_value

logger = structlog.get_logger(__name__)

CHECKBOX_INPUT_TYPES = frozenset({"checkbox", "switch"})
NUMERIC_INPUT_TYPES = frozenset({"number", "range"})

SubmitCallback = Callable[[Dict[str, Any]], Optional[Awaitable[Any]]]


def _read(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _event_target(event: Any) -> Any:
    """Accept both bare ``{name, value, ...}`` shapes and DOM-style ``{target: ...}``."""
    target = _read(event, "target")
    return target if target is not None else event


class FormStateController:
    """
    Stateful form container.

    String values are sanitized on every write path according to the
    field's configured type. Errors are only surfaced through
    ``get_field_error`` once a field has been touched.

    Attributes:
        values: Current field values
        errors: Field error messages from the last validation of each field
        touched_fields: Fields that lost focus or were force-touched on submit
        is_dirty: Whether any value changed since initialization or reset
    """

    def __init__(
        self,
        initial_values: Mapping[str, Any],
        field_configs: Optional[Mapping[str, Any]] = None,
        validate_on_change: bool = True,
        validate_on_blur: bool = True,
        markup_sanitizer: Optional[MarkupSanitizer] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            initial_values: Field values to start from and reset to
            field_configs: FieldConfig (or mapping) per field name
            validate_on_change: Validate a field each time its value is set
            validate_on_blur: Validate a field when it loses focus
            markup_sanitizer: Override for HTML fields
        """
        self._initial_values: Dict[str, Any] = copy.deepcopy(dict(initial_values))
        self.field_configs: Dict[str, FieldConfig] = {
            name: FieldConfig.coerce(config)
            for name, config in (field_configs or {}).items()
        }
        self.validate_on_change = validate_on_change
        self.validate_on_blur = validate_on_blur
        self.markup_sanitizer = markup_sanitizer

        self.values: Dict[str, Any] = copy.deepcopy(self._initial_values)
        self.errors: Dict[str, str] = {}
        self.touched_fields: Set[str] = set()
        self.is_dirty = False

    @property
    def is_valid(self) -> bool:
        """
        True when no field currently holds an error.

        Before any validation has run this is trivially true; call
        ``validate_all`` before relying on it for a gating decision.
        """
        return not any(self.errors.values())

    @property
    def state(self) -> FormState:
        return FormState(
            values=dict(self.values),
            errors=dict(self.errors),
            touched_fields=set(self.touched_fields),
            is_dirty=self.is_dirty,
        )

    def _config_for(self, field: str) -> FieldConfig:
        return self.field_configs.get(field) or FieldConfig()

    def _sanitize(self, field: str, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        config = self._config_for(field)
        return sanitize_value(
            value,
            config.sanitization_type,
            config,
            markup_sanitizer=self.markup_sanitizer,
        )

    def _validate_field(self, field: str, value: Any) -> bool:
        result = validate_value(value, self._config_for(field))
        if result.is_valid:
            self.errors.pop(field, None)
        else:
            self.errors[field] = result.error
        return result.is_valid

    def set_field_value(self, field: str, raw_value: Any) -> None:
        """
        Sanitize and store a single field value.

        Args:
            field: Field name
            raw_value: Raw input; non-strings are stored unchanged
        """
        value = self._sanitize(field, raw_value)
        self.values[field] = value
        self.is_dirty = True

        if self.validate_on_change:
            self._validate_field(field, value)

    def set_multiple_values(self, partial: Mapping[str, Any]) -> None:
        """Sanitize each entry by its own field config and merge into values."""
        for field, raw_value in partial.items():
            self.values[field] = self._sanitize(field, raw_value)
        self.is_dirty = True

    def handle_change(self, event: Any) -> None:
        """
        Route a change event by input type.

        Checkboxes store their boolean ``checked`` state, numeric inputs are
        parsed to floats ("" stays as the "no value yet" marker), everything
        else is sanitized as a string.

        Args:
            event: Mapping or object with name, value, type and optional checked
        """
        target = _event_target(event)
        name = _read(target, "name")
        if not name:
            logger.debug("Ignoring change event without a field name")
            return

        input_type = str(_read(target, "type", "text") or "text").lower()
        value = _read(target, "value", "")

        if input_type in CHECKBOX_INPUT_TYPES:
            self.set_field_value(name, bool(_read(target, "checked", False)))
        elif input_type in NUMERIC_INPUT_TYPES:
            self.set_field_value(name, "" if value == "" else parse_float(value))
        else:
            self.set_field_value(name, "" if value is None else str(value))

    def handle_blur(self, event: Any) -> None:
        """Mark a field touched and optionally re-validate it."""
        name = _read(_event_target(event), "name")
        if not name:
            return

        self.touched_fields.add(name)
        if self.validate_on_blur:
            self._validate_field(name, self.values.get(name))

    def validate_all(self) -> bool:
        """
        Validate every field present in values and rebuild the error map.

        Returns:
            True if every field is valid
        """
        errors: Dict[str, str] = {}
        for field, value in self.values.items():
            result = validate_value(value, self._config_for(field))
            if not result.is_valid:
                errors[field] = result.error
        self.errors = errors
        return not errors

    def handle_submit(self, on_submit: SubmitCallback) -> Callable[..., Awaitable[bool]]:
        """
        Build a submit handler.

        The handler touches every field, validates the whole form and calls
        ``on_submit(values)`` only when valid. It does not guard against being
        invoked again while a previous submission is still running.

        Args:
            on_submit: Sync or async callback receiving a copy of the values

        Returns:
            Async callable returning whether on_submit was invoked
        """

        async def submit(event: Any = None) -> bool:
            if event is not None:
                prevent_default = _read(event, "prevent_default") or _read(
                    event, "preventDefault"
                )
                if callable(prevent_default):
                    prevent_default()

            self.touched_fields = set(self.values)
            if not self.validate_all():
                logger.debug(
                    "Form submission blocked by validation errors",
                    fields=sorted(self.errors),
                )
                return False

            result = on_submit(dict(self.values))
            if inspect.isawaitable(result):
                await result
            return True

        return submit

    def reset(self) -> None:
        """Restore the initial values and clear errors, touched fields and dirtiness."""
        self.values = copy.deepcopy(self._initial_values)
        self.errors = {}
        self.touched_fields = set()
        self.is_dirty = False

    def get_field_error(self, field: str) -> Optional[str]:
        """Return the field's error only once the field has been touched."""
        if field not in self.touched_fields:
            return None
        return self.errors.get(field)

    def get_sanitized_values(self) -> Dict[str, Any]:
        """Return a freshly re-sanitized copy of all current values."""
        return {field: self._sanitize(field, value) for field, value in self.values.items()}


class SanitizedInput:
    """
    Single sanitized and validated value outside of a full form.

    Attributes:
        value: Current sanitized value
        error: Validation error from the last ``set_value`` call, if any
    """

    def __init__(
        self,
        initial: str = "",
        config: Any = None,
        markup_sanitizer: Optional[MarkupSanitizer] = None,
    ) -> None:
        self.config = FieldConfig.coerce(config)
        self.markup_sanitizer = markup_sanitizer
        self.value = initial
        self.error: Optional[str] = None

    def set_value(self, raw_value: Any) -> str:
        """Sanitize, store and validate a new value."""
        self.value = sanitize_value(
            raw_value,
            self.config.type or SanitizationType.TEXT,
            self.config,
            markup_sanitizer=self.markup_sanitizer,
        )
        self.error = validate_value(self.value, self.config).error
        return self.value
