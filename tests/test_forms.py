"""
Tests for forms.py module.

Covers the form state controller lifecycle (change, blur, validate,
submit, reset) and the single-field SanitizedInput.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from account_security.domain.entities import FieldConfig, FormState
from account_security.forms import FormStateController, SanitizedInput

DEFAULT_VALUES = {"name": "", "email": "", "phone": ""}
DEFAULT_CONFIGS = {
    "name": {"type": "text", "required": True, "maxLength": 50},
    "email": FieldConfig(type="email", required=True),
    "phone": FieldConfig(type="phone"),
}


@pytest.fixture
def form():
    return FormStateController(DEFAULT_VALUES, DEFAULT_CONFIGS)


class TestInitialization:
    """Test initial controller state."""

    def test_initial_values(self, form):
        assert form.values == {"name": "", "email": "", "phone": ""}
        assert form.is_valid is True
        assert form.is_dirty is False
        assert form.touched_fields == set()

    def test_initial_values_are_copied(self):
        initial = {"tags": ["a"]}
        controller = FormStateController(initial)
        controller.values["tags"].append("b")
        assert initial == {"tags": ["a"]}

    def test_state_snapshot(self, form):
        form.set_field_value("name", "John")
        state = form.state
        assert isinstance(state, FormState)
        assert state.values["name"] == "John"
        assert state.is_dirty is True


class TestHandleChange:
    """Test change event routing."""

    def test_sanitizes_text(self, form):
        form.handle_change({"name": "name", "value": "  <script>John</script>  ", "type": "text"})
        assert form.values["name"] == "scriptJohn/script"
        assert form.is_dirty is True

    def test_sanitizes_email(self, form):
        form.handle_change({"name": "email", "value": "  USER@EXAMPLE.COM  ", "type": "email"})
        assert form.values["email"] == "user@example.com"

    def test_sanitizes_phone(self, form):
        form.handle_change({"name": "phone", "value": "+1-555-CALL-NOW", "type": "tel"})
        assert form.values["phone"] == "+1-555--"

    def test_enforces_max_length(self, form):
        form.handle_change({"name": "name", "value": "a" * 100, "type": "text"})
        assert len(form.values["name"]) == 50

    def test_accepts_dom_style_target(self, form):
        event = SimpleNamespace(target=SimpleNamespace(name="name", value=" Jane ", type="text"))
        form.handle_change(event)
        assert form.values["name"] == "Jane"

    def test_checkbox(self):
        controller = FormStateController({"subscribe": False}, {})
        controller.handle_change({"name": "subscribe", "type": "checkbox", "checked": True})
        assert controller.values["subscribe"] is True

    def test_number_input(self):
        controller = FormStateController(
            {"amount": 0}, {"amount": FieldConfig(type="number", min=0, max=1000)}
        )
        controller.handle_change({"name": "amount", "value": "123.45", "type": "number"})
        assert controller.values["amount"] == 123.45
        assert "amount" not in controller.errors

    def test_empty_number_input_is_kept_as_no_value(self):
        controller = FormStateController({"amount": 5}, {"amount": {"type": "number"}})
        controller.handle_change({"name": "amount", "value": "", "type": "number"})
        assert controller.values["amount"] == ""

    def test_unconfigured_field_gets_text_sanitization(self):
        controller = FormStateController({"note": ""})
        controller.handle_change({"name": "note", "value": " <i>hi</i> ", "type": "text"})
        assert controller.values["note"] == "ihi/i"

    def test_event_without_name_is_ignored(self, form):
        form.handle_change({"value": "x", "type": "text"})
        assert form.is_dirty is False


class TestValidateOnChange:
    """Test validation while typing."""

    def test_validates_when_enabled(self):
        controller = FormStateController(DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=True)
        controller.set_field_value("name", "")
        assert controller.errors["name"] == "This field is required"

    def test_clears_error_when_fixed(self):
        controller = FormStateController(DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=True)
        controller.set_field_value("name", "")
        controller.set_field_value("name", "John")
        assert "name" not in controller.errors

    def test_does_not_validate_when_disabled(self):
        controller = FormStateController(DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=False)
        controller.set_field_value("name", "")
        assert "name" not in controller.errors

    def test_non_string_values_pass_through(self, form):
        form.set_field_value("phone", 5551234)
        assert form.values["phone"] == 5551234


class TestHandleBlur:
    """Test blur handling."""

    def test_validates_on_blur(self):
        controller = FormStateController(
            DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=False, validate_on_blur=True
        )
        controller.handle_blur({"name": "name"})
        assert controller.errors["name"] == "This field is required"
        assert "name" in controller.touched_fields

    def test_blur_without_validation(self):
        controller = FormStateController(
            DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=False, validate_on_blur=False
        )
        controller.handle_blur({"target": {"name": "name"}})
        assert "name" in controller.touched_fields
        assert controller.errors == {}


class TestValidateAll:
    """Test whole-form validation."""

    def test_reports_all_errors(self, form):
        assert form.validate_all() is False
        assert form.errors == {
            "name": "This field is required",
            "email": "This field is required",
        }
        assert form.is_valid is False

    def test_rebuilds_errors_from_scratch(self, form):
        form.errors["stale"] = "old error"
        form.set_multiple_values({"name": "John", "email": "john@example.com"})
        assert form.validate_all() is True
        assert form.errors == {}

    def test_only_checks_declared_constraints(self):
        controller = FormStateController({"anything": ""}, {})
        assert controller.validate_all() is True


class TestHandleSubmit:
    """Test submission gating."""

    @pytest.mark.asyncio
    async def test_blocks_invalid_submission(self, form):
        on_submit = MagicMock()
        submitted = await form.handle_submit(on_submit)()
        assert submitted is False
        on_submit.assert_not_called()
        assert form.touched_fields == {"name", "email", "phone"}

    @pytest.mark.asyncio
    async def test_submits_valid_values(self, form):
        on_submit = AsyncMock()
        form.set_field_value("name", "John Doe")
        form.set_field_value("email", "john@example.com")

        submitted = await form.handle_submit(on_submit)()

        assert submitted is True
        on_submit.assert_awaited_once_with(
            {"name": "John Doe", "email": "john@example.com", "phone": ""}
        )

    @pytest.mark.asyncio
    async def test_calls_prevent_default(self, form):
        event = MagicMock()
        await form.handle_submit(MagicMock())(event)
        event.prevent_default.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_reentrancy_guard(self, form):
        submissions = []
        form.set_multiple_values({"name": "John", "email": "john@example.com"})
        submit = form.handle_submit(submissions.append)
        await submit()
        await submit()
        assert len(submissions) == 2
        assert submissions[0] == {"name": "John", "email": "john@example.com", "phone": ""}


class TestReset:
    """Test reset."""

    def test_restores_initial_state(self, form):
        form.set_field_value("name", "John")
        form.set_field_value("email", "invalid")
        form.handle_blur({"name": "email"})

        form.reset()

        assert form.values == {"name": "", "email": "", "phone": ""}
        assert form.errors == {}
        assert form.touched_fields == set()
        assert form.is_dirty is False


class TestValueHelpers:
    """Test bulk setters and read helpers."""

    def test_set_multiple_values_sanitizes(self, form):
        form.set_multiple_values({"name": "  <b>John</b>  ", "email": "  TEST@EXAMPLE.COM  "})
        assert form.values["name"] == "bJohn/b"
        assert form.values["email"] == "test@example.com"
        assert form.is_dirty is True

    def test_field_error_hidden_until_touched(self):
        controller = FormStateController(DEFAULT_VALUES, DEFAULT_CONFIGS, validate_on_change=False)
        controller.set_field_value("name", "")
        controller.validate_all()

        assert controller.errors["name"] == "This field is required"
        assert controller.get_field_error("name") is None

        controller.handle_blur({"name": "name"})
        assert controller.get_field_error("name") == "This field is required"

    def test_get_sanitized_values_resanitizes(self, form):
        form.values["email"] = "JOHN@EXAMPLE.COM"
        form.values["name"] = "<i>x</i>"
        sanitized = form.get_sanitized_values()
        assert sanitized["email"] == "john@example.com"
        assert sanitized["name"] == "ix/i"
        assert form.values["email"] == "JOHN@EXAMPLE.COM"


class TestSanitizedInput:
    """Test the single-field helper."""

    def test_defaults(self):
        field = SanitizedInput()
        assert field.value == ""
        assert field.error is None

    def test_initial_value(self):
        assert SanitizedInput("initial").value == "initial"

    def test_sanitizes_on_set(self):
        field = SanitizedInput("", {"type": "email"})
        field.set_value("USER@EXAMPLE.COM")
        assert field.value == "user@example.com"

    def test_validates_and_clears_error(self):
        field = SanitizedInput("", FieldConfig(type="text", required=True))
        field.set_value("")
        assert field.error == "This field is required"
        field.set_value("valid value")
        assert field.error is None


XSS_PAYLOADS = [
    '<script>alert("xss")</script>',
    "<img src=x onerror=alert(1)>",
    "<svg onload=alert(1)>",
]


@pytest.mark.parametrize("payload", XSS_PAYLOADS)
def test_text_fields_never_store_angle_brackets(payload):
    controller = FormStateController({"comment": ""}, {"comment": {"type": "text"}})
    controller.set_field_value("comment", payload)
    assert "<" not in controller.values["comment"]


def test_html_fields_drop_scripts():
    controller = FormStateController({"rich_text": ""}, {"rich_text": {"type": "html"}})
    controller.set_field_value("rich_text", "<p>Hello</p><script>evil()</script><b>World</b>")
    assert "<script>" not in controller.values["rich_text"]
    assert "Hello" in controller.values["rich_text"]
    assert "World" in controller.values["rich_text"]


def test_search_fields_drop_quotes_and_semicolons():
    controller = FormStateController({"search": ""}, {"search": {"type": "search"}})
    controller.set_field_value("search", "'; DROP TABLE users; --")
    assert "'" not in controller.values["search"]
    assert ";" not in controller.values["search"]
