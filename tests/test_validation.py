"""
Tests for field/form validation and submit readiness.
"""

import asyncio

import pytest

from intake.errors import MESSAGES, SubmitError, SubmitErrorKind
from intake.schema import FieldSchema, StepSchema, get_schema
from intake.validation import (
    FieldState,
    is_submit_ready,
    validate_field,
    validate_form,
    validate_full,
)


def _run(coro):
    """Run async function in sync test."""
    return asyncio.run(coro)


TOUCHED = FieldState(is_touched=True)


def _field(validator_type="genericText", required=True, **kwargs):
    return FieldSchema(name="veld", display_name="Veld", required=required, validator_type=validator_type, **kwargs)


class TestValidateField:
    """Tests for single-field rules."""

    def test_untouched_empty_required_is_valid(self):
        result = validate_field("", _field())
        assert result.is_valid
        assert result.error_messages == []

    def test_touched_empty_required_is_invalid(self):
        result = validate_field("   ", _field(), TOUCHED)
        assert not result.is_valid
        assert result.error_messages == ["Veld is verplicht."]

    def test_required_message_override(self):
        field = _field(messages={"required": "Vul dit in."})
        assert validate_field("", field, TOUCHED).error_messages == ["Vul dit in."]

    @pytest.mark.parametrize("value", ["1234AB", "1234 ab", "9999zz"])
    def test_valid_postcodes(self, value):
        assert validate_field(value, _field("postcode"), TOUCHED).is_valid

    @pytest.mark.parametrize("value", ["0123AB", "123AB", "1234 A", "1234  AB", "ABCD12"])
    def test_invalid_postcodes(self, value):
        result = validate_field(value, _field("postcode"), TOUCHED)
        assert not result.is_valid
        assert result.error_messages == ["Veld heeft een ongeldig formaat."]

    def test_invalid_format_shown_even_when_untouched(self):
        assert not validate_field("12a", _field("huisnummer")).is_valid

    def test_huisnummer_digits_only(self):
        assert validate_field("12", _field("huisnummer"), TOUCHED).is_valid
        assert not validate_field("12a", _field("huisnummer"), TOUCHED).is_valid

    def test_toevoeging_is_free_text(self):
        assert validate_field("bis-2", _field("toevoeging", required=False), TOUCHED).is_valid

    def test_optional_empty_is_valid(self):
        assert validate_field("", _field("postcode", required=False), TOUCHED).is_valid

    def test_number_and_email(self):
        assert validate_field("-12.5", _field("number"), TOUCHED).is_valid
        assert not validate_field("12,5", _field("number"), TOUCHED).is_valid
        assert validate_field("jan@example.nl", _field("email"), TOUCHED).is_valid
        assert not validate_field("jan@", _field("email"), TOUCHED).is_valid

    def test_unknown_validator_falls_back_to_generic_text(self):
        field = _field("iban")
        assert validate_field("anything goes", field, TOUCHED).is_valid
        assert not validate_field("", field, TOUCHED).is_valid

    @pytest.mark.parametrize("touched", [True, False])
    @pytest.mark.parametrize("value", ["", "12", "1234 AB"])
    def test_repeated_calls_give_same_result(self, value, touched):
        field = _field("postcode")
        state = FieldState(is_touched=touched)

        first = validate_field(value, field, state)
        second = validate_field(value, field, state)

        assert first == second
        assert state == FieldState(is_touched=touched, is_dirty=False)


class TestValidateForm:
    """Tests for whole-step validation."""

    def test_form_valid_iff_every_field_valid(self, adres_step):
        states = {name: FieldState(is_touched=True) for name in adres_step.fields}
        ok = validate_form({"postcode": "1234 AB", "huisnummer": "1"}, adres_step, states)
        assert ok.is_form_valid
        assert ok.field_errors == {}

        bad = validate_form({"postcode": "1234 AB", "huisnummer": ""}, adres_step, states)
        assert not bad.is_form_valid
        assert list(bad.field_errors) == ["huisnummer"]

    def test_pristine_form_has_no_errors(self, adres_step):
        result = validate_form({}, adres_step)
        assert result.is_form_valid
        assert result.field_errors == {}

    @pytest.mark.parametrize("touched", [True, False])
    def test_repeated_form_validation_gives_same_result(self, adres_step, touched):
        states = {name: FieldState(is_touched=touched) for name in adres_step.fields}
        data = {"postcode": "12", "huisnummer": ""}

        first = validate_form(data, adres_step, states)
        second = validate_form(data, adres_step, states)

        assert first == second
        assert all(s == FieldState(is_touched=touched) for s in states.values())
        assert data == {"postcode": "12", "huisnummer": ""}

    def test_should_validate_field_skips_fields(self, adres_step):
        adres_step.should_validate_field = lambda name: name != "huisnummer"
        states = {name: FieldState(is_touched=True) for name in adres_step.fields}
        assert validate_form({"postcode": "1234AB"}, adres_step, states).is_form_valid


class TestSubmitReady:
    """Tests for submit-control enablement."""

    def test_pristine_required_step_is_not_ready(self, naam_step):
        assert not is_submit_ready({"naam": ""}, naam_step)

    def test_filled_step_is_ready(self, naam_step):
        assert is_submit_ready({"naam": "Jan"}, naam_step)

    def test_server_validated_field_must_be_filled(self):
        schema = StepSchema(
            name="keuze",
            selector="#keuze",
            fields={
                "keuze": FieldSchema(name="keuze", display_name="Keuze", requires_server_validation=True),
            },
        )
        assert not is_submit_ready({"keuze": ""}, schema)
        assert is_submit_ready({"keuze": "sm-1"}, schema)


class TestValidateFull:
    """Tests for submit-time validation with async checks."""

    def test_local_errors_skip_async_checks(self, naam_step):
        called = []

        async def check(data):
            called.append(data)
            return {}

        naam_step.checks.append(check)
        result = _run(validate_full({"naam": ""}, naam_step))
        assert not result.is_valid
        assert result.field_errors == {"naam": ["Naam is verplicht."]}
        assert called == []

    def test_async_check_field_and_global_errors(self, naam_step):
        async def check(data):
            return {"naam": "Deze naam is al bezet.", None: "Probeer een andere."}

        naam_step.checks.append(check)
        result = _run(validate_full({"naam": "Jan"}, naam_step))
        assert not result.is_valid
        assert result.field_errors == {"naam": ["Deze naam is al bezet."]}
        assert result.global_errors == ["Probeer een andere."]

    def test_tagged_error_in_check_becomes_global_message(self, naam_step):
        async def check(data):
            raise SubmitError(SubmitErrorKind.API_TIMEOUT)

        naam_step.checks.append(check)
        result = _run(validate_full({"naam": "Jan"}, naam_step))
        assert result.global_errors == [MESSAGES["API_TIMEOUT"]]

    def test_unexpected_error_in_check_shows_default_message(self, naam_step):
        async def check(data):
            raise KeyError("internal_column_x")

        naam_step.checks.append(check)
        result = _run(validate_full({"naam": "Jan"}, naam_step))
        assert not result.is_valid
        assert result.global_errors == [MESSAGES["DEFAULT"]]

    def test_unexpected_error_uses_step_default_override(self, naam_step):
        async def check(data):
            raise RuntimeError("db down")

        naam_step.checks.append(check)
        naam_step.global_messages = {"DEFAULT": "Probeer het zo nog eens."}
        result = _run(validate_full({"naam": "Jan"}, naam_step))
        assert result.global_errors == ["Probeer het zo nog eens."]


class TestSchemas:
    """Tests for the step schema registry."""

    def test_get_schema_returns_fresh_objects(self):
        first = get_schema("abb_adres-form")
        second = get_schema("abb_adres-form")
        assert first is not second
        assert first.field_names() == ["postcode", "huisnummer", "toevoeging"]

    def test_unknown_schema(self):
        assert get_schema("nope") is None
