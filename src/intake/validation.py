"""
Validation Engine.

Pure functions over (value, field schema, touch state). A field that was
never touched never reports a required-error, so a pristine step renders
clean. Submit readiness is judged as if every field were touched, which
keeps the submit control disabled until required fields are filled.
"""

import logging
import re
from dataclasses import dataclass, field

from .errors import SubmitError, SubmitErrorKind, message_for
from .schema import FieldSchema, StepSchema, ValidatorType

logger = logging.getLogger(__name__)


POSTCODE_PATTERN = re.compile(r"^[1-9][0-9]{3}\s?[A-Za-z]{2}$")
HUISNUMMER_PATTERN = re.compile(r"^\d+$")
NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)+$")

_FORMAT_PATTERNS: dict[ValidatorType, re.Pattern] = {
    ValidatorType.POSTCODE: POSTCODE_PATTERN,
    ValidatorType.HUISNUMMER: HUISNUMMER_PATTERN,
    ValidatorType.NUMBER: NUMBER_PATTERN,
    ValidatorType.EMAIL: EMAIL_PATTERN,
}


@dataclass
class FieldState:
    """Per-field UI state. Reset on every step init, never persisted."""
    is_touched: bool = False
    is_dirty: bool = False


@dataclass(frozen=True)
class FieldResult:
    is_valid: bool
    error_messages: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FormResult:
    is_form_valid: bool
    field_errors: dict[str, list[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class FullValidationResult:
    """Outcome of submit-time validation (schema rules + async checks)."""
    is_valid: bool
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    global_errors: list[str] = field(default_factory=list)


def resolve_validator_type(name: str) -> ValidatorType:
    """Map a validator name to a known type; unknown names become genericText."""
    try:
        return ValidatorType(name)
    except ValueError:
        logger.warning(f"Unknown validator type '{name}', falling back to genericText")
        return ValidatorType.GENERIC_TEXT


def validate_field(value: str | None, schema: FieldSchema, state: FieldState | None = None) -> FieldResult:
    """Validate one field value. Returns at most one message."""
    state = state or FieldState()
    text = "" if value is None else str(value)
    stripped = text.strip()

    if schema.required and state.is_touched and stripped == "":
        msg = schema.messages.get("required") or f"{schema.display_name} is verplicht."
        return FieldResult(is_valid=False, error_messages=[msg])

    if stripped == "":
        return FieldResult(is_valid=True)

    pattern = _FORMAT_PATTERNS.get(resolve_validator_type(schema.validator_type))
    if pattern is not None and not pattern.match(stripped):
        msg = schema.messages.get("format") or f"{schema.display_name} heeft een ongeldig formaat."
        return FieldResult(is_valid=False, error_messages=[msg])

    return FieldResult(is_valid=True)


def validate_form(
    form_data: dict[str, str],
    schema: StepSchema,
    state_map: dict[str, FieldState] | None = None,
) -> FormResult:
    """Validate every field of the step and AND the results."""
    state_map = state_map or {}
    field_errors: dict[str, list[str]] = {}
    is_form_valid = True

    for name, field_schema in schema.fields.items():
        if schema.should_validate_field is not None and not schema.should_validate_field(name):
            continue
        result = validate_field(form_data.get(name, ""), field_schema, state_map.get(name))
        if not result.is_valid:
            is_form_valid = False
            field_errors[name] = result.error_messages

    return FormResult(is_form_valid=is_form_valid, field_errors=field_errors)


def all_touched(schema: StepSchema) -> dict[str, FieldState]:
    return {name: FieldState(is_touched=True) for name in schema.fields}


def is_submit_ready(form_data: dict[str, str], schema: StepSchema) -> bool:
    """
    Whether the submit control should be enabled.

    Evaluated as if every field were touched; fields flagged
    requires_server_validation must also be non-empty.
    """
    if not validate_form(form_data, schema, all_touched(schema)).is_form_valid:
        return False
    return all(
        str(form_data.get(name, "")).strip() != ""
        for name, f in schema.fields.items()
        if f.requires_server_validation
    )


def has_empty_required(form_data: dict[str, str], schema: StepSchema) -> bool:
    return any(
        f.required and str(form_data.get(name, "")).strip() == ""
        for name, f in schema.fields.items()
    )


async def validate_full(form_data: dict[str, str], schema: StepSchema) -> FullValidationResult:
    """
    Submit-time validation: schema rules for every field, then the step's
    async checks (only when the local rules pass).
    """
    local = validate_form(form_data, schema, all_touched(schema))
    if not local.is_form_valid:
        return FullValidationResult(is_valid=False, field_errors=local.field_errors)

    field_errors: dict[str, list[str]] = {}
    global_errors: list[str] = []

    for check in schema.checks:
        try:
            problems = await check(form_data)
        except SubmitError as e:
            logger.info(f"Async check on {schema.name} failed: {e.code}")
            global_errors.append(message_for(e.kind, schema.global_messages))
            continue
        except Exception as e:
            logger.exception(f"Async check on {schema.name} raised: {e}")
            global_errors.append(message_for(SubmitErrorKind.DEFAULT, schema.global_messages))
            continue

        for field_name, message in (problems or {}).items():
            if field_name is None:
                global_errors.append(message)
            else:
                field_errors.setdefault(field_name, []).append(message)

    return FullValidationResult(
        is_valid=not field_errors and not global_errors,
        field_errors=field_errors,
        global_errors=global_errors,
    )
