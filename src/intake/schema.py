"""
Step Schemas - static description of each step's fields and rules.

A StepSchema is created fresh by get_schema() for every step initialization,
so each step owns its own object. The only sanctioned mutation is attaching
a SubmitConfig (and optional async checks) before the step is initialized.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ValidatorType(str, Enum):
    """Known validation rule sets. Unknown names fall back to GENERIC_TEXT."""
    GENERIC_TEXT = "genericText"
    POSTCODE = "postcode"
    HUISNUMMER = "huisnummer"
    TOEVOEGING = "toevoeging"
    NUMBER = "number"
    EMAIL = "email"


PersistMode = Literal["global", "form", "none"]


class FieldSchema(BaseModel):
    """One field of a step. Immutable once defined."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    required: bool = False
    # Plain str so unknown validator names survive and fall back at validation time
    validator_type: str = ValidatorType.GENERIC_TEXT.value
    sanitizer_options: dict[str, Any] = Field(default_factory=dict)
    default: str = ""
    persist: PersistMode = "form"
    input_type: Literal["text", "email", "tel", "number", "radio", "checkbox"] = "text"
    # Per-rule message overrides: "required", "format"
    messages: dict[str, str] = Field(default_factory=dict)
    requires_server_validation: bool = False
    placeholder: str = ""


# Field-level async check: (data) -> {field_or_None: message}
AsyncCheck = Callable[[dict[str, str]], Awaitable[dict[str | None, str]]]


@dataclass
class SubmitConfig:
    """Submit pipeline hooks for a step."""
    action: Callable[[dict[str, str]], Awaitable[Any]]
    on_success: Callable[[Any], Any] | None = None
    # Runs instead of the default error rendering when provided
    on_error: Callable[[Exception], Any] | None = None


@dataclass
class StepSchema:
    """
    One step of a flow.

    selector identifies the step's root element for the rendering collaborator.
    """
    name: str
    selector: str
    fields: dict[str, FieldSchema] = field(default_factory=dict)
    submit: SubmitConfig | None = None
    checks: list[AsyncCheck] = field(default_factory=list)
    should_validate_field: Callable[[str], bool] | None = None
    global_messages: dict[str, str] = field(default_factory=dict)

    def field_names(self) -> list[str]:
        return list(self.fields)

    def attach_submit(self, submit: SubmitConfig) -> "StepSchema":
        """Attach submit hooks before initialization. Returns self for chaining."""
        self.submit = submit
        return self


# =============================================================================
# Common Fields (shared by several steps)
# =============================================================================

COMMON_FIELDS: dict[str, FieldSchema] = {
    "postcode": FieldSchema(
        name="postcode",
        display_name="Postcode",
        required=True,
        validator_type=ValidatorType.POSTCODE.value,
        persist="global",
        placeholder="1234AB",
        messages={"format": "Voer een geldige postcode in (bijv. 1234AB)."},
    ),
    "huisnummer": FieldSchema(
        name="huisnummer",
        display_name="Huisnummer",
        required=True,
        validator_type=ValidatorType.HUISNUMMER.value,
        persist="global",
        placeholder="10",
        messages={"format": "Gebruik alleen cijfers."},
    ),
    "toevoeging": FieldSchema(
        name="toevoeging",
        display_name="Toevoeging",
        validator_type=ValidatorType.TOEVOEGING.value,
        sanitizer_options={"case": "uppercase"},
        persist="global",
    ),
    "voornaam": FieldSchema(
        name="voornaam",
        display_name="Voornaam",
        required=True,
        persist="global",
        messages={"required": "Voornaam is verplicht."},
    ),
    "achternaam": FieldSchema(
        name="achternaam",
        display_name="Achternaam",
        required=True,
        persist="global",
        messages={"required": "Achternaam is verplicht."},
    ),
    "emailadres": FieldSchema(
        name="emailadres",
        display_name="E-mail",
        required=True,
        validator_type=ValidatorType.EMAIL.value,
        persist="global",
        input_type="email",
        messages={"format": "Voer een geldig e-mailadres in."},
    ),
    "telefoonnummer": FieldSchema(
        name="telefoonnummer",
        display_name="Telefoonnummer",
        validator_type=ValidatorType.NUMBER.value,
        sanitizer_options={"allow_negative": False},
        persist="global",
        input_type="tel",
        messages={"format": "Gebruik alleen cijfers voor telefoonnummer."},
    ),
}


def _fields(*items: FieldSchema) -> dict[str, FieldSchema]:
    return {f.name: f for f in items}


# =============================================================================
# Step Definitions
# =============================================================================

def _address_check_form() -> StepSchema:
    return StepSchema(
        name="postcode-form",
        selector="#postcode-form",
        fields=_fields(
            COMMON_FIELDS["postcode"],
            COMMON_FIELDS["huisnummer"],
            COMMON_FIELDS["toevoeging"],
        ),
    )


def _abb_adres_form() -> StepSchema:
    return StepSchema(
        name="abb_adres-form",
        selector="#abb_adres-form",
        fields=_fields(
            COMMON_FIELDS["postcode"],
            COMMON_FIELDS["huisnummer"],
            COMMON_FIELDS["toevoeging"],
        ),
    )


def _abb_opdracht_form() -> StepSchema:
    return StepSchema(
        name="abb_opdracht-form",
        selector="#abb_opdracht-form",
        fields=_fields(
            FieldSchema(
                name="abb_m2",
                display_name="Oppervlakte (m²)",
                required=True,
                validator_type=ValidatorType.NUMBER.value,
                sanitizer_options={"type": "integer", "allow_negative": False},
                input_type="number",
            ),
            FieldSchema(
                name="abb_toiletten",
                display_name="Aantal toiletten",
                required=True,
                validator_type=ValidatorType.NUMBER.value,
                sanitizer_options={"type": "integer", "allow_negative": False},
                default="1",
                input_type="number",
            ),
            FieldSchema(
                name="abb_badkamers",
                display_name="Aantal badkamers",
                required=True,
                validator_type=ValidatorType.NUMBER.value,
                sanitizer_options={"type": "integer", "allow_negative": False},
                default="1",
                input_type="number",
            ),
        ),
    )


def _abb_dagdelen_form() -> StepSchema:
    return StepSchema(
        name="abb_dagdelen-form",
        selector="#abb_dagdelen-form",
        fields=_fields(
            # Comma-separated UI daypart codes, e.g. "ma-ochtend,di-middag"
            FieldSchema(
                name="dagdelen",
                display_name="Voorkeursdagdelen",
                input_type="checkbox",
            ),
        ),
    )


def _abb_schoonmaker_form() -> StepSchema:
    return StepSchema(
        name="abb_schoonmaker-form",
        selector="#abb_schoonmaker-form",
        fields=_fields(
            FieldSchema(
                name="schoonmakerKeuze",
                display_name="Schoonmaker",
                required=True,
                input_type="radio",
                persist="none",
                requires_server_validation=True,
                messages={"required": "Kies een schoonmaker."},
            ),
        ),
    )


def _abb_persoonsgegevens_form() -> StepSchema:
    return StepSchema(
        name="abb_persoonsgegevens-form",
        selector="#abb_persoonsgegevens-form",
        fields=_fields(
            COMMON_FIELDS["voornaam"],
            COMMON_FIELDS["achternaam"],
            COMMON_FIELDS["emailadres"],
            COMMON_FIELDS["telefoonnummer"],
        ),
    )


_SCHEMA_BUILDERS: dict[str, Callable[[], StepSchema]] = {
    "postcode-form": _address_check_form,
    "abb_adres-form": _abb_adres_form,
    "abb_opdracht-form": _abb_opdracht_form,
    "abb_dagdelen-form": _abb_dagdelen_form,
    "abb_schoonmaker-form": _abb_schoonmaker_form,
    "abb_persoonsgegevens-form": _abb_persoonsgegevens_form,
}


def get_schema(name: str) -> StepSchema | None:
    """Build a fresh StepSchema for the named step, or None if unknown."""
    builder = _SCHEMA_BUILDERS.get(name)
    if builder is None:
        logger.warning(f"Unknown step schema: {name}")
        return None
    return builder()


def register_schema(name: str, builder: Callable[[], StepSchema]) -> None:
    """Register (or replace) a step schema builder."""
    _SCHEMA_BUILDERS[name] = builder


def list_schemas() -> list[str]:
    return sorted(_SCHEMA_BUILDERS)
