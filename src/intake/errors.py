"""
Domain errors for the intake flow.

Submit actions signal domain failures by raising SubmitError with a
SubmitErrorKind. The kind is fixed at construction; the orchestrator's
submit handler is the only place that turns it into user-visible text.
"""

from enum import Enum


class SubmitErrorKind(str, Enum):
    """Stable error codes surfaced in a step's global error slot."""

    # General
    NETWORK_ERROR = "NETWORK_ERROR"
    DEFAULT = "DEFAULT"
    DEFAULT_INVALID_SUBMIT = "DEFAULT_INVALID_SUBMIT"
    REQUIRED_FIELDS_MISSING = "REQUIRED_FIELDS_MISSING"
    VALIDATION_FAILED = "VALIDATION_FAILED"

    # Address
    ADDRESS_NOT_FOUND = "ADDRESS_NOT_FOUND"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    API_TIMEOUT = "API_TIMEOUT"
    API_ERROR = "API_ERROR"

    # Coverage
    COVERAGE_ERROR = "COVERAGE_ERROR"
    NO_COVERAGE = "NO_COVERAGE"

    # Account / scheduling
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    DATE_OUT_OF_RANGE = "DATE_OUT_OF_RANGE"

    # Server
    SERVER_ERROR = "SERVER_ERROR"


MESSAGES: dict[str, str] = {
    # Algemeen
    SubmitErrorKind.NETWORK_ERROR.value: "Kan geen verbinding maken met de server. Controleer je internet.",
    SubmitErrorKind.DEFAULT.value: "Er is iets misgegaan. Probeer het later opnieuw.",
    SubmitErrorKind.DEFAULT_INVALID_SUBMIT.value: "Niet alle velden zijn correct ingevuld.",
    SubmitErrorKind.REQUIRED_FIELDS_MISSING.value: "Niet alle verplichte velden zijn ingevuld.",
    SubmitErrorKind.VALIDATION_FAILED.value: "De ingevoerde gegevens zijn niet geldig. Controleer je invoer.",
    # Adres
    SubmitErrorKind.ADDRESS_NOT_FOUND.value: "Dit adres bestaat niet. Controleer je postcode en huisnummer.",
    SubmitErrorKind.INVALID_ADDRESS.value: "De ingevoerde postcode en/of huisnummer is ongeldig. Controleer uw invoer.",
    SubmitErrorKind.API_TIMEOUT.value: "Het ophalen van adresgegevens duurt te lang. Probeer het later nog eens.",
    SubmitErrorKind.API_ERROR.value: "Er is een probleem bij het ophalen van adresgegevens. Probeer het later opnieuw.",
    # Dekking
    SubmitErrorKind.COVERAGE_ERROR.value: "Kon niet controleren of er dekking is op jouw locatie. Probeer het later nog eens.",
    SubmitErrorKind.NO_COVERAGE.value: "Op dit adres kunnen we helaas geen diensten leveren.",
    # Account / planning
    SubmitErrorKind.DUPLICATE_EMAIL.value: "Er bestaat al een account met dit e-mailadres. Log in om verder te gaan.",
    SubmitErrorKind.DATE_OUT_OF_RANGE.value: "De gekozen datum valt buiten de mogelijke periode.",
    # Server
    SubmitErrorKind.SERVER_ERROR.value: "Onze service is momenteel niet beschikbaar. Probeer het later opnieuw.",
}


class SubmitError(Exception):
    """
    Tagged domain failure raised by a step's submit action.

    Attributes are read-only; build a new error instead of changing one.
    """

    def __init__(
        self,
        kind: SubmitErrorKind,
        detail: str = "",
        field: str | None = None,
    ) -> None:
        self._kind = SubmitErrorKind(kind)
        self._detail = detail
        self._field = field
        super().__init__(detail or self._kind.value)

    @property
    def kind(self) -> SubmitErrorKind:
        return self._kind

    @property
    def code(self) -> str:
        return self._kind.value

    @property
    def detail(self) -> str:
        return self._detail

    @property
    def field(self) -> str | None:
        return self._field

    def __repr__(self) -> str:
        return f"SubmitError({self._kind.value!r}, detail={self._detail!r}, field={self._field!r})"


def message_for(code: str | SubmitErrorKind, overrides: dict[str, str] | None = None) -> str:
    """Resolve user-facing text: step override → default table → DEFAULT."""
    key = code.value if isinstance(code, SubmitErrorKind) else str(code)
    if overrides and key in overrides:
        return overrides[key]
    if key in MESSAGES:
        return MESSAGES[key]
    if overrides and SubmitErrorKind.DEFAULT.value in overrides:
        return overrides[SubmitErrorKind.DEFAULT.value]
    return MESSAGES[SubmitErrorKind.DEFAULT.value]
