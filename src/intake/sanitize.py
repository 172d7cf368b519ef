"""
Input sanitizers.

Each sanitizer takes a raw value and returns a normalized string. They never
raise; values that cannot be normalized come back as an empty string.
"""

import re
from typing import Any, Callable

from .schema import FieldSchema, ValidatorType

_WHITESPACE_RUN = re.compile(r"\s\s+")
_POSTCODE_COMPACT = re.compile(r"^[1-9][0-9]{3}[A-Z]{2}$")


def sanitize_text(value: Any, options: dict | None = None) -> str:
    """Trim, collapse whitespace runs and optionally change case."""
    if value is None:
        return ""
    options = options or {}
    text = str(value).strip()

    if options.get("remove_excess_whitespace", True):
        text = _WHITESPACE_RUN.sub(" ", text)

    case = options.get("case")
    if case == "uppercase":
        text = text.upper()
    elif case == "lowercase":
        text = text.lower()
    elif case == "titlecase":
        text = " ".join(w[:1].upper() + w[1:].lower() for w in text.split(" "))
    return text


def sanitize_postcode(value: Any, options: dict | None = None) -> str:
    """1234ab / 1234 ab → 1234 AB. Other inputs are only uppercased and compacted."""
    if value is None:
        return ""
    compact = re.sub(r"\s+", "", str(value).upper())
    if _POSTCODE_COMPACT.match(compact):
        return f"{compact[:4]} {compact[4:]}"
    return compact


def sanitize_huisnummer(value: Any, options: dict | None = None) -> str:
    if value is None:
        return ""
    return str(value).strip()


def sanitize_email(value: Any, options: dict | None = None) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def sanitize_number(value: Any, options: dict | None = None) -> str:
    """
    Keep digits, one decimal point and a leading minus.

    Options:
        allow_negative: keep a leading minus (default True)
        type: "string" (default), "integer" or "float"
    """
    if value is None:
        return ""
    options = options or {}
    raw = str(value).strip()
    if not raw:
        return ""

    allow_negative = options.get("allow_negative", True)
    negative = allow_negative and raw.startswith("-")
    digits = re.sub(r"[^0-9.]", "", raw)

    # Only the first decimal point survives
    if digits.count(".") > 1:
        head, _, tail = digits.partition(".")
        digits = f"{head}.{tail.replace('.', '')}"

    if digits in ("", "."):
        return ""

    number_text = f"-{digits}" if negative else digits
    kind = options.get("type", "string")
    try:
        if kind == "integer":
            return str(int(float(number_text)))
        if kind == "float":
            return str(float(number_text))
    except ValueError:
        return ""
    return number_text


_SANITIZERS: dict[str, Callable[[Any, dict | None], str]] = {
    ValidatorType.GENERIC_TEXT.value: sanitize_text,
    ValidatorType.TOEVOEGING.value: sanitize_text,
    ValidatorType.POSTCODE.value: sanitize_postcode,
    ValidatorType.HUISNUMMER.value: sanitize_huisnummer,
    ValidatorType.EMAIL.value: sanitize_email,
    ValidatorType.NUMBER.value: sanitize_number,
}


def sanitize_field(value: Any, field_schema: FieldSchema | None) -> str:
    """Sanitize a value with the sanitizer matching the field's validator type."""
    if field_schema is None:
        return sanitize_text(value)
    sanitizer = _SANITIZERS.get(field_schema.validator_type, sanitize_text)
    return sanitizer(value, field_schema.sanitizer_options)


def sanitize_all(data: dict[str, Any], fields: dict[str, FieldSchema]) -> dict[str, str]:
    """Sanitize every known field; unknown keys are trimmed and passed through."""
    result: dict[str, str] = {}
    for name, raw in data.items():
        if name in fields:
            result[name] = sanitize_field(raw, fields[name])
        else:
            result[name] = raw.strip() if isinstance(raw, str) else raw
    return result
