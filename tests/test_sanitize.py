"""
Tests for input sanitizers.
"""

import pytest

from intake.sanitize import (
    sanitize_all,
    sanitize_email,
    sanitize_field,
    sanitize_number,
    sanitize_postcode,
    sanitize_text,
)
from intake.schema import COMMON_FIELDS


class TestSanitizeText:
    def test_trims_and_collapses_whitespace(self):
        assert sanitize_text("  Jan   de  Vries ") == "Jan de Vries"

    def test_case_options(self):
        assert sanitize_text("a1", {"case": "uppercase"}) == "A1"
        assert sanitize_text("JAN DE", {"case": "lowercase"}) == "jan de"
        assert sanitize_text("jan de vries", {"case": "titlecase"}) == "Jan De Vries"

    def test_none_is_empty(self):
        assert sanitize_text(None) == ""


class TestSanitizePostcode:
    @pytest.mark.parametrize("raw", ["1234ab", "1234 AB", " 1234  ab "])
    def test_formats_dutch_postcode(self, raw):
        assert sanitize_postcode(raw) == "1234 AB"

    def test_leaves_partial_input_compact(self):
        assert sanitize_postcode("12 3") == "123"


class TestSanitizeNumber:
    def test_strips_non_numeric(self):
        assert sanitize_number("12a3") == "123"

    def test_keeps_first_decimal_point(self):
        assert sanitize_number("1.2.3") == "1.23"

    def test_negative_handling(self):
        assert sanitize_number("-5") == "-5"
        assert sanitize_number("-5", {"allow_negative": False}) == "5"

    def test_integer_type(self):
        assert sanitize_number("12.7", {"type": "integer"}) == "12"

    def test_invalid_is_empty(self):
        assert sanitize_number("abc") == ""
        assert sanitize_number(".") == ""


class TestSanitizeField:
    def test_dispatches_on_validator_type(self):
        assert sanitize_field("1234ab", COMMON_FIELDS["postcode"]) == "1234 AB"
        assert sanitize_field(" Jan@Example.NL ", COMMON_FIELDS["emailadres"]) == "jan@example.nl"
        assert sanitize_field("a", COMMON_FIELDS["toevoeging"]) == "A"

    def test_email_sanitizer(self):
        assert sanitize_email(None) == ""

    def test_sanitize_all_passes_unknown_keys(self):
        result = sanitize_all({"postcode": "1234ab", "extra": " x "}, {"postcode": COMMON_FIELDS["postcode"]})
        assert result == {"postcode": "1234 AB", "extra": "x"}
