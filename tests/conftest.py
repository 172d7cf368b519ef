"""
Pytest configuration and fixtures for intake tests.
"""

import os

import pytest

# Set test environment before importing intake modules
os.environ["INTAKE_ENV"] = "development"
os.environ.pop("STORAGE_PATH", None)

from intake.schema import FieldSchema, StepSchema
from intake.storage import FlowStore, MemoryStorage
from intake.view import HeadlessDocument


@pytest.fixture
def backend():
    return MemoryStorage()


@pytest.fixture
def store(backend):
    return FlowStore(backend)


@pytest.fixture
def document():
    return HeadlessDocument()


@pytest.fixture
def naam_step():
    """A step with a single required free-text field."""
    return StepSchema(
        name="naam-form",
        selector="#naam-form",
        fields={
            "naam": FieldSchema(name="naam", display_name="Naam", required=True),
        },
    )


@pytest.fixture
def adres_step():
    return StepSchema(
        name="adres-form",
        selector="#adres-form",
        fields={
            "postcode": FieldSchema(
                name="postcode", display_name="Postcode", required=True, validator_type="postcode", persist="global"
            ),
            "huisnummer": FieldSchema(
                name="huisnummer", display_name="Huisnummer", required=True, validator_type="huisnummer"
            ),
            "toevoeging": FieldSchema(
                name="toevoeging", display_name="Toevoeging", validator_type="toevoeging",
                sanitizer_options={"case": "uppercase"},
            ),
        },
    )


def slots_for(day: str, hours, status: str = "beschikbaar") -> list[dict]:
    return [{"dag": day, "uur": f"{h:02d}:00", "status": status} for h in hours]


@pytest.fixture
def pricing_rows():
    return [
        {"config_key": "timePer10m2", "config_value": "15"},
        {"config_key": "timePerToilet", "config_value": "10"},
        {"config_key": "timePerBathroom", "config_value": "20"},
        {"config_key": "pricePerHour", "config_value": "32.5"},
        {"config_key": "minHours", "config_value": "3"},
    ]


@pytest.fixture
def sample_providers():
    """Providers as returned by the cleaners endpoint, around Utrecht (52.09, 5.12)."""
    return [
        {
            "id": "sm-1",
            "voornaam": "Anna",
            "rating": 4.8,
            "latitude": 52.10,
            "longitude": 5.12,
            "beschikbaarheid": slots_for("maandag", range(9, 14)),
        },
        {
            "id": "sm-2",
            "voornaam": "Bram",
            "rating": 3.5,
            "latitude": 52.09,
            "longitude": 5.11,
            "beschikbaarheid": slots_for("dinsdag", range(17, 21)),
        },
        {
            "id": "sm-3",
            "voornaam": "Cor",
            "rating": None,
            "latitude": 52.20,
            "longitude": 5.30,
            "beschikbaarheid": slots_for("maandag", [8, 10]),
        },
    ]
