"""
Intake API Endpoints.

Stateless HTTP surface over the validation engine, the availability
matcher, the ranker and the hours calculation, plus the standalone
address check backed by the collaborator client.
"""

import logging
import math
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from .availability import daypart_availability, format_availability, matches_any
from .client import IntakeApiClient
from .config import settings
from .errors import SubmitError, SubmitErrorKind, message_for
from .pricing import PricingConfig, quote
from .ranking import Candidate, format_distance, rank_candidates
from .sanitize import sanitize_all
from .schema import get_schema, list_schemas
from .validation import FieldState, all_touched, is_submit_ready, validate_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/intake", tags=["intake"])


# =============================================================================
# Request/Response Models
# =============================================================================

class ValidateRequest(BaseModel):
    """Values of one step; touched=None means every field counts as touched."""
    values: dict[str, str] = Field(default_factory=dict)
    touched: list[str] | None = None


class ValidateResponse(BaseModel):
    step: str
    is_form_valid: bool
    submit_ready: bool
    field_errors: dict[str, list[str]]


class AvailabilityRequest(BaseModel):
    slots: list[dict] = Field(default_factory=list)
    required_hours: float = Field(ge=0)
    selected_dayparts: list[str] = Field(default_factory=list)
    include_grid: bool = False


class AvailabilityResponse(BaseModel):
    availability: dict[str, bool]
    matches: bool
    grid: list[dict] | None = None


class CandidateIn(BaseModel):
    id: str
    rating: float | None = Field(default=None, ge=0, le=5)
    distance_km: float = Field(ge=0)


class RankRequest(BaseModel):
    candidates: list[CandidateIn] = Field(default_factory=list)
    max_top: int | None = Field(default=None, ge=0)


class RankedCandidate(BaseModel):
    id: str
    rating: float | None
    distance_km: float | None
    distance_text: str


class HoursRequest(BaseModel):
    m2: float = Field(ge=0)
    toilets: float = Field(ge=0, default=1)
    bathrooms: float = Field(ge=0, default=1)
    pricing: list[dict] = Field(default_factory=list)


class HoursResponse(BaseModel):
    hours: float
    rounded_hours: float
    price: float
    min_hours: float


# =============================================================================
# Schemas & validation
# =============================================================================

@router.get("/schemas")
async def get_schema_names() -> dict:
    return {"schemas": list_schemas()}


@router.get("/schemas/{name}")
async def get_step_schema(name: str) -> dict:
    schema = get_schema(name)
    if schema is None:
        raise HTTPException(status_code=404, detail=f"Unknown step: {name}")
    return {
        "name": schema.name,
        "selector": schema.selector,
        "fields": [f.model_dump() for f in schema.fields.values()],
    }


@router.post("/validate/{name}", response_model=ValidateResponse)
async def validate_step(name: str, request: ValidateRequest) -> ValidateResponse:
    schema = get_schema(name)
    if schema is None:
        raise HTTPException(status_code=404, detail=f"Unknown step: {name}")

    if request.touched is None:
        states = all_touched(schema)
    else:
        states = {f: FieldState(is_touched=f in request.touched) for f in schema.fields}

    values = sanitize_all(request.values, schema.fields)
    result = validate_form(values, schema, states)
    return ValidateResponse(
        step=name,
        is_form_valid=result.is_form_valid,
        submit_ready=is_submit_ready(values, schema),
        field_errors=result.field_errors,
    )


# =============================================================================
# Matching & ranking
# =============================================================================

@router.post("/availability", response_model=AvailabilityResponse)
async def match_availability(request: AvailabilityRequest) -> AvailabilityResponse:
    availability = daypart_availability(request.slots, request.required_hours)
    return AvailabilityResponse(
        availability=availability,
        matches=matches_any(availability, request.selected_dayparts),
        grid=format_availability(request.slots) if request.include_grid else None,
    )


@router.post("/candidates/rank", response_model=list[RankedCandidate])
async def rank(request: RankRequest) -> list[RankedCandidate]:
    max_top = request.max_top if request.max_top is not None else settings.max_top_rated_candidates
    ranked = rank_candidates(
        [Candidate(id=c.id, rating=c.rating, distance_km=c.distance_km) for c in request.candidates],
        max_top=max_top,
    )
    return [
        RankedCandidate(
            id=c.id,
            rating=c.rating,
            distance_km=None if math.isinf(c.distance_km) else c.distance_km,
            distance_text=format_distance(c.distance_km),
        )
        for c in ranked
    ]


# =============================================================================
# Pricing
# =============================================================================

@router.post("/pricing/hours", response_model=HoursResponse)
async def calculate_hours(request: HoursRequest) -> HoursResponse:
    try:
        config = PricingConfig.from_rows(request.pricing)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = quote(request.m2, request.toilets, request.bathrooms, config)
    return HoursResponse(
        hours=result.hours,
        rounded_hours=result.rounded_hours,
        price=result.price,
        min_hours=config.min_hours,
    )


def submit_error_detail(error: SubmitError) -> dict:
    """Body for a SubmitError surfaced over HTTP."""
    return {"code": error.code, "message": message_for(error.kind)}


# =============================================================================
# Address check (postcode-form)
# =============================================================================

async def get_api_client() -> AsyncIterator[IntakeApiClient]:
    async with IntakeApiClient() as client:
        yield client


class AddressCheckRequest(BaseModel):
    postcode: str
    huisnummer: str
    toevoeging: str = ""


@router.post("/address/check")
async def check_address(
    request: AddressCheckRequest,
    client: IntakeApiClient = Depends(get_api_client),
) -> dict:
    """Address lookup plus coverage for the standalone postcode check."""
    schema = get_schema("postcode-form")
    values = sanitize_all(request.model_dump(), schema.fields)
    if not validate_form(values, schema, all_touched(schema)).is_form_valid:
        raise SubmitError(SubmitErrorKind.INVALID_ADDRESS, detail=f"{values['postcode']} {values['huisnummer']}")

    address = await client.lookup_address(values["postcode"], values["huisnummer"])
    gedekt = await client.check_coverage(address["plaats"])
    logger.info(f"Address check {values['postcode']} {values['huisnummer']}: gedekt={gedekt}")
    return {**address, "toevoeging": values["toevoeging"], "gedekt": gedekt}
