"""
Abonnement-aanvraag - the subscription request flow.

    adres → opdracht → dagdelen → schoonmaker → persoonsgegevens

Each submit action writes its results into the flow record and hands off
to the next step through FlowController.advance().
"""

import logging
from typing import Any

from .availability import convert_ui_dayparts_to_db, parse_daypart_selection
from .client import IntakeApiClient
from .config import settings
from .errors import SubmitError, SubmitErrorKind, message_for
from .flow import FlowController
from .pricing import PricingConfigCache, quote
from .providers import present_candidates
from .schema import StepSchema, SubmitConfig, get_schema
from .storage import FlowStore, create_flow_store
from .view import Document, HeadlessDocument

logger = logging.getLogger(__name__)


STEP_NAMES = [
    "abb_adres-form",
    "abb_opdracht-form",
    "abb_dagdelen-form",
    "abb_schoonmaker-form",
    "abb_persoonsgegevens-form",
]


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class AbonnementAanvraag:
    """Submit actions and async checks of the subscription request flow."""

    def __init__(
        self,
        controller: FlowController,
        client: IntakeApiClient,
        pricing: PricingConfigCache | None = None,
    ):
        self.controller = controller
        self.client = client
        self.pricing = pricing or PricingConfigCache(client.fetch_pricing)
        # Last presented providers, for the rendering collaborator
        self.candidates: list[dict] = []

    def attach(self) -> FlowController:
        """Register every step with its submit hooks."""
        actions = {
            "abb_adres-form": self.submit_adres,
            "abb_opdracht-form": self.submit_opdracht,
            "abb_dagdelen-form": self.submit_dagdelen,
            "abb_schoonmaker-form": self.submit_schoonmaker,
            "abb_persoonsgegevens-form": self.submit_persoonsgegevens,
        }
        for name in STEP_NAMES:
            schema: StepSchema = get_schema(name)
            schema.attach_submit(SubmitConfig(action=actions[name], on_success=self.controller.advance))
            if name == "abb_persoonsgegevens-form":
                schema.checks.append(self.check_email_available)
            self.controller.register(schema)
        return self.controller

    # =========================================================================
    # Actions
    # =========================================================================

    async def submit_adres(self, data: dict[str, str]) -> dict:
        address = await self.client.lookup_address(data["postcode"], data["huisnummer"])
        logger.info(f"Address found: {address.get('straat')}, {address.get('plaats')}")

        if not await self.client.check_coverage(address["plaats"]):
            logger.info(f"No coverage in {address['plaats']}")
            raise SubmitError(SubmitErrorKind.NO_COVERAGE, detail=address["plaats"])

        self.controller.update_record({
            "postcode": data["postcode"],
            "huisnummer": data["huisnummer"],
            "toevoeging": data.get("toevoeging", ""),
            "straat": address["straat"],
            "plaats": address["plaats"],
            "latitude": address.get("latitude"),
            "longitude": address.get("longitude"),
        })
        return address

    async def submit_opdracht(self, data: dict[str, str]) -> dict:
        config = await self.pricing.get_or_fetch()
        result = quote(
            _to_number(data["abb_m2"]),
            _to_number(data["abb_toiletten"]),
            _to_number(data["abb_badkamers"]),
            config,
        )
        self.controller.update_record({
            "abb_m2": data["abb_m2"],
            "abb_toiletten": data["abb_toiletten"],
            "abb_badkamers": data["abb_badkamers"],
            "uren": result.rounded_hours,
            "berekende_uren": result.hours,
            "prijs": result.price,
        })
        return result.to_dict()

    async def submit_dagdelen(self, data: dict[str, str]) -> list[dict]:
        record = self.controller.record
        uren = record.get("uren")
        plaats = record.get("plaats")
        if uren is None or not plaats:
            raise SubmitError(SubmitErrorKind.VALIDATION_FAILED, detail="uren and plaats must be known first")

        selection = parse_daypart_selection(data.get("dagdelen"))
        providers = await self.client.fetch_candidates(plaats, uren, convert_ui_dayparts_to_db(selection))
        self.candidates = present_candidates(
            providers,
            record.get("latitude"),
            record.get("longitude"),
            uren,
            selection,
            max_top=settings.max_top_rated_candidates,
        )
        self.controller.update_record({
            "dagdelen": selection,
            "kandidaten": [str(c.get("id")) for c in self.candidates],
        })
        return self.candidates

    async def submit_schoonmaker(self, data: dict[str, str]) -> str:
        choice = data["schoonmakerKeuze"]
        if choice not in self.controller.record.get("kandidaten", []):
            raise SubmitError(SubmitErrorKind.VALIDATION_FAILED, detail=f"Unknown provider {choice}", field="schoonmakerKeuze")
        self.controller.update_record({"schoonmakerId": choice})
        return choice

    async def submit_persoonsgegevens(self, data: dict[str, str]) -> dict:
        return self.controller.update_record({
            "voornaam": data["voornaam"],
            "achternaam": data["achternaam"],
            "emailadres": data["emailadres"],
            "telefoonnummer": data.get("telefoonnummer", ""),
        })

    # =========================================================================
    # Async checks
    # =========================================================================

    async def check_email_available(self, data: dict[str, str]) -> dict[str | None, str]:
        if await self.client.check_email(data["emailadres"]):
            return {"emailadres": message_for(SubmitErrorKind.DUPLICATE_EMAIL)}
        return {}


def build_headless_document(step_names: list[str] | None = None) -> HeadlessDocument:
    """A HeadlessDocument with one view per step, laid out from the schemas."""
    document = HeadlessDocument()
    for name in step_names or STEP_NAMES:
        schema = get_schema(name)
        if schema is not None:
            document.add_step(schema.selector, schema.field_names())
    return document


def build_aanvraag_flow(
    store: FlowStore | None,
    document: Document,
    client: IntakeApiClient,
    pricing: PricingConfigCache | None = None,
    flow_name: str | None = None,
) -> tuple[FlowController, AbonnementAanvraag]:
    """Wire the flow; store None means the configured backend."""
    if store is None:
        store = create_flow_store(settings.storage_path)
    controller = FlowController(flow_name or settings.default_flow_name, store, document)
    aanvraag = AbonnementAanvraag(controller, client, pricing)
    aanvraag.attach()
    return controller, aanvraag
