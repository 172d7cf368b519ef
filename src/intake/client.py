"""
Backend client for the intake flow (address, coverage, providers, pricing).

Every failure leaves this module as a SubmitError so submit actions can
let it propagate to the orchestrator unchanged.
"""

import logging
from typing import Any

import httpx

from .config import settings
from .errors import SubmitError, SubmitErrorKind

logger = logging.getLogger(__name__)


# Per-call overrides for HTTP status → error kind; SERVER_ERROR for 5xx otherwise
ADDRESS_STATUS_KINDS = {
    400: SubmitErrorKind.INVALID_ADDRESS,
    404: SubmitErrorKind.ADDRESS_NOT_FOUND,
}


class IntakeApiClient:
    """
    Thin async wrapper around httpx.AsyncClient.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "IntakeApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: Any = None,
        status_kinds: dict[int, SubmitErrorKind] | None = None,
        fallback: SubmitErrorKind = SubmitErrorKind.API_ERROR,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out")
            raise SubmitError(SubmitErrorKind.API_TIMEOUT, detail=str(e)) from e
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise SubmitError(SubmitErrorKind.NETWORK_ERROR, detail=str(e)) from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise SubmitError(fallback, detail=f"Invalid JSON from {path}") from e

        status = response.status_code
        kind = (status_kinds or {}).get(status)
        if kind is None:
            kind = SubmitErrorKind.SERVER_ERROR if status >= 500 else fallback
        detail = _error_message(response)
        logger.error(f"{method} {path} → HTTP {status} ({kind.value}): {detail}")
        raise SubmitError(kind, detail=detail)

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def lookup_address(self, postcode: str, huisnummer: str) -> dict:
        """{straat, plaats, latitude?, longitude?} for a Dutch address."""
        if not postcode or not huisnummer:
            raise SubmitError(SubmitErrorKind.INVALID_ADDRESS, detail="postcode and huisnummer are required")

        data = await self._request(
            "GET",
            "/address",
            params={"postcode": postcode.replace(" ", ""), "huisnummer": huisnummer},
            status_kinds=ADDRESS_STATUS_KINDS,
        )
        if not isinstance(data, dict) or not data.get("straat") or not data.get("plaats"):
            raise SubmitError(SubmitErrorKind.ADDRESS_NOT_FOUND, detail="Incomplete address in response")
        return data

    async def check_coverage(self, plaats: str) -> bool:
        if not plaats or not plaats.strip():
            raise SubmitError(SubmitErrorKind.COVERAGE_ERROR, detail="plaats is required")

        data = await self._request(
            "GET",
            "/routes/coverage",
            params={"plaats": plaats.strip()},
            fallback=SubmitErrorKind.COVERAGE_ERROR,
        )
        gedekt = data.get("gedekt") if isinstance(data, dict) else None
        if not isinstance(gedekt, bool):
            raise SubmitError(SubmitErrorKind.COVERAGE_ERROR, detail=f"Unexpected coverage response: {data!r}")
        return gedekt

    async def fetch_candidates(self, plaats: str, uren: float, dagdelen: dict | None = None) -> list[dict]:
        """Providers serving plaats, each with an embedded 'beschikbaarheid' slot list."""
        data = await self._request(
            "POST",
            "/routes/cleaners",
            json={"plaats": plaats, "uren": uren, "dagdelen": dagdelen},
        )
        if not isinstance(data, list):
            logger.warning(f"Provider response is not a list: {type(data).__name__}")
            return []
        return data

    async def fetch_pricing(self) -> dict:
        data = await self._request("GET", "/pricing")
        if not isinstance(data, dict) or "pricing" not in data:
            raise SubmitError(SubmitErrorKind.API_ERROR, detail="Unexpected pricing response")
        return data

    async def check_email(self, email: str) -> bool:
        """True when an account already uses this email."""
        data = await self._request("GET", "/auth/check-email", params={"email": email})
        return bool(data.get("exists")) if isinstance(data, dict) else False


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or response.reason_phrase)
    return response.reason_phrase
