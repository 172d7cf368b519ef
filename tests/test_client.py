"""
Tests for the backend client error mapping (httpx MockTransport).
"""

import asyncio
import json

import httpx
import pytest

from intake.client import IntakeApiClient
from intake.errors import SubmitError, SubmitErrorKind


def _run(coro):
    """Run async function in sync test."""
    return asyncio.run(coro)


def _call(handler, method_name, *args):
    async def scenario():
        async with IntakeApiClient(base_url="http://backend/api", timeout=1, transport=httpx.MockTransport(handler)) as client:
            return await getattr(client, method_name)(*args)

    return _run(scenario())


class TestAddressLookup:
    def test_success(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json={"straat": "Domplein", "plaats": "Utrecht"})

        result = _call(handler, "lookup_address", "3512 JC", "1")

        assert result == {"straat": "Domplein", "plaats": "Utrecht"}
        assert seen["url"].path == "/api/address"
        assert seen["url"].params["postcode"] == "3512JC"

    @pytest.mark.parametrize(
        "status, kind",
        [
            (404, SubmitErrorKind.ADDRESS_NOT_FOUND),
            (400, SubmitErrorKind.INVALID_ADDRESS),
            (503, SubmitErrorKind.SERVER_ERROR),
            (429, SubmitErrorKind.API_ERROR),
        ],
    )
    def test_status_mapping(self, status, kind):
        def handler(request):
            return httpx.Response(status, json={"message": "nope"})

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "lookup_address", "3512 JC", "1")
        assert exc_info.value.kind == kind
        assert exc_info.value.detail == "nope"

    def test_incomplete_address(self):
        def handler(request):
            return httpx.Response(200, json={"straat": "Domplein"})

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "lookup_address", "3512 JC", "1")
        assert exc_info.value.kind == SubmitErrorKind.ADDRESS_NOT_FOUND

    def test_missing_input_never_hits_network(self):
        def handler(request):
            raise AssertionError("should not be called")

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "lookup_address", "", "1")
        assert exc_info.value.kind == SubmitErrorKind.INVALID_ADDRESS

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "lookup_address", "3512 JC", "1")
        assert exc_info.value.kind == SubmitErrorKind.API_TIMEOUT

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "lookup_address", "3512 JC", "1")
        assert exc_info.value.kind == SubmitErrorKind.NETWORK_ERROR


class TestOtherEndpoints:
    def test_coverage(self):
        def handler(request):
            return httpx.Response(200, json={"gedekt": request.url.params["plaats"] == "Utrecht"})

        assert _call(handler, "check_coverage", " Utrecht ") is True
        assert _call(handler, "check_coverage", "Groningen") is False

    def test_coverage_failure_is_coverage_error(self):
        def handler(request):
            return httpx.Response(200, json={"status": "?"})

        with pytest.raises(SubmitError) as exc_info:
            _call(handler, "check_coverage", "Utrecht")
        assert exc_info.value.kind == SubmitErrorKind.COVERAGE_ERROR

    def test_fetch_candidates_posts_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[{"id": "sm-1"}])

        result = _call(handler, "fetch_candidates", "Utrecht", 3.5, {"maandag": ["ochtend"]})

        assert result == [{"id": "sm-1"}]
        assert seen["method"] == "POST"
        assert seen["body"] == {"plaats": "Utrecht", "uren": 3.5, "dagdelen": {"maandag": ["ochtend"]}}

    def test_fetch_candidates_non_list(self):
        def handler(request):
            return httpx.Response(200, json={"error": "x"})

        assert _call(handler, "fetch_candidates", "Utrecht", 3, None) == []

    def test_pricing_requires_rows_key(self):
        def handler(request):
            return httpx.Response(200, json={"rows": []})

        with pytest.raises(SubmitError):
            _call(handler, "fetch_pricing")

    def test_check_email(self):
        def handler(request):
            return httpx.Response(200, json={"exists": True, "email": request.url.params["email"]})

        assert _call(handler, "check_email", "jan@example.nl") is True
