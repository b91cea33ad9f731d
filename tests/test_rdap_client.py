"""Tests for the RDAP tier, with httpx.MockTransport standing in for registries."""

import json

import httpx
import pytest

from typosquat_names_mcp.models import Outcome, TierFailure
from typosquat_names_mcp.rdap_client import (
    AsyncRDAPClient,
    classify_rdap_body,
    extract_registrar_name,
    is_parked_rdap,
)

pytestmark = pytest.mark.anyio


def registrar(name: str) -> dict:
    return {
        "roles": ["registrar"],
        "vcardArray": ["vcard", [["version", {}, "text", "4.0"], ["fn", {}, "text", name]]],
    }


def make_client(handler, **kwargs) -> AsyncRDAPClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncRDAPClient(client=http, retry_delay=0.01, **kwargs)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def test_active_domain_is_registered():
    body = json.dumps({"status": ["active"], "entities": [registrar("Example Registrar, Inc.")]})
    assert classify_rdap_body(body) == Outcome.REGISTERED


def test_parking_registrar_is_parked():
    body = json.dumps({"status": ["active"], "entities": [registrar("Sedo Parking")]})
    assert classify_rdap_body(body) == Outcome.PARKED


@pytest.mark.parametrize("status", ["client hold", "redemption period", "pending delete"])
def test_parked_status_codes(status):
    assert is_parked_rdap({"status": ["active", status]})


def test_registrar_keyword_only_counts_for_registrar_role():
    data = {"entities": [{"roles": ["registrant"], "handle": "Sedo Parking"}]}
    assert not is_parked_rdap(data)


def test_status_signal_wins_even_with_ordinary_registrar():
    data = {"status": ["client hold"], "entities": [registrar("Example Registrar, Inc.")]}
    assert is_parked_rdap(data)


def test_registrar_name_fallbacks():
    assert extract_registrar_name({"publicIds": [{"identifier": "292"}], "handle": "H"}) == "292"
    assert extract_registrar_name({"handle": "BODIS-1"}) == "BODIS-1"
    assert extract_registrar_name({"name": "HugeDomains"}) == "HugeDomains"
    assert extract_registrar_name({}) is None


def test_malformed_body_is_registered():
    assert classify_rdap_body(b"<html>not json</html>") == Outcome.REGISTERED
    assert classify_rdap_body(b"[1, 2, 3]") == Outcome.REGISTERED


# ---------------------------------------------------------------------------
# HTTP behavior
# ---------------------------------------------------------------------------

async def test_404_is_available():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(404)

    async with make_client(handler) as client:
        assert await client.check("available-name.com") == Outcome.AVAILABLE

    assert str(requests[0].url) == "https://rdap.verisign.com/com/v1/domain/available-name.com"
    assert requests[0].headers["Accept"] == "application/rdap+json"


async def test_200_with_parking_registrar_is_parked():
    body = {"status": ["active"], "entities": [registrar("Sedo Parking")]}

    async with make_client(lambda request: httpx.Response(200, json=body)) as client:
        assert await client.check("parked-name.com") == Outcome.PARKED


async def test_200_active_is_registered():
    body = {"status": ["active"], "entities": [registrar("Example Registrar, Inc.")]}

    async with make_client(lambda request: httpx.Response(200, json=body)) as client:
        assert await client.check("example.com") == Outcome.REGISTERED


async def test_unmapped_tld_makes_no_request():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(404)

    async with make_client(handler) as client:
        result = await client.check("example.zzz")

    assert isinstance(result, TierFailure)
    assert result.error_type == "unsupported"
    assert requests == []


async def test_rate_limit_retries_once_then_registered():
    responses = iter([httpx.Response(429), httpx.Response(200, json={"status": ["active"]})])
    calls = []

    def handler(request):
        calls.append(request)
        return next(responses)

    async with make_client(handler) as client:
        assert await client.check("example.com") == Outcome.REGISTERED
    assert len(calls) == 2


async def test_rate_limit_retry_404_is_available():
    responses = iter([httpx.Response(429), httpx.Response(404)])

    async with make_client(lambda request: next(responses)) as client:
        assert await client.check("example.com") == Outcome.AVAILABLE


async def test_rate_limit_twice_is_failure():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429)

    async with make_client(handler) as client:
        result = await client.check("example.com")

    assert isinstance(result, TierFailure)
    assert result.error_type == "protocol"
    assert len(calls) == 2


async def test_server_error_is_failure():
    async with make_client(lambda request: httpx.Response(500)) as client:
        result = await client.check("example.com")

    assert isinstance(result, TierFailure)
    assert result.tier == "rdap"
    assert "500" in result.message


async def test_timeout_is_timeout_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        result = await client.check("example.com")

    assert isinstance(result, TierFailure)
    assert result.is_timeout


async def test_connection_error_is_connection_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        result = await client.check("example.com")

    assert isinstance(result, TierFailure)
    assert result.error_type == "connection"


async def test_check_requires_context():
    client = AsyncRDAPClient()
    with pytest.raises(RuntimeError):
        await client.check("example.com")


async def test_injected_client_is_not_closed():
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    async with AsyncRDAPClient(client=http):
        pass
    assert not http.is_closed
    await http.aclose()
