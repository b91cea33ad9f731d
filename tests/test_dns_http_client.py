"""Tests for the terminal DNS + HTTP tier with a stub resolver and MockTransport."""

import asyncio

import dns.exception
import dns.resolver
import httpx
import pytest

from typosquat_names_mcp.dns_http_client import DnsHttpClient, classify_page_content
from typosquat_names_mcp.models import Outcome

pytestmark = pytest.mark.anyio


class Record:
    def __init__(self, address: str) -> None:
        self.address = address

    def to_text(self) -> str:
        return self.address


class StubResolver:
    """Answers from a {rdtype: addresses-or-exception} table."""

    def __init__(self, answers: dict, delay: float = 0.0) -> None:
        self.answers = answers
        self.delay = delay
        self.queries: list[tuple[str, str]] = []

    async def resolve(self, domain: str, rdtype: str):
        self.queries.append((domain, rdtype))
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.answers.get(rdtype, dns.resolver.NoAnswer())
        if isinstance(answer, Exception):
            raise answer
        return [Record(a) for a in answer]


def make_client(resolver, handler=None, **kwargs) -> DnsHttpClient:
    if handler is None:
        def handler(request):
            raise httpx.ConnectError("no web server", request=request)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DnsHttpClient(resolver=resolver, client=http, **kwargs)


# ---------------------------------------------------------------------------
# Page classification
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "content",
    [
        "<h1>This domain may be for sale!</h1>",
        "<title>Parked Domain</title>",
        "Coming Soon",
        "Powered by Sedo",
    ],
)
def test_parking_pages(content):
    assert classify_page_content(content) == Outcome.PARKED


def test_ordinary_page_is_registered():
    assert classify_page_content("<h1>Welcome to Example Corp</h1>") == Outcome.REGISTERED


# ---------------------------------------------------------------------------
# DNS outcomes
# ---------------------------------------------------------------------------

async def test_nxdomain_is_available():
    resolver = StubResolver({"A": dns.resolver.NXDOMAIN()})

    async with make_client(resolver) as client:
        assert await client.check("nothing-here.com") == Outcome.AVAILABLE


async def test_no_addresses_is_available():
    resolver = StubResolver({"A": dns.resolver.NoAnswer(), "AAAA": dns.resolver.NoAnswer()})

    async with make_client(resolver) as client:
        assert await client.check("example.com") == Outcome.AVAILABLE
    assert [rdtype for _, rdtype in resolver.queries] == ["A", "AAAA"]


async def test_dns_timeout_is_timeout():
    resolver = StubResolver({"A": dns.exception.Timeout()})

    async with make_client(resolver) as client:
        assert await client.check("slow-dns.com") == Outcome.TIMEOUT


async def test_slow_resolver_is_cut_off():
    resolver = StubResolver({"A": ["93.184.216.34"]}, delay=5.0)

    async with make_client(resolver, dns_timeout=0.1) as client:
        assert await client.check("slow-dns.com") == Outcome.TIMEOUT


async def test_aaaa_fallback():
    resolver = StubResolver({"A": dns.resolver.NoAnswer(), "AAAA": ["2001:db8::1"]})

    async with make_client(resolver) as client:
        assert await client.lookup("v6-only.com") == ["2001:db8::1"]


# ---------------------------------------------------------------------------
# HTTP probe
# ---------------------------------------------------------------------------

async def test_resolving_domain_without_web_server_is_registered():
    resolver = StubResolver({"A": ["93.184.216.34"]})

    async with make_client(resolver) as client:
        assert await client.check("example.com") == Outcome.REGISTERED


async def test_parked_page_is_parked():
    resolver = StubResolver({"A": ["93.184.216.34"]})

    def handler(request):
        return httpx.Response(200, text="<p>This domain may be for sale</p>")

    async with make_client(resolver, handler) as client:
        assert await client.check("parked-name.com") == Outcome.PARKED


async def test_https_is_tried_after_http():
    resolver = StubResolver({"A": ["93.184.216.34"]})
    schemes = []

    def handler(request):
        schemes.append(request.url.scheme)
        if request.url.scheme == "http":
            return httpx.Response(503)
        return httpx.Response(200, text="<p>Domain for sale</p>")

    async with make_client(resolver, handler) as client:
        assert await client.check("example.com") == Outcome.PARKED
    assert schemes == ["http", "https"]


async def test_ordinary_site_is_registered():
    resolver = StubResolver({"A": ["93.184.216.34"]})

    async with make_client(resolver, lambda request: httpx.Response(200, text="Hello")) as client:
        assert await client.check("example.com") == Outcome.REGISTERED


async def test_slow_body_is_registered():
    resolver = StubResolver({"A": ["93.184.216.34"]})

    async def slow_body():
        await asyncio.sleep(5)
        yield b"domain for sale"

    def handler(request):
        return httpx.Response(200, content=slow_body())

    async with make_client(resolver, handler, content_timeout=0.1) as client:
        assert await client.check("example.com") == Outcome.REGISTERED


async def test_check_requires_context():
    client = DnsHttpClient(resolver=StubResolver({}))
    with pytest.raises(RuntimeError):
        await client.check("example.com")
