"""Tests for the tier cascade."""

import asyncio

import pytest

from typosquat_names_mcp.models import Outcome, TierFailure
from typosquat_names_mcp.resolver import MIN_POOL_SIZE, StatusResolver, StatusTier, pool_limits

pytestmark = pytest.mark.anyio


async def resolve(tiers, domain="example.com") -> Outcome:
    async with StatusResolver(tiers) as resolver:
        return await resolver.resolve(domain)


def test_fake_tiers_satisfy_protocol(fake_tier):
    assert isinstance(fake_tier("rdap", Outcome.AVAILABLE), StatusTier)


async def test_first_outcome_wins(fake_tier):
    rdap = fake_tier("rdap", Outcome.AVAILABLE)
    whois = fake_tier("whois", Outcome.REGISTERED)

    assert await resolve([rdap, whois]) == Outcome.AVAILABLE
    assert whois.calls == []


async def test_failure_falls_through(fake_tier):
    rdap = fake_tier("rdap", TierFailure("rdap", "unsupported"))
    whois = fake_tier("whois", TierFailure("whois", "ambiguous"))
    dns_http = fake_tier("dns_http", Outcome.PARKED)

    assert await resolve([rdap, whois, dns_http]) == Outcome.PARKED
    assert rdap.calls == whois.calls == dns_http.calls == ["example.com"]


async def test_rdap_failure_and_resolving_dns_without_http_is_registered(fake_tier):
    rdap = fake_tier("rdap", TierFailure("rdap", "connection"))
    whois = fake_tier("whois", TierFailure("whois", "timeout"))
    # DNS answered but no web server did: the terminal tier says registered
    dns_http = fake_tier("dns_http", Outcome.REGISTERED)

    assert await resolve([rdap, whois, dns_http]) == Outcome.REGISTERED


async def test_everything_timing_out_is_timeout(fake_tier):
    tiers = [
        fake_tier("rdap", TierFailure("rdap", "timeout")),
        fake_tier("whois", TierFailure("whois", "timeout")),
        fake_tier("dns_http", TierFailure("dns_http", "timeout")),
    ]

    assert await resolve(tiers) == Outcome.TIMEOUT


async def test_exhausted_cascade_defaults_to_registered(fake_tier):
    tiers = [
        fake_tier("rdap", TierFailure("rdap", "protocol")),
        fake_tier("whois", TierFailure("whois", "ambiguous")),
    ]

    assert await resolve(tiers) == Outcome.REGISTERED


async def test_raising_tier_does_not_escape(fake_tier):
    tiers = [
        fake_tier("rdap", KeyError("boom")),
        fake_tier("whois", asyncio.TimeoutError()),
        fake_tier("dns_http", RuntimeError("also boom")),
    ]

    assert await resolve(tiers) == Outcome.REGISTERED


async def test_raised_timeout_in_last_tier_is_timeout(fake_tier):
    tiers = [
        fake_tier("rdap", TierFailure("rdap", "connection")),
        fake_tier("dns_http", asyncio.TimeoutError()),
    ]

    assert await resolve(tiers) == Outcome.TIMEOUT


async def test_tiers_run_one_after_another(fake_tier):
    log: list[str] = []
    tiers = [
        fake_tier("rdap", TierFailure("rdap", "timeout"), delay=0.01, log=log),
        fake_tier("whois", TierFailure("whois", "ambiguous"), delay=0.01, log=log),
        fake_tier("dns_http", Outcome.AVAILABLE, delay=0.01, log=log),
    ]

    await resolve(tiers)

    assert log == [
        "rdap:start", "rdap:end",
        "whois:start", "whois:end",
        "dns_http:start", "dns_http:end",
    ]


async def test_subdomains_are_reduced_to_registrable_domain(fake_tier):
    rdap = fake_tier("rdap", Outcome.REGISTERED)

    await resolve([rdap], "con.example.com")

    assert rdap.calls == ["example.com"]


async def test_resolver_needs_context():
    with pytest.raises(RuntimeError):
        await StatusResolver().resolve("example.com")


async def test_default_tiers_are_built_and_released():
    async with StatusResolver() as resolver:
        assert [tier.name for tier in resolver.tiers] == ["rdap", "whois", "dns_http"]
    with pytest.raises(RuntimeError):
        resolver.tiers


# ---------------------------------------------------------------------------
# Connection pool sizing
# ---------------------------------------------------------------------------

def test_pool_never_smaller_than_concurrency():
    assert pool_limits(200).max_connections >= 200
    assert StatusResolver(concurrency_limit=150).limits.max_connections >= 150


def test_small_concurrency_keeps_default_pool():
    assert pool_limits(5).max_connections == MIN_POOL_SIZE
