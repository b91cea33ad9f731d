"""
Domain Status Resolver

Runs the lookup tiers in order for one domain:

    RDAP -> WHOIS -> DNS + HTTP

The first tier that returns an Outcome wins. A TierFailure moves on to the
next tier. Tiers for the same domain never overlap.
"""

import asyncio
import logging
from typing import Protocol, Sequence, runtime_checkable

import httpx

from .concurrency import DEFAULT_CONCURRENCY
from .dns_http_client import DnsHttpClient
from .models import Outcome, TierFailure, TierResult
from .rdap_client import USER_AGENT, AsyncRDAPClient
from .tld_registry import extract_registrable_domain
from .whois_client import WhoisClient

logger = logging.getLogger(__name__)

MIN_POOL_SIZE = 100
KEEPALIVE_CONNECTIONS = 20


def pool_limits(concurrency_limit: int = DEFAULT_CONCURRENCY) -> httpx.Limits:
    """
    Connection limits for the shared HTTP pool.

    A resolution holds at most one pooled connection at a time, so the pool
    never has fewer connections than resolutions in flight.
    """
    return httpx.Limits(
        max_connections=max(MIN_POOL_SIZE, concurrency_limit),
        max_keepalive_connections=KEEPALIVE_CONNECTIONS,
    )


@runtime_checkable
class StatusTier(Protocol):
    """One step of the cascade."""

    name: str

    async def check(self, domain: str) -> TierResult:
        ...


class StatusResolver:
    """
    Sequential cascade over a list of tiers.

    The last tier is terminal: whatever it returns is final, and if it
    returns a TierFailure or raises, the resolver still answers (`timeout`
    for timeouts, `registered` otherwise).

    Usage:
        async with StatusResolver() as resolver:
            status = await resolver.resolve("example.com")
    """

    def __init__(
        self,
        tiers: Sequence[StatusTier] | None = None,
        user_agent: str = USER_AGENT,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._tiers = list(tiers) if tiers is not None else None
        self._user_agent = user_agent
        self.limits = pool_limits(concurrency_limit)
        self._http: httpx.AsyncClient | None = None

    @property
    def tiers(self) -> list[StatusTier]:
        if self._tiers is None:
            raise RuntimeError("Resolver not initialized. Use 'async with' context.")
        return self._tiers

    async def __aenter__(self) -> "StatusResolver":
        if self._tiers is None:
            # One connection pool shared by the HTTP-based tiers
            self._http = httpx.AsyncClient(
                headers={"User-Agent": self._user_agent},
                follow_redirects=True,
                limits=self.limits,
            )
            self._tiers = [
                AsyncRDAPClient(client=self._http),
                WhoisClient(),
                DnsHttpClient(client=self._http),
            ]
        return self

    async def __aexit__(self, *args) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._tiers = None

    async def _attempt(self, tier: StatusTier, domain: str) -> TierResult:
        try:
            return await tier.check(domain)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            return TierFailure(tier.name, "timeout", "tier timed out")
        except Exception as e:
            logger.warning("Tier %s raised for %s: %r", tier.name, domain, e)
            return TierFailure(tier.name, "protocol", str(e)[:100])

    async def resolve(self, domain: str) -> Outcome:
        """Resolve a domain's registration status. Always returns an Outcome."""
        target = extract_registrable_domain(domain)
        tiers = self.tiers

        result: TierResult = TierFailure("resolver", "unsupported", "no tiers configured")
        for tier in tiers:
            result = await self._attempt(tier, target)
            if isinstance(result, Outcome):
                return result
            logger.debug(
                "%s: %s failed (%s: %s)", target, tier.name, result.error_type, result.message
            )

        # Terminal tier could not answer either
        if result.is_timeout:
            return Outcome.TIMEOUT
        return Outcome.REGISTERED
