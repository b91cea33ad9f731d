"""
DNS + HTTP Fallback Client (terminal lookup tier)

Used when neither RDAP nor WHOIS could classify a domain. A domain without
address records is treated as available. A domain that resolves is
registered, and its web page is fetched to spot parking and "for sale"
placeholders.

This tier always returns an Outcome: `timeout` is reserved for a DNS lookup
that doesn't answer in time, and `registered` is the answer whenever DNS
shows the name exists but the page can't be fetched.
"""

import asyncio
import logging

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx

from .models import Outcome
from .rdap_client import USER_AGENT

logger = logging.getLogger(__name__)

TIER_NAME = "dns_http"

DNS_TIMEOUT = 5.0
HTTP_TIMEOUT = 10.0
HTTP_CONTENT_TIMEOUT = 5.0

PARKED_PAGE_PATTERNS = (
    "parked",
    "domain for sale",
    "this domain may be for sale",
    "sedo",
    "parking",
    "under construction",
    "coming soon",
)


def classify_page_content(content: str) -> Outcome:
    """Classify the body of a page served by a registered domain."""
    text = content.lower()

    if any(p in text for p in PARKED_PAGE_PATTERNS):
        return Outcome.PARKED
    # GoDaddy's parking pages mention both
    if "godaddy" in text and "parked" in text:
        return Outcome.PARKED
    return Outcome.REGISTERED


class DnsHttpClient:
    """
    DNS existence check followed by an HTTP content probe.

    The resolver and the httpx client can both be injected; otherwise a
    default dnspython resolver is used and an httpx client is opened on
    `async with`.
    """

    name = TIER_NAME

    def __init__(
        self,
        dns_timeout: float = DNS_TIMEOUT,
        http_timeout: float = HTTP_TIMEOUT,
        content_timeout: float = HTTP_CONTENT_TIMEOUT,
        resolver: dns.asyncresolver.Resolver | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._dns_timeout = dns_timeout
        self._http_timeout = http_timeout
        self._content_timeout = content_timeout
        self._resolver = resolver
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "DnsHttpClient":
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._http_timeout,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True
        return self

    async def __aexit__(self, *args) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver()
            self._resolver.timeout = self._dns_timeout
            self._resolver.lifetime = self._dns_timeout
        return self._resolver

    async def lookup(self, domain: str) -> list[str]:
        """
        Resolve A records, falling back to AAAA.

        Returns:
            The addresses found; empty if the name exists without either.

        Raises:
            dns.exception.DNSException: NXDOMAIN, no nameservers, timeouts.
        """
        resolver = self._get_resolver()
        for rdtype in ("A", "AAAA"):
            try:
                answer = await resolver.resolve(domain, rdtype)
            except dns.resolver.NoAnswer:
                continue
            addresses = [rdata.to_text() for rdata in answer]
            if addresses:
                return addresses
        return []

    async def probe(self, domain: str) -> Outcome | None:
        """
        Fetch http:// then https:// and classify the first 2xx page.

        Returns:
            The page classification, or None if neither scheme answered
            with a success status.
        """
        for scheme in ("http", "https"):
            url = f"{scheme}://{domain}"
            try:
                request = self._client.build_request(
                    "GET", url, timeout=httpx.Timeout(self._http_timeout)
                )
                response = await asyncio.wait_for(
                    self._client.send(request, stream=True),
                    timeout=self._http_timeout,
                )
            except (asyncio.TimeoutError, httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
                logger.debug("HTTP probe %s failed: %s", url, e)
                continue

            try:
                if not response.is_success:
                    continue
                try:
                    await asyncio.wait_for(response.aread(), timeout=self._content_timeout)
                except (asyncio.TimeoutError, httpx.HTTPError):
                    # The site answered; the body just didn't arrive in time
                    return Outcome.REGISTERED
                return classify_page_content(response.text)
            finally:
                await response.aclose()

        return None

    async def check(self, domain: str) -> Outcome:
        """Classify a domain from DNS and its web page. Never fails."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        try:
            addresses = await asyncio.wait_for(self.lookup(domain), timeout=self._dns_timeout)
        except (asyncio.TimeoutError, dns.exception.Timeout):
            return Outcome.TIMEOUT
        except (dns.exception.DNSException, OSError) as e:
            logger.debug("DNS lookup for %s failed: %s", domain, e)
            return Outcome.AVAILABLE

        if not addresses:
            return Outcome.AVAILABLE

        page = await self.probe(domain)
        if page is None:
            # DNS says the name is in use even if no web server answers
            return Outcome.REGISTERED
        return page
