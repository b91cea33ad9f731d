"""
Async RDAP Client (first lookup tier)

Queries the registry's RDAP server for a domain. HTTP 404 means the domain is
available, HTTP 200 means it is registered (or parked, judging by the status
codes and registrar in the JSON body). Anything the client cannot classify is
returned as a TierFailure so the resolver can fall back to WHOIS.
"""

import asyncio
import json
import logging
from typing import Any

import httpx

from .models import Outcome, TierFailure, TierResult
from .tld_registry import extract_tld, get_rdap_endpoint

logger = logging.getLogger(__name__)

TIER_NAME = "rdap"

# Per-request timeout (seconds)
RDAP_TIMEOUT = 5.0

# Backoff before the single retry after HTTP 429 (seconds)
RATE_LIMIT_RETRY_DELAY = 0.5

USER_AGENT = "Mozilla/5.0 (compatible; TyposquatNamesMCP/0.1)"

# EPP status phrases that indicate a held or expiring registration
PARKED_STATUS_KEYWORDS = ("client hold", "redemption", "pending delete")

# Registrar names of domain parking / resale services
PARKING_REGISTRAR_KEYWORDS = ("sedo", "parking", "bodis", "hugedomains")


def extract_vcard_name(entity: dict[str, Any]) -> str | None:
    """
    Pull the formatted name ("fn") out of an entity's jCard.

    jCard layout: ["vcard", [["version", {}, "text", "4.0"], ["fn", {}, "text", "Name"], ...]]
    """
    vcard = entity.get("vcardArray")
    if not isinstance(vcard, list) or len(vcard) < 2 or not isinstance(vcard[1], list):
        return None

    for item in vcard[1]:
        if isinstance(item, list) and len(item) >= 4 and item[0] == "fn":
            if isinstance(item[3], str):
                return item[3]
            return None
    return None


def extract_registrar_name(entity: dict[str, Any]) -> str | None:
    """Registrar name: vCard fn, else publicIds[0].identifier, else handle/name."""
    if name := extract_vcard_name(entity):
        return name

    public_ids = entity.get("publicIds")
    if isinstance(public_ids, list) and public_ids:
        first = public_ids[0]
        if isinstance(first, dict) and isinstance(first.get("identifier"), str):
            return first["identifier"]

    for key in ("handle", "name"):
        value = entity.get(key)
        if isinstance(value, str):
            return value
    return None


def is_parked_rdap(data: Any) -> bool:
    """
    Decide whether an RDAP domain object looks parked.

    The status codes are checked first, then the registrar entities. Either
    signal on its own is enough.
    """
    if not isinstance(data, dict):
        return False

    statuses = data.get("status")
    if isinstance(statuses, list):
        for status in statuses:
            if isinstance(status, str):
                status_lower = status.lower()
                if any(k in status_lower for k in PARKED_STATUS_KEYWORDS):
                    return True

    entities = data.get("entities")
    if isinstance(entities, list):
        for entity in entities:
            if not isinstance(entity, dict):
                continue
            roles = entity.get("roles")
            if not isinstance(roles, list) or "registrar" not in roles:
                continue
            name = extract_registrar_name(entity)
            if name and any(k in name.lower() for k in PARKING_REGISTRAR_KEYWORDS):
                return True

    return False


def classify_rdap_body(body: bytes | str) -> Outcome:
    """Classify the body of an HTTP 200 RDAP response."""
    try:
        data = json.loads(body)
    except (ValueError, TypeError):
        # Registered, but the registry sent something we can't read
        return Outcome.REGISTERED

    return Outcome.PARKED if is_parked_rdap(data) else Outcome.REGISTERED


class AsyncRDAPClient:
    """
    Async RDAP client over a single httpx connection pool.

    Usage:
        async with AsyncRDAPClient() as client:
            result = await client.check("example.com")

    An existing httpx.AsyncClient can be passed in; it is then owned by the
    caller and not closed on exit.
    """

    name = TIER_NAME

    def __init__(
        self,
        timeout: float = RDAP_TIMEOUT,
        retry_delay: float = RATE_LIMIT_RETRY_DELAY,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "AsyncRDAPClient":
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            )
            self._owns_client = True
        return self

    async def __aexit__(self, *args) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str) -> httpx.Response:
        return await self._client.get(
            url,
            headers={"Accept": "application/rdap+json"},
            timeout=self._timeout,
        )

    async def check(self, domain: str) -> TierResult:
        """Check a single domain against its registry's RDAP server."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        try:
            tld = extract_tld(domain)
        except ValueError as e:
            return TierFailure(TIER_NAME, "unsupported", str(e))

        endpoint = get_rdap_endpoint(tld)
        if not endpoint:
            return TierFailure(TIER_NAME, "unsupported", f"No RDAP endpoint known for TLD: {tld}")

        url = f"{endpoint}{domain}"

        try:
            response = await self._get(url)

            if response.status_code == 404:
                return Outcome.AVAILABLE

            if response.status_code == 200:
                return classify_rdap_body(response.content)

            if response.status_code == 429:
                logger.debug("RDAP rate limited for %s, retrying once", domain)
                await asyncio.sleep(self._retry_delay)
                retry = await self._get(url)

                if retry.status_code == 200:
                    return Outcome.REGISTERED
                if retry.status_code == 404:
                    return Outcome.AVAILABLE
                return TierFailure(
                    TIER_NAME,
                    "protocol",
                    f"RDAP server error after retry (status {retry.status_code})",
                )

            return TierFailure(
                TIER_NAME,
                "protocol",
                f"RDAP server returned status: {response.status_code}",
            )

        except httpx.TimeoutException:
            return TierFailure(TIER_NAME, "timeout", "RDAP request timed out")

        except httpx.HTTPError as e:
            return TierFailure(TIER_NAME, "connection", str(e)[:100])
