"""
WHOIS Client (second lookup tier)

Plain-text WHOIS over TCP port 43. The query is the bare domain followed by a
newline and the server answers with free-form text, then closes the
connection. Registries word their replies differently, so classification is a
keyword search over the lowercased response.
"""

import asyncio
import logging
from typing import Callable

from .models import Outcome, TierFailure, TierResult
from .tld_registry import extract_tld, get_whois_server, split_host_port

logger = logging.getLogger(__name__)

TIER_NAME = "whois"

WHOIS_CONNECT_TIMEOUT = 10.0
WHOIS_WRITE_TIMEOUT = 5.0
WHOIS_READ_TIMEOUT = 10.0

# Registry replies run to a few KB; anything longer is cut off here
MAX_WHOIS_RESPONSE_BYTES = 64 * 1024
READ_CHUNK = 4096

AVAILABLE_PATTERNS = (
    "no match",
    "not found",
    "no entries found",
    "domain status: available",
    "domain not found",
    "no data found",
)

REGISTERED_PATTERNS = (
    "registrar:",
    "registrant:",
    "creation date:",
    "created:",
)

PARKING_PATTERNS = (
    "parked",
    "parking",
    "domain for sale",
    "sedo",
    "bodis",
    "sedoparking",
)


def classify_whois_response(text: str) -> Outcome | None:
    """
    Classify a WHOIS response.

    Returns:
        The outcome, or None if no known pattern matched.
    """
    data = text.lower()

    if any(p in data for p in AVAILABLE_PATTERNS):
        return Outcome.AVAILABLE

    if any(p in data for p in REGISTERED_PATTERNS):
        if any(p in data for p in PARKING_PATTERNS):
            return Outcome.PARKED
        return Outcome.REGISTERED

    return None


class WhoisClient:
    """
    WHOIS lookups against the per-TLD servers in the registry table.

    `server_for` maps a TLD to a "host:port" string and can be replaced to
    point the client somewhere else (a local test server, for instance).
    """

    name = TIER_NAME

    def __init__(
        self,
        connect_timeout: float = WHOIS_CONNECT_TIMEOUT,
        write_timeout: float = WHOIS_WRITE_TIMEOUT,
        read_timeout: float = WHOIS_READ_TIMEOUT,
        server_for: Callable[[str], str] = get_whois_server,
        max_response_bytes: int = MAX_WHOIS_RESPONSE_BYTES,
    ) -> None:
        self._connect_timeout = connect_timeout
        self._write_timeout = write_timeout
        self._read_timeout = read_timeout
        self._server_for = server_for
        self._max_response_bytes = max_response_bytes

    async def _read_response(self, reader: asyncio.StreamReader) -> bytes:
        chunks: list[bytes] = []
        remaining = self._max_response_bytes
        while remaining > 0:
            chunk = await reader.read(min(READ_CHUNK, remaining))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    async def query(self, domain: str) -> str:
        """
        Send a raw WHOIS query and return the response text.

        At most `max_response_bytes` are read; a longer reply is truncated.

        Raises:
            asyncio.TimeoutError: if connect, write or read takes too long.
            OSError: on connection failures.
        """
        try:
            tld = extract_tld(domain)
        except ValueError:
            tld = ""
        host, port = split_host_port(self._server_for(tld))

        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=self._connect_timeout,
        )
        try:
            writer.write(f"{domain}\n".encode())
            await asyncio.wait_for(writer.drain(), timeout=self._write_timeout)

            raw = await asyncio.wait_for(
                self._read_response(reader), timeout=self._read_timeout
            )
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

        return raw.decode("utf-8", errors="replace")

    async def check(self, domain: str) -> TierResult:
        """Check a single domain via WHOIS."""
        try:
            response = await self.query(domain)
        except asyncio.TimeoutError:
            return TierFailure(TIER_NAME, "timeout", "WHOIS query timed out")
        except ValueError as e:
            return TierFailure(TIER_NAME, "protocol", str(e))
        except OSError as e:
            return TierFailure(TIER_NAME, "connection", str(e)[:100])

        outcome = classify_whois_response(response)
        if outcome is None:
            return TierFailure(TIER_NAME, "ambiguous", "unable to determine status")
        return outcome
