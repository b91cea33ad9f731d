"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • anyio_backend        : run async tests on asyncio only
  • fake_tier            : scripted lookup tier that records its calls
  • whois_server         : local TCP server answering WHOIS queries
  • isolated_config      : config dir in tmp_path with TYPOSQUAT_* unset
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from typosquat_names_mcp.models import Outcome, TierFailure, TierResult


@pytest.fixture
def anyio_backend():
    # The engine uses asyncio primitives directly
    return "asyncio"


# ---------------------------------------------------------------------------
# Scripted tiers
# ---------------------------------------------------------------------------

class FakeTier:
    """A lookup tier returning (or raising) a scripted result."""

    def __init__(
        self,
        name: str,
        result: TierResult | Exception | Callable[[str], TierResult],
        delay: float = 0.0,
        log: list[str] | None = None,
    ) -> None:
        self.name = name
        self._result = result
        self._delay = delay
        self.calls: list[str] = []
        self._log = log

    async def check(self, domain: str) -> TierResult:
        self.calls.append(domain)
        if self._log is not None:
            self._log.append(f"{self.name}:start")
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._log is not None:
            self._log.append(f"{self.name}:end")
        if isinstance(self._result, Exception):
            raise self._result
        if callable(self._result) and not isinstance(self._result, (Outcome, TierFailure)):
            return self._result(domain)
        return self._result


@pytest.fixture
def fake_tier():
    return FakeTier


# ---------------------------------------------------------------------------
# Local WHOIS server
# ---------------------------------------------------------------------------

@pytest.fixture
async def whois_server():
    """
    Start a WHOIS server on 127.0.0.1 and yield its mutable state.

    Set `state["reply"]` to the text to answer with, or `state["hang"]` to
    never answer. Received queries are collected in `state["queries"]`.
    `state["address"]` is "host:port".
    """
    state: dict = {"reply": "", "queries": [], "hang": False}
    release = asyncio.Event()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        line = await reader.readline()
        state["queries"].append(line.decode())
        if state["hang"]:
            await release.wait()
        try:
            writer.write(state["reply"].encode())
            await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    host, port = server.sockets[0].getsockname()[:2]
    state["address"] = f"{host}:{port}"
    try:
        yield state
    finally:
        release.set()
        server.close()
        await server.wait_closed()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------

@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config dir at tmp_path and clear the TYPOSQUAT_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    for var in (
        "TYPOSQUAT_CONCURRENCY",
        "TYPOSQUAT_BATCH_SIZE",
        "TYPOSQUAT_USER_AGENT",
        "TYPOSQUAT_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path
