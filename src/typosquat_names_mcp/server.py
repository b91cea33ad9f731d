"""
Typosquat Names MCP Server

An MCP server that generates typosquat candidates for a domain and resolves
the registration status of domains through a cascade of lookups:

    RDAP -> WHOIS -> DNS + HTTP content probe
"""

import asyncio
import json
import logging

from mcp.server.fastmcp import Context, FastMCP

from . import __version__
from .concurrency import run_batch
from .config import get_batch_size, get_concurrency, get_user_agent, is_debug
from .generators import (
    BUNDLES,
    TRANSFORMATIONS,
    is_valid_domain,
    iter_candidates,
    load_dictionary,
    parse_domain,
    parse_similarity_threshold,
    resolve_transformations,
)
from .models import Outcome, ResolvedCandidate
from .pipeline import PipelineHooks, PipelineOptions, format_result, run_pipeline
from .resolver import StatusResolver
from .tld_registry import get_supported_tlds as _supported_tlds

# Suppress httpx request logging by default
# Set TYPOSQUAT_DEBUG=1 to enable verbose HTTP logging
if not is_debug():
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

VERSION = __version__

# Initialize the MCP server
mcp = FastMCP("typosquat-names")
mcp._mcp_server.version = VERSION

# =============================================================================
# Constants
# =============================================================================

MAX_DOMAINS_PER_CALL = 500
MAX_RESULTS = 1000
DEFAULT_MAX_RESULTS = 50


def _make_resolver() -> StatusResolver:
    return StatusResolver(user_agent=get_user_agent(), concurrency_limit=get_concurrency())


class _ProgressReporter:
    """
    Forwards batch progress to the client as MCP progress notifications.

    The batch runner calls this synchronously, so each notification is
    scheduled as a task; `flush()` waits for the ones still pending.
    """

    def __init__(self, ctx: Context) -> None:
        self._ctx = ctx
        self._pending: list[asyncio.Task] = []

    def __call__(self, completed: int, total: int, domain: str) -> None:
        self._pending.append(
            asyncio.ensure_future(self._ctx.report_progress(completed, total))
        )

    async def flush(self) -> None:
        pending, self._pending = self._pending, []
        for error in await asyncio.gather(*pending, return_exceptions=True):
            if isinstance(error, Exception):
                logger.debug("Progress notification failed: %s", error)


def _normalize_domains(domains: list[str]) -> tuple[list[str], list[str]]:
    """Lowercase, de-duplicate and validate. Returns (valid, invalid)."""
    valid: list[str] = []
    invalid: list[str] = []
    for domain in dict.fromkeys(d.strip().lower().rstrip(".") for d in domains):
        if not domain:
            continue
        if is_valid_domain(domain):
            valid.append(domain)
        else:
            invalid.append(domain)
    return valid, invalid


def _status_counts(outcomes) -> dict[str, int]:
    counts = {outcome.value: 0 for outcome in Outcome}
    for outcome in outcomes:
        counts[outcome.value] += 1
    return counts


def _result_entry(result: ResolvedCandidate) -> dict:
    candidate = result.candidate
    entry = {
        "domain": candidate.domain,
        "transformation": candidate.transformation,
        "similarity": round(candidate.score or 0.0, 4),
    }
    if result.outcome is not None:
        entry["status"] = result.outcome.value
    return entry


# =============================================================================
# MCP Tools
# =============================================================================

@mcp.tool()
def version() -> str:
    """
    Get the version of the Typosquat Names MCP server.

    Returns:
        Version string including server name and version number.
    """
    return f"Typosquat Names MCP Server version {VERSION}"


@mcp.tool()
def get_supported_tlds() -> str:
    """
    Get the TLDs with a known RDAP endpoint or WHOIS server.

    Other TLDs still resolve: they are sent to whois.iana.org and, failing
    that, to the DNS + HTTP check.

    Returns:
        JSON with "rdap" and "whois" lists of TLDs.
    """
    return json.dumps(_supported_tlds())


@mcp.tool()
def get_transformations() -> str:
    """
    Get the typosquat transformations that find_typosquats can apply.

    Returns:
        JSON with transformation names and bundle names ("all" enables every
        transformation).
    """
    return json.dumps({
        "transformations": list(TRANSFORMATIONS),
        "bundles": {name: list(members) for name, members in BUNDLES.items()},
    })


@mcp.tool()
async def check_domain_status(domains: list[str], ctx: Context = None) -> str:
    """
    Resolve the registration status of domains.

    Each domain is reduced to its registrable part (last two labels) and
    checked via RDAP, then WHOIS, then DNS + HTTP.

    Args:
        domains: Full domain names, e.g. ["example.com", "examp1e.net"]
        ctx: MCP request context; progress is reported per resolved domain

    Returns:
        JSON with "results" mapping each domain to one of available,
        registered, parked or timeout, plus "invalid" names and a summary of
        counts per status.
    """
    if not domains:
        return json.dumps({"error": "No domain names provided"})

    valid, invalid = _normalize_domains(domains)
    if not valid:
        return json.dumps({"error": "No valid domain names provided", "invalid": invalid})
    if len(valid) > MAX_DOMAINS_PER_CALL:
        return json.dumps({
            "error": f"Too many domains ({len(valid)}); the limit is {MAX_DOMAINS_PER_CALL}"
        })

    reporter = _ProgressReporter(ctx) if ctx is not None else None
    async with _make_resolver() as resolver:
        resolved = await run_batch(
            valid, resolver.resolve, concurrency_limit=get_concurrency(), on_progress=reporter
        )
    if reporter is not None:
        await reporter.flush()

    statuses = dict(resolved)
    response = {
        # Keep the caller's order rather than completion order
        "results": {domain: statuses[domain].value for domain in valid},
        "summary": {
            "checked": len(valid),
            **_status_counts(statuses.values()),
        },
    }
    if invalid:
        response["invalid"] = invalid

    return json.dumps(response)


@mcp.tool()
async def find_typosquats(
    domain: str,
    transformations: list[str] | None = None,
    max_results: int = DEFAULT_MAX_RESULTS,
    check_status: bool = True,
    only_registered: bool = False,
    only_available: bool = False,
    min_similarity: str | float | None = None,
    batch_size: int | None = None,
    dictionary: list[str] | None = None,
    dictionary_file: str | None = None,
    ctx: Context = None,
) -> str:
    """
    Generate typosquat variants of a domain and optionally check their status.

    Args:
        domain: The domain to protect, e.g. "example.com" (a bare name gets .com)
        transformations: Transformations or bundles to apply (default: ["lookalike"]).
                         Use get_transformations() for the list; "all" enables every one.
        max_results: Stop once this many results are collected (1-1000, default 50)
        check_status: Resolve the registration status of each variant
        only_registered: Only return variants that are not available
                         (registered, parked or timeout)
        only_available: Only return variants that are available
        min_similarity: Drop variants less similar than this, as "0.73" or "73%"
        batch_size: Variants resolved per group (default from config)
        dictionary: Words for combosquatting (default: a built-in list of
                    brand-abuse words such as "login" and "secure")
        dictionary_file: Path to a word list, one word per line (blank lines and
                         #-comments skipped); its words are added to `dictionary`
        ctx: MCP request context; progress is reported per resolved variant

    Returns:
        JSON with structured "results", formatted "lines"
        ("<score>%, <domain>, <transformation>, <status>") and a summary.
    """
    name, tld = parse_domain(domain or "")
    original = f"{name}.{tld}"
    if not name or not is_valid_domain(original):
        return json.dumps({"error": f"Invalid domain: '{domain}'"})

    if not 1 <= max_results <= MAX_RESULTS:
        return json.dumps({"error": f"max_results must be between 1 and {MAX_RESULTS}"})

    try:
        enabled = resolve_transformations(transformations)
        threshold = (
            parse_similarity_threshold(str(min_similarity))
            if min_similarity not in (None, "")
            else None
        )
        options = PipelineOptions(
            output_count=max_results,
            batch_size=batch_size if batch_size is not None else get_batch_size(),
            concurrency_limit=get_concurrency(),
            check_status=check_status,
            only_registered=only_registered,
            only_available=only_available,
        )
    except ValueError as e:
        return json.dumps({"error": str(e)})

    words = [w.strip().lower() for w in dictionary if w.strip()] if dictionary else []
    if dictionary_file:
        try:
            words.extend(load_dictionary(dictionary_file))
        except (OSError, UnicodeError) as e:
            return json.dumps({"error": f"Cannot read dictionary file: {e}"})
        if not words:
            return json.dumps({"error": f"Dictionary file is empty: '{dictionary_file}'"})
    candidates = iter_candidates(
        original, enabled, min_similarity=threshold, dictionary=words or None
    )

    if options.check_status:
        reporter = _ProgressReporter(ctx) if ctx is not None else None
        hooks = PipelineHooks(on_progress=reporter)
        async with _make_resolver() as resolver:
            outcome = await run_pipeline(candidates, resolver.resolve, options, hooks)
        if reporter is not None:
            await reporter.flush()
    else:
        outcome = await run_pipeline(candidates, None, options)

    logger.info(
        "%s: %d results from %d candidates", original, len(outcome.results),
        outcome.candidates_consumed,
    )

    summary = {
        "returned": len(outcome.results),
        "candidatesGenerated": outcome.candidates_consumed,
        "domainsResolved": outcome.domains_resolved,
        "groups": outcome.groups_dispatched,
    }
    if options.check_status:
        summary.update(
            _status_counts(r.outcome for r in outcome.results if r.outcome is not None)
        )

    return json.dumps({
        "domain": original,
        "transformations": enabled,
        "results": [_result_entry(r) for r in outcome.results],
        "lines": [format_result(r) for r in outcome.results],
        "summary": summary,
    })
