"""
Batch pipeline from candidate stream to filtered results.

Candidates are pulled from a (possibly endless) iterable a group at a time.
Each group is resolved under the concurrency limit, filtered, and the
pipeline stops pulling as soon as `output_count` matching results exist. It
never drains the stream first and truncates afterwards.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .concurrency import DEFAULT_CONCURRENCY, BatchRunner, ResolveFn
from .models import DomainCandidate, Outcome, ResolvedCandidate

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 20


@dataclass
class PipelineOptions:
    """Parameters that control a pipeline run."""

    output_count: int | None = None  # None = no limit
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency_limit: int = DEFAULT_CONCURRENCY
    check_status: bool = True
    only_registered: bool = False
    only_available: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.output_count is not None and self.output_count < 0:
            raise ValueError(f"output_count cannot be negative, got {self.output_count}")
        if self.only_registered and self.only_available:
            raise ValueError("only_registered and only_available are mutually exclusive")
        # Status filters need statuses
        if self.only_registered or self.only_available:
            self.check_status = True


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (streaming output, progress)."""

    on_result: Callable[[ResolvedCandidate], None] | None = None
    on_progress: Callable[[int, int, str], None] | None = None


@dataclass
class PipelineResult:
    """Output of a pipeline run."""

    results: list[ResolvedCandidate] = field(default_factory=list)
    groups_dispatched: int = 0
    candidates_consumed: int = 0
    domains_resolved: int = 0


def matches_filter(outcome: Outcome | None, options: PipelineOptions) -> bool:
    """
    Apply the status filters.

    "Registered" here means anything that isn't available, so parked and
    timed-out domains are kept by `only_registered`.
    """
    if options.only_registered:
        return outcome is not None and outcome != Outcome.AVAILABLE
    if options.only_available:
        return outcome == Outcome.AVAILABLE
    return True


def format_result(result: ResolvedCandidate) -> str:
    """Render "<score>%, <domain>, <transformation>[, <status>]"."""
    candidate = result.candidate
    score = (candidate.score or 0.0) * 100.0
    line = f"{score:.2f}%, {candidate.domain}, {candidate.transformation}"
    if result.outcome is not None:
        line += f", {result.outcome.value}"
    return line


def _take_group(
    stream: Iterable[DomainCandidate], size: int, seen: set[str]
) -> tuple[list[DomainCandidate], int]:
    """Pull up to `size` not-yet-seen candidates; also return how many were consumed."""
    group: list[DomainCandidate] = []
    consumed = 0
    while len(group) < size:
        chunk = list(itertools.islice(stream, size - len(group)))
        if not chunk:
            break
        consumed += len(chunk)
        for candidate in chunk:
            if candidate.domain in seen:
                continue
            seen.add(candidate.domain)
            group.append(candidate)
    return group, consumed


async def run_pipeline(
    candidates: Iterable[DomainCandidate],
    resolve: ResolveFn | None,
    options: PipelineOptions | None = None,
    hooks: PipelineHooks | None = None,
) -> PipelineResult:
    """
    Resolve and filter candidates until enough results are collected.

    Args:
        candidates: Candidate stream; consumed lazily, group by group
        resolve: Coroutine mapping a domain to its Outcome (unused when
            status checking is off)
        options: Batch size, limits and filters
        hooks: Streaming callbacks
    """
    options = options or PipelineOptions()
    hooks = hooks or PipelineHooks()
    summary = PipelineResult()

    if options.check_status and resolve is None:
        raise ValueError("A resolve function is required when check_status is enabled")

    runner = (
        BatchRunner(resolve, options.concurrency_limit, on_progress=hooks.on_progress)
        if options.check_status
        else None
    )

    stream = iter(candidates)
    seen: set[str] = set()

    def remaining() -> int | None:
        if options.output_count is None:
            return None
        return options.output_count - len(summary.results)

    def accept(resolved: ResolvedCandidate) -> None:
        summary.results.append(resolved)
        if hooks.on_result:
            hooks.on_result(resolved)

    while True:
        slots = remaining()
        if slots is not None and slots <= 0:
            break

        group_size = options.batch_size if slots is None else min(options.batch_size, slots)
        group, consumed = _take_group(stream, group_size, seen)
        summary.candidates_consumed += consumed
        if not group:
            break

        summary.groups_dispatched += 1

        if runner is None:
            for candidate in group:
                accept(ResolvedCandidate(candidate))
            continue

        by_domain = {candidate.domain: candidate for candidate in group}
        resolved = await runner.run_batch(by_domain)
        summary.domains_resolved += len(resolved)

        for domain, outcome in resolved:
            slots = remaining()
            if slots is not None and slots <= 0:
                break
            if matches_filter(outcome, options):
                accept(ResolvedCandidate(by_domain[domain], outcome))

        logger.info(
            "Group %d: %d resolved, %d results so far",
            summary.groups_dispatched,
            len(resolved),
            len(summary.results),
        )

    return summary
