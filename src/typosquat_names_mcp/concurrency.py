"""
Bounded-concurrency batch runner.

Starts one task per domain, but a task only starts resolving once it holds
one of `concurrency_limit` permits, so extra work waits in line instead of
opening more sockets. Results come back in completion order.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from .models import Outcome

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 15

ResolveFn = Callable[[str], Awaitable[Outcome]]
ProgressFn = Callable[[int, int, str], None]


class BatchRunner:
    """
    Runs resolutions with at most `concurrency_limit` in flight.

    The `completed` counter only ever grows, including across batches, so it
    can drive a progress display for a whole pipeline run.
    """

    def __init__(
        self,
        resolve: ResolveFn,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
        on_progress: ProgressFn | None = None,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {concurrency_limit}")
        self._resolve = resolve
        self._limit = concurrency_limit
        self._on_progress = on_progress
        self._completed = 0
        self._in_flight = 0
        self._peak_in_flight = 0

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def completed(self) -> int:
        """Number of resolutions finished so far."""
        return self._completed

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of resolutions that ran at the same time."""
        return self._peak_in_flight

    async def _run_one(
        self, semaphore: asyncio.Semaphore, domain: str, total: int
    ) -> tuple[str, Outcome]:
        async with semaphore:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
            try:
                outcome = await self._resolve(domain)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Resolution of %s raised; reporting it as registered", domain)
                outcome = Outcome.REGISTERED
            finally:
                self._in_flight -= 1

        self._completed += 1
        if self._on_progress:
            self._on_progress(self._completed, total, domain)
        return domain, outcome

    async def run_batch(self, domains: Iterable[str]) -> list[tuple[str, Outcome]]:
        """
        Resolve every domain in the batch.

        Returns:
            (domain, outcome) pairs in completion order, one per input domain.
        """
        domains = list(domains)
        if not domains:
            return []

        semaphore = asyncio.Semaphore(self._limit)
        total = self._completed + len(domains)
        tasks = [
            asyncio.ensure_future(self._run_one(semaphore, domain, total))
            for domain in domains
        ]

        logger.debug("Dispatching %d domains (limit %d)", len(domains), self._limit)

        results: list[tuple[str, Outcome]] = []
        try:
            for finished in asyncio.as_completed(tasks):
                results.append(await finished)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return results


async def run_batch(
    domains: Iterable[str],
    resolve: ResolveFn,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
    on_progress: ProgressFn | None = None,
) -> list[tuple[str, Outcome]]:
    """
    Convenience function for a one-off batch without keeping a runner around.
    """
    runner = BatchRunner(resolve, concurrency_limit=concurrency_limit, on_progress=on_progress)
    return await runner.run_batch(domains)
