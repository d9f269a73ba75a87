"""Bounded-concurrency dispatch of batches to a translation provider."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Sequence

from .errors import TranslationProviderError
from .policy import RetryPolicy
from .providers import TranslationProvider
from .structures import Batch, TranslationResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 100

Sleeper = Callable[[float], Awaitable[None]]


class ConcurrencyLimiter:
    """A permit pool shared by every batch of one orchestration run."""

    def __init__(self, limit: int = DEFAULT_MAX_CONCURRENCY) -> None:
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1.")
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self.in_flight = 0
        self.peak = 0

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self._semaphore.acquire()
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.in_flight -= 1
        self._semaphore.release()


@dataclass
class DispatchReport:
    """Results of a dispatch plus bookkeeping about the provider's replies."""

    results: List[TranslationResult] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    unexpected: List[str] = field(default_factory=list)
    attempts: int = 0


class Dispatcher:
    """Sends batches to the provider without exceeding the permit pool.

    All batches are awaited together and the first failure propagates. Batches
    already in flight are left to finish; their results are discarded.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        *,
        limiter: ConcurrencyLimiter,
        retry: RetryPolicy | None = None,
        model: str | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.limiter = limiter
        self.retry = retry or RetryPolicy()
        self.model = model
        self._sleep = sleep

    async def dispatch(self, batches: Sequence[Batch]) -> DispatchReport:
        report = DispatchReport()
        if not batches:
            return report
        outcomes = await asyncio.gather(
            *(self._run_batch(batch, report) for batch in batches)
        )
        for batch, results in zip(batches, outcomes):
            report.results.extend(self._reconcile(batch, results, report))
        return report

    async def _run_batch(
        self,
        batch: Batch,
        report: DispatchReport,
    ) -> List[TranslationResult]:
        attempt = 0
        while True:
            report.attempts += 1
            try:
                async with self.limiter:
                    results = await self.provider.translate(batch, model=self.model)
            except TranslationProviderError as exc:
                attempt += 1
                if not self.retry.should_retry(attempt):
                    logger.error(
                        "Batch %d for %s to %s failed: %s",
                        batch.batch_id,
                        batch.source_lang or "auto",
                        batch.target_lang,
                        exc,
                    )
                    raise
                delay = self.retry.delay_for(attempt)
                logger.warning(
                    "Batch %d for %s to %s failed (attempt %d of %d): %s. "
                    "Retrying in %.1fs.",
                    batch.batch_id,
                    batch.source_lang or "auto",
                    batch.target_lang,
                    attempt,
                    self.retry.max_retries + 1,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                continue
            logger.info(
                "Translated batch %d for %s to %s (%d texts).",
                batch.batch_id,
                batch.source_lang or "auto",
                batch.target_lang,
                len(batch.requests),
            )
            return list(results)

    @staticmethod
    def _reconcile(
        batch: Batch,
        results: Sequence[TranslationResult],
        report: DispatchReport,
    ) -> List[TranslationResult]:
        """Keep one result per request id of the batch, in batch order."""

        by_id: Dict[str, TranslationResult] = {}
        for result in results:
            if result.request_id in by_id:
                continue
            by_id[result.request_id] = result

        expected = {request.request_id for request in batch.requests}
        for request_id in by_id:
            if request_id not in expected:
                report.unexpected.append(request_id)
                logger.warning(
                    "Ignoring translation for unknown id %s in batch %d.",
                    request_id,
                    batch.batch_id,
                )

        reconciled: List[TranslationResult] = []
        for request in batch.requests:
            result = by_id.get(request.request_id)
            if result is None:
                report.missing.append(request.request_id)
                logger.warning(
                    "Translation missing for %s in batch %d; leaving it unchanged.",
                    request.request_id,
                    batch.batch_id,
                )
                continue
            reconciled.append(
                TranslationResult(
                    request_id=request.request_id,
                    original_text=request.text,
                    translated_text=result.translated_text,
                )
            )
        return reconciled
