"""High-level orchestration for table translation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .batching import DEFAULT_MAX_BATCH_SIZE, build_batches, group_by_language_pair
from .dispatcher import DEFAULT_MAX_CONCURRENCY, ConcurrencyLimiter, Dispatcher
from .languages import validate_language
from .planner import LanguageValidator, RequestBuilder
from .policy import RetryPolicy
from .providers import TranslationProvider
from .reassembly import apply_fill_results, apply_table_results
from .structures import Table, TranslationMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Tuning knobs for one :class:`TableTranslator`.

    ``provider_model`` of ``None`` uses the provider's own default model.
    """

    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    provider_model: Optional[str] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        if self.max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1.")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")


@dataclass
class TranslationSummary:
    """Report returned after translating a table."""

    mode: TranslationMode
    total_rows: int
    total_requests: int
    total_batches: int
    language_pairs: List[str]
    translated_cells: int
    missing_results: int
    peak_concurrency: int
    provider_name: str
    model: Optional[str]
    target_language: Optional[str]
    elapsed_seconds: float


@dataclass
class TranslationOutcome:
    table: Table
    summary: TranslationSummary


def describe_pair(source: Optional[str], target: str) -> str:
    return f"{source or 'auto'}->{target}"


class TableTranslator:
    """Coordinates request building, batching, dispatch, and reassembly."""

    def __init__(
        self,
        provider: TranslationProvider,
        config: OrchestratorConfig | None = None,
        *,
        validator: LanguageValidator = validate_language,
    ) -> None:
        self.provider = provider
        self.config = config or OrchestratorConfig()
        self.validator = validator

    async def translate(
        self,
        table: Table,
        target_language: Optional[str] = None,
    ) -> TranslationOutcome:
        """Translate ``table`` and return a new table with a summary.

        Without ``target_language`` blank cells are filled from their row's
        first non-blank column; with it every distinct cell text is translated
        into that language. Any failure propagates and no partial table is
        returned.
        """

        start_time = time.monotonic()
        mode, requests = RequestBuilder(self.validator).build(table, target_language)
        model = self.config.provider_model or self.provider.default_model

        def summary(**values) -> TranslationSummary:
            base = dict(
                mode=mode,
                total_rows=len(table.rows),
                total_requests=len(requests),
                total_batches=0,
                language_pairs=[],
                translated_cells=0,
                missing_results=0,
                peak_concurrency=0,
                provider_name=self.provider.name,
                model=model,
                target_language=target_language,
            )
            base.update(values)
            return TranslationSummary(
                elapsed_seconds=time.monotonic() - start_time, **base
            )

        if not requests:
            logger.info("Nothing to translate in %d rows.", len(table.rows))
            return TranslationOutcome(table=table.copy(), summary=summary())

        groups = group_by_language_pair(requests)
        pairs = [describe_pair(group.source_lang, group.target_lang) for group in groups]
        for group in groups:
            logger.info(
                "Translating %d texts %s.",
                len(group.requests),
                describe_pair(group.source_lang, group.target_lang),
            )

        batches = build_batches(requests, self.config.max_batch_size)
        limiter = ConcurrencyLimiter(self.config.max_concurrency)
        dispatcher = Dispatcher(
            self.provider,
            limiter=limiter,
            retry=self.config.retry,
            model=self.config.provider_model,
        )
        report = await dispatcher.dispatch(batches)

        if mode is TranslationMode.FILL_MISSING:
            output, written = apply_fill_results(table, requests, report.results)
        else:
            output, written = apply_table_results(table, report.results)

        result = summary(
            total_batches=len(batches),
            language_pairs=pairs,
            translated_cells=written,
            missing_results=len(report.missing),
            peak_concurrency=limiter.peak,
        )
        logger.info(
            "Translated %d cells from %d requests in %d batches (%.2fs).",
            written,
            len(requests),
            len(batches),
            result.elapsed_seconds,
        )
        return TranslationOutcome(table=output, summary=result)
