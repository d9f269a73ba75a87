"""Shared fixtures and fake providers for csvbabel tests."""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from csvbabel.errors import TranslationProviderError
from csvbabel.providers import TranslationProvider
from csvbabel.structures import Batch, Table, TranslationResult


class FakeProvider(TranslationProvider):
    """Translates through a lookup table and records every call.

    ``translations`` maps ``(source, target, text)`` to the translated text;
    texts without an entry come back upper-cased with the target appended.
    """

    name = "fake"
    default_model = "fake-model"

    def __init__(
        self,
        translations: Optional[Dict[Tuple[Optional[str], str, str], str]] = None,
        *,
        delay: float = 0.0,
        fail_on: Optional[Callable[[Batch], bool]] = None,
    ) -> None:
        self.translations = translations or {}
        self.delay = delay
        self.fail_on = fail_on
        self.calls: List[Batch] = []
        self.in_flight = 0
        self.peak = 0

    async def translate(self, batch, *, model=None):
        self.calls.append(batch)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_on is not None and self.fail_on(batch):
                raise TranslationProviderError(
                    f"provider rejected batch {batch.batch_id}"
                )
            return [
                TranslationResult(
                    request_id=request.request_id,
                    original_text=request.text,
                    translated_text=self.translations.get(
                        (batch.source_lang, batch.target_lang, request.text),
                        f"{request.text.upper()}[{batch.target_lang}]",
                    ),
                )
                for request in batch.requests
            ]
        finally:
            self.in_flight -= 1


def make_table(columns, *rows):
    return Table(columns=list(columns), rows=[dict(zip(columns, row)) for row in rows])


@pytest.fixture
def fake_provider():
    return FakeProvider()
