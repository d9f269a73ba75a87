"""Derive translation requests from a table."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .errors import EmptyInputError
from .languages import validate_language
from .structures import Table, TranslationMode, TranslationRequest

logger = logging.getLogger(__name__)

LanguageValidator = Callable[[str], str]


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class RequestBuilder:
    """Builds translation requests in fill-missing or whole-table mode."""

    def __init__(self, validator: LanguageValidator = validate_language) -> None:
        self.validator = validator
        self._validated: Dict[str, str] = {}

    def _check(self, language: str) -> str:
        if language not in self._validated:
            self._validated[language] = self.validator(language)
        return self._validated[language]

    def build(
        self,
        table: Table,
        target_language: Optional[str] = None,
    ) -> tuple[TranslationMode, List[TranslationRequest]]:
        """Select the mode from ``target_language`` and build its requests."""

        if not table.rows:
            raise EmptyInputError("The table has no data rows.")
        if target_language is None:
            return TranslationMode.FILL_MISSING, self.build_fill_requests(table)
        return (
            TranslationMode.WHOLE_TABLE,
            self.build_table_requests(table, target_language),
        )

    def build_fill_requests(self, table: Table) -> List[TranslationRequest]:
        """One request per blank cell that has a non-blank sibling in its row.

        The first non-blank column (header order) supplies the source text and
        its column name is the source language; the blank column's name is the
        target language. Every column name must be a supported language, even
        in rows that produce no request. Identical texts are not collapsed.
        """

        for column in table.columns:
            self._check(column)

        requests: List[TranslationRequest] = []
        for row_index, row in enumerate(table.rows):
            for target in table.columns:
                if not is_blank(row.get(target)):
                    continue
                source = next(
                    (
                        column
                        for column in table.columns
                        if column != target and not is_blank(row.get(column))
                    ),
                    None,
                )
                if source is None:
                    continue
                requests.append(
                    TranslationRequest(
                        request_id=f"r{row_index}:{target}",
                        row_index=row_index,
                        source_lang=source,
                        target_lang=target,
                        text=row[source],
                    )
                )
        logger.debug(
            "Built %d fill requests from %d rows.", len(requests), len(table.rows)
        )
        return requests

    def build_table_requests(
        self,
        table: Table,
        target_language: str,
    ) -> List[TranslationRequest]:
        """One request per distinct non-blank cell text, in first-seen order."""

        target = self._check(target_language)
        seen: Dict[str, TranslationRequest] = {}
        for row in table.rows:
            for column in table.columns:
                text = row.get(column, "")
                if is_blank(text) or text in seen:
                    continue
                seen[text] = TranslationRequest(
                    request_id=f"t{len(seen)}",
                    row_index=None,
                    source_lang=None,
                    target_lang=target,
                    text=text,
                )
        logger.debug(
            "Built %d whole-table requests for %s.", len(seen), target
        )
        return list(seen.values())


def build_requests(
    table: Table,
    target_language: Optional[str] = None,
    *,
    validator: LanguageValidator = validate_language,
) -> tuple[TranslationMode, List[TranslationRequest]]:
    """Convenience wrapper around :class:`RequestBuilder`."""

    return RequestBuilder(validator).build(table, target_language)
