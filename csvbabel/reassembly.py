"""Write translated texts back into tables."""

from __future__ import annotations

from typing import Dict, Sequence

from .structures import Table, TranslationRequest, TranslationResult


def apply_fill_results(
    table: Table,
    requests: Sequence[TranslationRequest],
    results: Sequence[TranslationResult],
) -> tuple[Table, int]:
    """Write each result into its request's (row, target column) cell.

    Results are matched to requests by id, so identical source texts in
    different rows never swap translations. Requests without a result keep
    their original cell. Returns the new table and the number of cells
    written.
    """

    by_id: Dict[str, TranslationResult] = {}
    for result in results:
        by_id.setdefault(result.request_id, result)

    output = table.copy()
    written = 0
    for request in requests:
        result = by_id.get(request.request_id)
        if result is None or request.row_index is None:
            continue
        output.rows[request.row_index][request.target_lang] = result.translated_text
        written += 1
    return output, written


def apply_table_results(
    table: Table,
    results: Sequence[TranslationResult],
) -> tuple[Table, int]:
    """Replace every cell whose exact text has a translation."""

    lookup: Dict[str, str] = {}
    for result in results:
        lookup.setdefault(result.original_text, result.translated_text)

    output = table.copy()
    written = 0
    for row in output.rows:
        for column in output.columns:
            text = row.get(column)
            if text is not None and text in lookup:
                row[column] = lookup[text]
                written += 1
    return output, written
