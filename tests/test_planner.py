import pytest

from csvbabel.errors import EmptyInputError, UnsupportedLanguageError
from csvbabel.planner import RequestBuilder, build_requests, is_blank
from csvbabel.structures import Table, TranslationMode

from conftest import make_table


def test_fill_mode_uses_first_non_blank_column_as_source():
    table = make_table(["en", "fr", "es"], ["hello", "", ""])

    mode, requests = build_requests(table)

    assert mode is TranslationMode.FILL_MISSING
    assert [(r.source_lang, r.target_lang, r.text) for r in requests] == [
        ("en", "fr", "hello"),
        ("en", "es", "hello"),
    ]
    assert all(r.row_index == 0 for r in requests)


def test_fill_mode_searches_left_to_right_in_same_row():
    table = make_table(
        ["en", "fr", "de"],
        ["", "bonjour", "hallo"],
        ["  ", "", "danke"],
    )

    _, requests = build_requests(table)

    assert [(r.row_index, r.source_lang, r.target_lang, r.text) for r in requests] == [
        (0, "fr", "en", "bonjour"),
        (1, "de", "en", "danke"),
        (1, "de", "fr", "danke"),
    ]


def test_fill_mode_skips_rows_without_any_source():
    table = make_table(["en", "fr", "es"], ["", "", ""])

    _, requests = build_requests(table)

    assert requests == []


def test_fill_mode_keeps_duplicate_texts_as_separate_requests():
    table = make_table(["en", "fr"], ["hello", ""], ["hello", ""])

    _, requests = build_requests(table)

    assert len(requests) == 2
    assert len({r.request_id for r in requests}) == 2


def test_fill_mode_requests_point_at_blank_targets_with_filled_sources():
    table = make_table(
        ["en", "fr", "es", "it"],
        ["one", "", "uno", ""],
        ["", "deux", "", ""],
        ["three", "trois", "tres", "tre"],
    )

    _, requests = build_requests(table)

    for request in requests:
        row = table.rows[request.row_index]
        assert not is_blank(row[request.source_lang])
        assert is_blank(row[request.target_lang])
        assert request.source_lang != request.target_lang


def test_fully_populated_table_produces_no_requests():
    table = make_table(["en", "fr"], ["yes", "oui"], ["no", "non"])

    _, requests = build_requests(table)

    assert requests == []


def test_fill_mode_rejects_unsupported_column_language():
    table = make_table(["en", "klingon"], ["hello", ""])

    with pytest.raises(UnsupportedLanguageError):
        build_requests(table)


def test_fill_mode_rejects_any_non_language_column():
    table = make_table(["en", "fr", "notes"], ["hello", "", "internal"])

    with pytest.raises(UnsupportedLanguageError) as excinfo:
        build_requests(table)
    assert excinfo.value.language == "notes"


def test_fill_mode_validates_columns_even_without_requests():
    table = make_table(["id", "en", "fr"], ["", "", ""])

    with pytest.raises(UnsupportedLanguageError):
        build_requests(table)


def test_whole_table_mode_collapses_duplicate_texts():
    table = make_table(["word"], ["cat"], ["dog"], ["cat"], [""])

    mode, requests = build_requests(table, "french")

    assert mode is TranslationMode.WHOLE_TABLE
    assert [r.text for r in requests] == ["cat", "dog"]
    assert all(r.source_lang is None and r.target_lang == "french" for r in requests)
    assert all(r.row_index is None for r in requests)


def test_whole_table_request_count_matches_distinct_texts():
    table = make_table(
        ["a", "b", "c"],
        ["x", "y", "x"],
        ["z", "", "y"],
        ["x", "w", " "],
    )

    _, requests = build_requests(table, " German ")

    distinct = {
        cell for row in table.rows for cell in row.values() if cell.strip()
    }
    assert len(requests) == len(distinct)
    assert requests[0].target_lang == "German"


def test_whole_table_mode_rejects_unsupported_target():
    table = make_table(["en"], ["hello"])

    with pytest.raises(UnsupportedLanguageError):
        build_requests(table, "Klingon")


def test_empty_table_is_rejected_before_building():
    calls = []

    def validator(value):
        calls.append(value)
        return value

    with pytest.raises(EmptyInputError):
        RequestBuilder(validator).build(Table(columns=["en", "fr"]), "fr")
    assert calls == []
