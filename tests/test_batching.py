import pytest

from csvbabel.batching import BatchBuilder, build_batches, group_by_language_pair
from csvbabel.structures import LangPairGroup, TranslationRequest


def make_requests(count, source="en", target="fr", prefix="r"):
    return [
        TranslationRequest(
            request_id=f"{prefix}{index}",
            row_index=index,
            source_lang=source,
            target_lang=target,
            text=f"text {index}",
        )
        for index in range(count)
    ]


def test_groups_keep_discovery_order():
    requests = [
        *make_requests(2, "en", "fr", "a"),
        *make_requests(1, "en", "es", "b"),
        *make_requests(1, "en", "fr", "c"),
    ]

    groups = group_by_language_pair(requests)

    assert [group.key for group in groups] == [("en", "fr"), ("en", "es")]
    assert [r.request_id for r in groups[0].requests] == ["a0", "a1", "c0"]


def test_batches_partition_group_without_loss_or_overlap():
    group = LangPairGroup("en", "fr", make_requests(23))

    batches = BatchBuilder(10).build(group)

    assert [len(batch.requests) for batch in batches] == [10, 10, 3]
    assert [batch.batch_id for batch in batches] == [1, 2, 3]
    flattened = [r for batch in batches for r in batch.requests]
    assert flattened == group.requests


def test_no_batch_exceeds_max_size_across_groups():
    requests = [
        *make_requests(7, "en", "fr", "a"),
        *make_requests(12, "en", "de", "b"),
        *make_requests(1, None, "it", "c"),
    ]

    batches = build_batches(requests, max_batch_size=5)

    assert all(len(batch.requests) <= 5 for batch in batches)
    assert sorted(r.request_id for b in batches for r in b.requests) == sorted(
        r.request_id for r in requests
    )
    for batch in batches:
        assert all(
            (r.source_lang, r.target_lang) == (batch.source_lang, batch.target_lang)
            for r in batch.requests
        )


def test_empty_input_yields_no_batches():
    assert build_batches([], 10) == []


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        BatchBuilder(0)
