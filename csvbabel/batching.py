"""Language pair grouping and batching utilities."""

from __future__ import annotations

from typing import Dict, List, Sequence

from .structures import (
    Batch,
    LangPairGroup,
    LanguagePair,
    TranslationRequest,
)

DEFAULT_MAX_BATCH_SIZE = 10


def group_by_language_pair(
    requests: Sequence[TranslationRequest],
) -> List[LangPairGroup]:
    """Group requests by (source, target) pair in order of first discovery."""

    groups: Dict[LanguagePair, LangPairGroup] = {}
    for request in requests:
        key = request.language_pair
        group = groups.get(key)
        if group is None:
            group = LangPairGroup(source_lang=key[0], target_lang=key[1])
            groups[key] = group
        group.requests.append(request)
    return list(groups.values())


class BatchBuilder:
    """Splits a language pair group into consecutive fixed-size batches."""

    def __init__(self, max_batch_size: int = DEFAULT_MAX_BATCH_SIZE) -> None:
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1.")
        self.max_batch_size = max_batch_size

    def build(self, group: LangPairGroup) -> List[Batch]:
        batches: List[Batch] = []
        size = self.max_batch_size
        for batch_id, start in enumerate(range(0, len(group.requests), size), start=1):
            batches.append(
                Batch(
                    batch_id=batch_id,
                    source_lang=group.source_lang,
                    target_lang=group.target_lang,
                    requests=list(group.requests[start:start + size]),
                )
            )
        return batches


def build_batches(
    requests: Sequence[TranslationRequest],
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> List[Batch]:
    """Group requests by language pair and batch every group."""

    builder = BatchBuilder(max_batch_size)
    batches: List[Batch] = []
    for group in group_by_language_pair(requests):
        batches.extend(builder.build(group))
    return batches
