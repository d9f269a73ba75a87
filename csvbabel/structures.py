"""Core data structures for the csvbabel translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


Row = Dict[str, str]
LanguagePair = Tuple[Optional[str], str]


class TranslationMode(Enum):
    """How requests are derived from a table."""

    FILL_MISSING = "fill_missing"
    WHOLE_TABLE = "whole_table"


@dataclass
class Table:
    """Ordered rows sharing one header of column names."""

    columns: List[str]
    rows: List[Row] = field(default_factory=list)

    def copy(self) -> "Table":
        return Table(columns=list(self.columns), rows=[dict(row) for row in self.rows])

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class TranslationRequest:
    """A single text to translate.

    ``source_lang`` is ``None`` when the source language is left for the
    provider to detect. ``row_index`` is ``None`` for requests that are not
    tied to one cell.
    """

    request_id: str
    row_index: Optional[int]
    source_lang: Optional[str]
    target_lang: str
    text: str

    @property
    def language_pair(self) -> LanguagePair:
        return (self.source_lang, self.target_lang)


@dataclass
class LangPairGroup:
    """All requests sharing one (source, target) pair, in discovery order."""

    source_lang: Optional[str]
    target_lang: str
    requests: List[TranslationRequest] = field(default_factory=list)

    @property
    def key(self) -> LanguagePair:
        return (self.source_lang, self.target_lang)


@dataclass
class Batch:
    """A contiguous slice of a language pair group sent in one provider call."""

    batch_id: int
    source_lang: Optional[str]
    target_lang: str
    requests: List[TranslationRequest]

    @property
    def texts(self) -> List[str]:
        return [request.text for request in self.requests]


@dataclass(frozen=True)
class TranslationResult:
    """A translated text correlated with the request that produced it."""

    request_id: str
    original_text: str
    translated_text: str
