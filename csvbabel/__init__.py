"""Translate CSV tables with an LLM translation provider."""

from .structures import Table, TranslationMode
from .translator import OrchestratorConfig, TableTranslator, TranslationOutcome

__all__ = [
    "OrchestratorConfig",
    "Table",
    "TableTranslator",
    "TranslationMode",
    "TranslationOutcome",
]
