"""Error definitions for the csvbabel translator."""

from __future__ import annotations

from enum import Enum, auto


class ErrorCategory(Enum):
    """Categorises runtime errors so callers can map them to responses."""

    VALIDATION = auto()
    CONFIGURATION = auto()
    FILE_IO = auto()
    TRANSLATION = auto()
    OTHER = auto()


class CsvBabelError(Exception):
    """Base exception for all custom errors."""

    category: ErrorCategory = ErrorCategory.OTHER


class ValidationError(CsvBabelError):
    """Raised when input data or a request cannot be accepted."""

    category = ErrorCategory.VALIDATION


class EmptyInputError(ValidationError):
    """Raised when a table has no data rows."""


class UnsupportedLanguageError(ValidationError):
    """Raised when a language name or code is not in the supported set."""

    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: '{language}'.")
        self.language = language


class InvalidRequestError(ValidationError):
    """Raised when an incoming request has the wrong shape."""


class UnsupportedFileTypeError(ValidationError):
    """Raised when a file reference is not a CSV file."""


class FileDownloadError(CsvBabelError):
    """Raised when a referenced file cannot be retrieved."""

    category = ErrorCategory.FILE_IO


class TranslationProviderConfigurationError(CsvBabelError):
    """Raised when the translation provider is misconfigured."""

    category = ErrorCategory.CONFIGURATION


class TranslationProviderError(CsvBabelError):
    """Raised when the translation provider fails."""

    category = ErrorCategory.TRANSLATION
