"""Supported languages and validation of language names and codes."""

from __future__ import annotations

import re
from typing import Dict, Optional

from .errors import UnsupportedLanguageError

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "af": "Afrikaans",
    "am": "Amharic",
    "ar": "Arabic",
    "az": "Azerbaijani",
    "be": "Belarusian",
    "bg": "Bulgarian",
    "bn": "Bengali",
    "bs": "Bosnian",
    "ca": "Catalan",
    "cs": "Czech",
    "cy": "Welsh",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "eo": "Esperanto",
    "es": "Spanish",
    "et": "Estonian",
    "eu": "Basque",
    "fa": "Persian",
    "fi": "Finnish",
    "fil": "Filipino",
    "fr": "French",
    "ga": "Irish",
    "gl": "Galician",
    "gu": "Gujarati",
    "ha": "Hausa",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "hy": "Armenian",
    "id": "Indonesian",
    "is": "Icelandic",
    "it": "Italian",
    "ja": "Japanese",
    "ka": "Georgian",
    "kk": "Kazakh",
    "km": "Khmer",
    "kn": "Kannada",
    "ko": "Korean",
    "ky": "Kyrgyz",
    "lo": "Lao",
    "lt": "Lithuanian",
    "lv": "Latvian",
    "mk": "Macedonian",
    "ml": "Malayalam",
    "mn": "Mongolian",
    "mr": "Marathi",
    "ms": "Malay",
    "mt": "Maltese",
    "my": "Burmese",
    "ne": "Nepali",
    "nl": "Dutch",
    "no": "Norwegian",
    "pa": "Punjabi",
    "pl": "Polish",
    "ps": "Pashto",
    "pt": "Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "si": "Sinhala",
    "sk": "Slovak",
    "sl": "Slovenian",
    "so": "Somali",
    "sq": "Albanian",
    "sr": "Serbian",
    "sv": "Swedish",
    "sw": "Swahili",
    "ta": "Tamil",
    "te": "Telugu",
    "th": "Thai",
    "tl": "Tagalog",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "ur": "Urdu",
    "uz": "Uzbek",
    "vi": "Vietnamese",
    "xh": "Xhosa",
    "yo": "Yoruba",
    "zh": "Chinese",
    "zu": "Zulu",
}

# Common alternative names; values are codes in SUPPORTED_LANGUAGES.
LANGUAGE_ALIASES: Dict[str, str] = {
    "farsi": "fa",
    "mandarin": "zh",
    "simplified chinese": "zh",
    "traditional chinese": "zh",
    "brazilian portuguese": "pt",
    "norwegian bokmal": "no",
    "nb": "no",
    "nn": "no",
    "iw": "he",
    "castilian": "es",
    "flemish": "nl",
}

_NAME_TO_CODE: Dict[str, str] = {
    name.lower(): code for code, name in SUPPORTED_LANGUAGES.items()
}

# Region (pt-BR, es-419) or script (zh-Hant) qualifiers after the base code.
_QUALIFIED_CODE = re.compile(r"^(?P<base>[a-z]{2,3})-(?:[a-z]{2}|[a-z]{4}|\d{3})$")


def _normalise(value: str) -> str:
    collapsed = re.sub(r"\s+", " ", value.strip().lower())
    return collapsed.replace("_", "-")


def resolve_language(value: str) -> Optional[str]:
    """Return the supported language code for a name or code, if any."""

    normalised = _normalise(value)
    if not normalised:
        return None
    if normalised in SUPPORTED_LANGUAGES:
        return normalised
    if normalised in _NAME_TO_CODE:
        return _NAME_TO_CODE[normalised]
    if normalised in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[normalised]
    match = _QUALIFIED_CODE.match(normalised)
    if match and match.group("base") in SUPPORTED_LANGUAGES:
        return match.group("base")
    return None


def is_supported_language(value: str) -> bool:
    return resolve_language(value) is not None


def validate_language(value: str) -> str:
    """Confirm that ``value`` names a supported language.

    Matching ignores case and surrounding whitespace. The stripped input is
    returned so that callers keep the caller's spelling (column names, for
    instance, must round-trip unchanged).
    """

    if not isinstance(value, str) or resolve_language(value) is None:
        raise UnsupportedLanguageError(str(value))
    return value.strip()


def language_name(value: str) -> str:
    """Return the English name of a supported language."""

    code = resolve_language(value)
    if code is None:
        raise UnsupportedLanguageError(value)
    return SUPPORTED_LANGUAGES[code]
