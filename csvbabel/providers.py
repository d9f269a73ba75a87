"""Translation provider abstractions."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List

from .errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from .structures import Batch, TranslationResult

if TYPE_CHECKING:  # pragma: no cover
    from .configuration import CsvBabelConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional translator capable of providing accurate and "
    "context-aware translations. Return only JSON. "
    "Translate every provided segment from the source language into the target "
    "language, preserving the original meaning, formatting, placeholders and "
    "numbers. When no source language is given, detect it per segment. "
    "Respond strictly with an object shaped as "
    '{"translations": [{"id": "...", "translated": "..."}]} '
    "containing exactly one entry per input id. "
    "Do not add commentary. Do not wrap the JSON in markdown code fences."
)

TRANSLATION_SCHEMA: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "translation_output",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "translations": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string"},
                            "translated": {"type": "string"},
                        },
                        "required": ["id", "translated"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["translations"],
            "additionalProperties": False,
        },
    },
}


class TranslationProvider(ABC):
    """Abstract adapter for translation providers."""

    name = "provider"
    default_model: str | None = None

    @abstractmethod
    async def translate(
        self,
        batch: Batch,
        *,
        model: str | None = None,
    ) -> List[TranslationResult]:
        """Translate one batch and return results keyed by request id."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for testing)."""

    name = "echo"

    async def translate(
        self,
        batch: Batch,
        *,
        model: str | None = None,
    ) -> List[TranslationResult]:
        return [
            TranslationResult(
                request_id=request.request_id,
                original_text=request.text,
                translated_text=request.text,
            )
            for request in batch.requests
        ]


class OpenAITranslationProvider(TranslationProvider):
    """Translation provider that uses OpenAI models through the Responses API."""

    name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        settings: "CsvBabelConfig | None" = None,
        *,
        client: Any = None,
        default_model: str | None = None,
        debug: bool = False,
    ) -> None:
        self.debug = debug
        if client is not None:
            self._client = client
            self.default_model = default_model or self.DEFAULT_MODEL
            return
        if settings is None:
            raise TranslationProviderConfigurationError(
                "OpenAI provider requires settings or an explicit client."
            )
        self._client, built_model = self._build_client(settings)
        self.default_model = default_model or settings.CSVBABEL_MODEL or built_model

    def _build_client(self, settings: "CsvBabelConfig") -> tuple[Any, str]:
        if settings.LLM_PROVIDER == "azure_openai":
            return self._build_azure_client(settings)
        return self._build_openai_client(settings)

    def _build_openai_client(self, settings: "CsvBabelConfig") -> tuple[Any, str]:
        if not settings.OPENAI_API_KEY:
            raise TranslationProviderConfigurationError(
                "OpenAI configuration missing. Set OPENAI_API_KEY or choose a "
                "different provider."
            )
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=settings.OPENAI_API_KEY), self.DEFAULT_MODEL

    def _build_azure_client(self, settings: "CsvBabelConfig") -> tuple[Any, str]:
        missing = [
            name
            for name, value in {
                "AZURE_OPENAI_API_KEY": settings.AZURE_OPENAI_API_KEY,
                "AZURE_OPENAI_ENDPOINT": settings.AZURE_OPENAI_ENDPOINT,
                "AZURE_OPENAI_API_VERSION": settings.AZURE_OPENAI_API_VERSION,
                "AZURE_OPENAI_DEPLOYMENT_NAME": settings.AZURE_OPENAI_DEPLOYMENT_NAME,
            }.items()
            if not value
        ]
        if missing:
            raise TranslationProviderConfigurationError(
                "Azure OpenAI configuration incomplete. Please set: "
                + ", ".join(missing)
                + "."
            )
        from openai import AsyncAzureOpenAI

        client = AsyncAzureOpenAI(
            api_key=settings.AZURE_OPENAI_API_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
        )
        return client, settings.AZURE_OPENAI_DEPLOYMENT_NAME  # type: ignore[return-value]

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()

    def build_payload(self, batch: Batch) -> Dict[str, Any]:
        return {
            "source_language": batch.source_lang,
            "target_language": batch.target_lang,
            "segments": [
                {"id": request.request_id, "text": request.text}
                for request in batch.requests
            ],
        }

    async def translate(
        self,
        batch: Batch,
        *,
        model: str | None = None,
    ) -> List[TranslationResult]:
        if not batch.requests:
            return []

        payload = self.build_payload(batch)
        self._log_debug("provider.request.payload", payload)

        response_items = await self._invoke_model(
            system_prompt=SYSTEM_PROMPT,
            user_payload=payload,
            model=model or self.default_model,
        )
        self._log_debug("provider.response.items", response_items)

        originals = {request.request_id: request.text for request in batch.requests}
        results: List[TranslationResult] = []
        for item in response_items:
            if not isinstance(item, dict):
                raise TranslationProviderError(
                    "Translation provider response malformed: expected objects."
                )
            request_id = item.get("id")
            translated = item.get("translated")
            if not isinstance(request_id, str) or not isinstance(translated, str):
                raise TranslationProviderError(
                    "Translation provider response malformed: missing fields."
                )
            results.append(
                TranslationResult(
                    request_id=request_id,
                    original_text=originals.get(request_id, ""),
                    translated_text=translated,
                )
            )
        return results

    async def _invoke_model(
        self,
        *,
        system_prompt: str,
        user_payload: dict,
        model: str | None,
    ) -> list[dict[str, Any]]:
        """Call the OpenAI Responses API and return structured JSON data."""

        try:
            response = await self._client.responses.create(
                model=model,
                input=[
                    {
                        "role": "system",
                        "content": [{"type": "input_text", "text": system_prompt}],
                    },
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_text",
                                "text": json.dumps(user_payload, ensure_ascii=False),
                            }
                        ],
                    },
                ],
            )
        except Exception as exc:
            raise TranslationProviderError(
                f"Translation service unavailable: {exc}"
            ) from exc
        return self._extract_translations(response)

    def _log_debug(self, label: str, payload: Any) -> None:
        if not self.debug:
            return
        try:
            message = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            message = repr(payload)
        logger.debug("%s:\n%s", label, message)

    @staticmethod
    def _unwrap(value: Any) -> Any:
        # SDK objects expose payloads through a ``value`` attribute.
        return value.value if hasattr(value, "value") else value

    @staticmethod
    def _strip_code_fence(text: str) -> str:
        """Remove leading/trailing markdown code fences if present."""

        stripped = text.strip()
        if not stripped.startswith("```"):
            return stripped
        first_newline = stripped.find("\n")
        if first_newline == -1:
            return stripped
        body = stripped[first_newline + 1:]
        closing_index = body.rfind("```")
        if closing_index != -1:
            body = body[:closing_index]
        return body.strip()

    def _extract_translations(self, response: Any) -> list[dict[str, Any]]:
        """Find the translation list in a Responses API result."""

        for item in getattr(response, "output", None) or []:
            for part in getattr(item, "content", None) or []:
                text_value = self._unwrap(getattr(part, "text", None))
                if text_value:
                    try:
                        return self._normalise_translations(str(text_value))
                    except TranslationProviderError:
                        continue

        output_text = self._unwrap(getattr(response, "output_text", None))
        if output_text:
            return self._normalise_translations(str(output_text))

        raise TranslationProviderError(
            "Translation provider response empty or unrecognised."
        )

    def _normalise_translations(self, payload: Any) -> list[dict[str, Any]]:
        """Normalise raw payloads into a list of translation dictionaries."""

        if isinstance(payload, str):
            try:
                payload = json.loads(self._strip_code_fence(payload))
            except json.JSONDecodeError as exc:
                raise TranslationProviderError(
                    f"Translation provider returned invalid JSON: {exc}"
                ) from exc

        if isinstance(payload, dict):
            translations = payload.get("translations")
            if isinstance(translations, list):
                return translations

        if isinstance(payload, list):
            return payload

        raise TranslationProviderError(
            "Translation provider response malformed: could not find translations list."
        )


class LegacyOpenAITranslationProvider(OpenAITranslationProvider):
    """Uses Chat Completions with a strict JSON schema response format."""

    name = "legacy_openai"

    async def _invoke_model(
        self,
        *,
        system_prompt: str,
        user_payload: dict,
        model: str | None,
    ) -> list[dict[str, Any]]:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=0,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": json.dumps(user_payload, ensure_ascii=False),
                    },
                ],
                response_format=TRANSLATION_SCHEMA,
            )
        except Exception as exc:
            raise TranslationProviderError(
                f"Translation service unavailable: {exc}"
            ) from exc

        for choice in getattr(response, "choices", None) or []:
            message = getattr(choice, "message", None)
            content = self._unwrap(getattr(message, "content", None))
            if content:
                return self._normalise_translations(str(content))

        raise TranslationProviderError(
            "Translation provider response empty or unrecognised."
        )


def build_provider(
    name: str | None,
    settings: "CsvBabelConfig | None" = None,
    *,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "openai").strip().lower().replace("-", "_")
    if normalized in {"openai", "azure_openai", "gpt", "default"}:
        return OpenAITranslationProvider(settings, debug=debug)
    if normalized in {"legacy_openai", "legacy", "openai_legacy", "chat"}:
        return LegacyOpenAITranslationProvider(settings, debug=debug)
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    raise TranslationProviderConfigurationError(
        f"Unknown translation provider '{name}'."
    )
