"""Prepper-backed configuration loader for csvbabel."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import TranslationProviderConfigurationError
from .policy import RetryPolicy
from .translator import OrchestratorConfig

APP_NAME = "csvbabel"

PROVIDER_SYNONYMS = {
    "azure_open_ai": "azure_openai",
    "azureopenai": "azure_openai",
    "legacy": "legacy_openai",
    "openai_legacy": "legacy_openai",
    "mock": "echo",
    "noop": "echo",
}


class CsvBabelConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    LLM_PROVIDER: Literal["openai", "azure_openai", "legacy_openai", "echo"] = Field(
        default="openai",
        description="Translation provider selection.",
    )
    AZURE_OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    AZURE_OPENAI_ENDPOINT: str | None = Field(default=None)
    AZURE_OPENAI_API_VERSION: str | None = Field(default=None)
    AZURE_OPENAI_DEPLOYMENT_NAME: str | None = Field(default=None)
    OPENAI_API_KEY: str | None = Field(default=None, secret=True)
    CSVBABEL_MODEL: str | None = Field(
        default=None,
        description="Model identifier; the provider default is used when unset.",
    )
    CSVBABEL_MAX_BATCH_SIZE: int = Field(
        default=10,
        description="Maximum texts sent in one provider call.",
    )
    CSVBABEL_MAX_CONCURRENCY: int = Field(
        default=100,
        description="Maximum provider calls in flight for one table.",
    )
    CSVBABEL_MAX_RETRIES: int = Field(
        default=2,
        description="Retries for a failed batch before the table fails.",
    )
    CSVBABEL_PROVIDER_DEBUG: bool = Field(default=False)
    CSVBABEL_HOST: str = Field(default="0.0.0.0")
    CSVBABEL_PORT: int = Field(default=8000)

    @model_validator(mode="before")
    def _normalise_provider(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("LLM_PROVIDER")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower().replace("-", "_")
                normalized = PROVIDER_SYNONYMS.get(normalized, normalized)
                if normalized not in {"openai", "azure_openai", "legacy_openai", "echo"}:
                    normalized = "openai"
                data["LLM_PROVIDER"] = normalized
        return data


@lru_cache(maxsize=1)
def get_settings(app_dir: Path | None = None) -> CsvBabelConfig:
    """Load YAML, .env and environment layers once and validate them.

    Every setting has a default except the provider credentials, which
    ``_validate_settings`` checks for the selected provider.
    """

    base_dir = app_dir or Path.cwd()
    provenance = ProvenanceRecorder()
    combined: dict[str, Any] = {}
    try:
        _merge_yaml_sources(combined, app_dir=base_dir, provenance=provenance)
        _merge_env_sources(
            combined,
            provenance=provenance,
            app_dir=base_dir,
            schema=CsvBabelConfig,
        )
        settings = CsvBabelConfig.validate(combined, provenance=provenance)
    except IoError as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration files could not be read: {exc}"
        ) from exc
    except SchemaError as exc:
        raise TranslationProviderConfigurationError(
            f"Configuration schema error: {exc}"
        ) from exc
    except ValidationError as exc:
        lines = [
            f"- {'.'.join(str(part) for part in entry.get('path') or [])}: "
            f"{entry.get('message') or entry.get('msg') or 'Invalid value'}"
            for entry in exc.to_dict()
        ]
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n" + "\n".join(lines)
        ) from exc

    _validate_settings(settings)
    return settings


def _merge_yaml_sources(
    target: dict[str, Any],
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> None:
    """Merge YAML files found by Prepper's discovery rules into the target."""

    for path, label in discover_file_paths(
        APP_NAME,
        "yaml",
        app_dir=app_dir,
        extra_paths=None,
    ):
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        merge_layer(
            target,
            parsed,
            provenance=provenance,
            source=_path_to_source(label, "yaml", path),
            layer="file",
        )


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
    schema: type[SchemaModel],
) -> None:
    """Merge .env and process environment variables; later layers win."""

    allowed = set(schema.__field_infos__.keys())

    def merge_values(values: Mapping[str, str | None], *, source_prefix: str) -> None:
        for key, value in sorted(values.items()):
            if value is None or key not in allowed:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{source_prefix}:{key}",
                layer="env",
            )

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        merge_values(dotenv_values(dotenv_path), source_prefix=".env")

    merge_values(dict(os.environ), source_prefix="process")


def _validate_settings(settings: CsvBabelConfig) -> None:
    errors: list[str] = []
    provider = settings.LLM_PROVIDER

    if provider in {"openai", "legacy_openai"} and not settings.OPENAI_API_KEY:
        errors.append(
            f"OPENAI_API_KEY is required when LLM_PROVIDER is '{provider}'."
        )
    elif provider == "azure_openai":
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
            errors.append(
                "The following Azure OpenAI settings must be provided when "
                f"LLM_PROVIDER is 'azure_openai': {', '.join(missing)}."
            )

    for name in ("CSVBABEL_MAX_BATCH_SIZE", "CSVBABEL_MAX_CONCURRENCY"):
        if getattr(settings, name) < 1:
            errors.append(f"{name} must be at least 1.")
    if settings.CSVBABEL_MAX_RETRIES < 0:
        errors.append("CSVBABEL_MAX_RETRIES cannot be negative.")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise TranslationProviderConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )


def build_orchestrator_config(settings: CsvBabelConfig) -> OrchestratorConfig:
    """Translate loaded settings into the orchestrator's explicit config."""

    return OrchestratorConfig(
        max_batch_size=settings.CSVBABEL_MAX_BATCH_SIZE,
        max_concurrency=settings.CSVBABEL_MAX_CONCURRENCY,
        provider_model=settings.CSVBABEL_MODEL,
        retry=RetryPolicy(max_retries=settings.CSVBABEL_MAX_RETRIES),
    )
