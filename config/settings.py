"""Settings management utilities for Prompt Nest configuration.

Updates:
  v0.3.0 - 2026-03-02 - Expose semantic thresholds, prompt cap, and label vocabulary.
  v0.2.1 - 2026-02-20 - Read optional ``.env`` values through python-dotenv.
  v0.2.0 - 2026-02-11 - Add JSON configuration source with env alias fallbacks.
  v0.1.0 - 2026-02-04 - Initial settings model for storage and embedding backends.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, cast

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_EMBEDDING_BACKEND = "sentence-transformers"
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_STORAGE_PATH = Path("data") / "prompt_nest.json"
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024
DEFAULT_TAG_LABELS: tuple[str, ...] = (
    "coding",
    "study",
    "career",
    "creative",
    "general",
    "debugging",
    "explanation",
    "interview",
)
DEFAULT_SEARCH_THRESHOLD = 0.25
DEFAULT_DUPLICATE_THRESHOLD = 0.92
DEFAULT_TAG_THRESHOLD = 0.4
DEFAULT_MAX_SUGGESTED_TAGS = 2
DEFAULT_SEMANTIC_PROMPT_CAP = 200

_ENV_ALIASES: dict[str, list[str]] = {
    "storage_path": ["STORAGE_PATH", "storage_path", "DB_PATH", "db_path"],
    "storage_quota_bytes": ["STORAGE_QUOTA_BYTES", "storage_quota_bytes"],
    "embedding_backend": ["EMBEDDING_BACKEND", "embedding_backend"],
    "embedding_model": ["EMBEDDING_MODEL", "embedding_model"],
    "embedding_device": ["EMBEDDING_DEVICE", "embedding_device"],
    "tag_labels": ["TAG_LABELS", "tag_labels"],
    "search_threshold": ["SEARCH_THRESHOLD", "search_threshold"],
    "duplicate_threshold": ["DUPLICATE_THRESHOLD", "duplicate_threshold"],
    "tag_threshold": ["TAG_THRESHOLD", "tag_threshold"],
    "max_suggested_tags": ["MAX_SUGGESTED_TAGS", "max_suggested_tags"],
    "semantic_prompt_cap": ["SEMANTIC_PROMPT_CAP", "semantic_prompt_cap"],
}

_JSON_KEYS: tuple[str, ...] = tuple(_ENV_ALIASES)


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPT_NEST_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    from dotenv import dotenv_values

    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Prompt Nest configuration cannot be loaded or validated."""


class PromptNestSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    storage_path: Path = Field(
        default=DEFAULT_STORAGE_PATH,
        description="JSON file backing the key-value store for prompts and preferences.",
    )
    storage_quota_bytes: int = Field(
        default=DEFAULT_STORAGE_QUOTA_BYTES,
        description="Upper bound for the serialised store payload in bytes.",
    )
    embedding_backend: str = Field(
        default=DEFAULT_EMBEDDING_BACKEND,
        description="Embedding backend to use (sentence-transformers or deterministic).",
    )
    embedding_model: str | None = Field(
        default=DEFAULT_EMBEDDING_MODEL,
        description="Model name for the sentence-transformers backend.",
    )
    embedding_device: str | None = Field(
        default=None,
        description="Preferred device identifier for local embedding backends (e.g. cpu, cuda).",
    )
    tag_labels: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TAG_LABELS),
        description="Closed label vocabulary used for tag suggestions.",
    )
    search_threshold: float = Field(
        default=DEFAULT_SEARCH_THRESHOLD,
        description="Minimum (exclusive) similarity for a prompt to appear in semantic results.",
    )
    duplicate_threshold: float = Field(
        default=DEFAULT_DUPLICATE_THRESHOLD,
        description="Minimum (exclusive) similarity for a prompt to be flagged as a duplicate.",
    )
    tag_threshold: float = Field(
        default=DEFAULT_TAG_THRESHOLD,
        description="Minimum (exclusive) similarity for a label to be suggested as a tag.",
    )
    max_suggested_tags: int = Field(
        default=DEFAULT_MAX_SUGGESTED_TAGS,
        description="Maximum number of tags returned by a suggestion request.",
    )
    semantic_prompt_cap: int = Field(
        default=DEFAULT_SEMANTIC_PROMPT_CAP,
        description="Number of prompts (in input order) scored by a semantic search.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPT_NEST_",
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("storage_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or str(value).strip() == "":
            raise ValueError("a filesystem path is required")
        return Path(str(value)).expanduser().resolve()

    @field_validator("storage_quota_bytes", "max_suggested_tags", "semantic_prompt_cap")
    def _validate_positive(cls, value: int) -> int:
        """Ensure counters and quotas are positive integers."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("search_threshold", "duplicate_threshold", "tag_threshold")
    def _validate_threshold(cls, value: float) -> float:
        """Keep similarity thresholds inside the cosine range."""
        if not -1.0 <= value <= 1.0:
            raise ValueError("similarity thresholds must lie within [-1, 1]")
        return value

    @field_validator("embedding_model", "embedding_device", mode="before")
    def _strip_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("embedding_backend", mode="before")
    def _normalise_embedding_backend(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_EMBEDDING_BACKEND
        backend = str(value).strip().lower()
        if backend in {"", "default", "sentence-transformers", "sentence_transformers", "st"}:
            return "sentence-transformers"
        if backend in {"deterministic", "hash"}:
            return "deterministic"
        raise ValueError(f"Unsupported embedding backend '{value}'")

    @field_validator("tag_labels", mode="before")
    def _parse_tag_labels(cls, value: Any) -> list[str]:
        """Accept JSON arrays, comma-separated strings, or sequences of labels."""
        if value in (None, "", []):
            return list(DEFAULT_TAG_LABELS)
        if isinstance(value, str):
            stripped = value.strip()
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = stripped.split(",")
            value = parsed
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
            raise ValueError("tag_labels must be a list of label names")
        labels: list[str] = []
        for item in cast("Sequence[object]", value):
            label = str(item).strip().lower()
            if label and label not in labels:
                labels.append(label)
        if not labels:
            raise ValueError("tag_labels must contain at least one label")
        return labels

    @model_validator(mode="after")
    def _validate_embedding_configuration(self) -> PromptNestSettings:
        if self.embedding_backend == "deterministic":
            return self
        if not self.embedding_model:
            object.__setattr__(self, "embedding_model", DEFAULT_EMBEDDING_MODEL)
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(storage_path="...")).
            2. JSON configuration file.
            3. Environment variables / ``.env`` aliases.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_values = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_values.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    candidates = [f"{prefix}{key}", f"{prefix}{key.upper()}"]
                    value = next(
                        (found for found in map(_lookup, candidates) if found is not None),
                        None,
                    )
                    if value is not None:
                        data[field] = value
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPT_NEST_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for path in candidates:
                if not path.exists():
                    if explicit_path and path == candidates[0]:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    raise SettingsError(f"Configuration file {path} must contain a JSON object")
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict = {str(key): value for key, value in mapping_data.items()}
                unknown = sorted(set(data_dict) - set(_JSON_KEYS))
                if unknown:
                    logger.warning(
                        "Ignoring unknown key(s) %s in configuration file %s",
                        ", ".join(unknown),
                        path,
                    )
                return {key: data_dict[key] for key in _JSON_KEYS if key in data_dict}
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptNestSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptNestSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid Prompt Nest configuration") from exc


logger = logging.getLogger("prompt_nest.settings")
