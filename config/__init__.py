"""Configuration helpers for Prompt Nest.

Updates: v0.2.0 - 2026-03-02 - Export semantic threshold and label defaults.
Updates: v0.1.0 - 2026-02-04 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_DUPLICATE_THRESHOLD,
    DEFAULT_EMBEDDING_BACKEND,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_MAX_SUGGESTED_TAGS,
    DEFAULT_SEARCH_THRESHOLD,
    DEFAULT_SEMANTIC_PROMPT_CAP,
    DEFAULT_STORAGE_PATH,
    DEFAULT_STORAGE_QUOTA_BYTES,
    DEFAULT_TAG_LABELS,
    DEFAULT_TAG_THRESHOLD,
    PromptNestSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_DUPLICATE_THRESHOLD",
    "DEFAULT_EMBEDDING_BACKEND",
    "DEFAULT_EMBEDDING_MODEL",
    "DEFAULT_MAX_SUGGESTED_TAGS",
    "DEFAULT_SEARCH_THRESHOLD",
    "DEFAULT_SEMANTIC_PROMPT_CAP",
    "DEFAULT_STORAGE_PATH",
    "DEFAULT_STORAGE_QUOTA_BYTES",
    "DEFAULT_TAG_LABELS",
    "DEFAULT_TAG_THRESHOLD",
    "PromptNestSettings",
    "SettingsError",
    "load_settings",
]
