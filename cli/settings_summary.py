"""Printable summaries for Prompt Nest configuration.

Updates:
  v0.1.0 - 2026-02-19 - Render storage, embedding, and threshold settings.
"""

from __future__ import annotations

from config import DEFAULT_EMBEDDING_BACKEND, DEFAULT_EMBEDDING_MODEL, PromptNestSettings

from .utils import describe_path


def print_settings_summary(settings: PromptNestSettings) -> None:
    """Emit a readable summary of the resolved configuration."""
    embedding_backend = settings.embedding_backend or DEFAULT_EMBEDDING_BACKEND
    if embedding_backend == "deterministic":
        resolved_model = "(hash-based, no model download)"
    else:
        resolved_model = settings.embedding_model or DEFAULT_EMBEDDING_MODEL

    lines = [
        "Prompt Nest configuration summary",
        "---------------------------------",
        f"Store path: {describe_path(settings.storage_path, allow_missing_file=True)}",
        f"Store quota (bytes): {settings.storage_quota_bytes}",
        "",
        "Embedding configuration",
        "-----------------------",
        f"Backend: {embedding_backend}",
        f"Model: {resolved_model}",
        f"Device: {settings.embedding_device or 'auto'}",
        "",
        "Semantic features",
        "-----------------",
        f"Tag labels: {', '.join(settings.tag_labels)}",
        f"Tag threshold: {settings.tag_threshold} (max {settings.max_suggested_tags} tags)",
        f"Search threshold: {settings.search_threshold} "
        f"(first {settings.semantic_prompt_cap} prompts scored)",
        f"Duplicate threshold: {settings.duplicate_threshold}",
    ]
    print("\n".join(lines))
