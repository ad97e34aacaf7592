"""Factories for constructing Prompt Nest services from validated settings.

Updates:
  v0.2.0 - 2026-03-07 - Accept injected stores and loaders for tests and embedding hosts.
  v0.1.0 - 2026-02-18 - Build the intelligence facade from settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .embedding import create_inference_loader
from .intelligence import PromptIntelligence
from .notifications import NotificationCenter, notification_center as default_notification_center
from .storage import JsonFileKeyValueStore

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PromptNestSettings

    from .embedding import InferenceLoader
    from .storage import KeyValueStore

factory_logger = logging.getLogger("prompt_nest.factory")


def build_store(settings: PromptNestSettings) -> KeyValueStore:
    """Return the file-backed store configured by *settings*."""
    return JsonFileKeyValueStore(
        settings.storage_path,
        quota_bytes=settings.storage_quota_bytes,
    )


def build_inference_loader(settings: PromptNestSettings) -> InferenceLoader:
    """Return the loader for the configured embedding backend."""
    try:
        return create_inference_loader(
            settings.embedding_backend,
            model=settings.embedding_model,
            device=settings.embedding_device,
        )
    except ValueError as exc:
        raise RuntimeError(f"Unable to configure embedding backend: {exc}") from exc


def build_prompt_intelligence(
    settings: PromptNestSettings,
    *,
    store: KeyValueStore | None = None,
    loader: InferenceLoader | None = None,
    notification_center: NotificationCenter | None = None,
) -> PromptIntelligence:
    """Return a :class:`PromptIntelligence` configured from validated settings.

    The model is not loaded here; callers decide when to pay for
    :meth:`PromptIntelligence.ensure_ready`.
    """
    resolved_store = store if store is not None else build_store(settings)
    resolved_loader = loader if loader is not None else build_inference_loader(settings)
    intelligence = PromptIntelligence(
        resolved_loader,
        resolved_store,
        notification_center=notification_center or default_notification_center,
        tag_labels=settings.tag_labels,
        tag_threshold=settings.tag_threshold,
        max_suggested_tags=settings.max_suggested_tags,
        search_threshold=settings.search_threshold,
        semantic_prompt_cap=settings.semantic_prompt_cap,
        duplicate_threshold=settings.duplicate_threshold,
    )
    factory_logger.debug(
        "Prompt intelligence configured",
        extra={
            "embedding_backend": settings.embedding_backend,
            "embedding_model": settings.embedding_model,
            "storage_path": str(settings.storage_path),
        },
    )
    return intelligence


__all__ = ["build_inference_loader", "build_prompt_intelligence", "build_store"]
