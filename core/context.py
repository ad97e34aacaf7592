"""Process-wide semantic state shared by the embedding components.

Updates:
  v0.2.1 - 2026-03-10 - Evict only the search vector when a prompt is retitled.
  v0.2.0 - 2026-03-04 - Track the composite-key cache used by semantic search.
  v0.1.0 - 2026-02-10 - Introduce explicit context replacing module-level globals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

InferenceFunction = Callable[[str], Any]
"""Callable turning one text into raw token-level model output (sync or awaitable)."""


@dataclass(slots=True)
class SemanticContext:
    """Mutable state owned by one process (or one test).

    ``pipeline`` and ``available`` describe the loaded model. The three vector
    maps are caches only; the embedding persisted on each prompt stays
    authoritative. ``rehydrating`` guards against overlapping backfills.
    """

    pipeline: InferenceFunction | None = None
    available: bool = False
    labels_ready: bool = False
    rehydrating: bool = False
    label_vectors: dict[str, list[float]] = field(default_factory=dict)
    prompt_vectors: dict[str, list[float]] = field(default_factory=dict)
    composite_vectors: dict[str, list[float]] = field(default_factory=dict)

    def reset_model(self) -> None:
        """Forget the loaded pipeline and every cache derived from it."""
        self.pipeline = None
        self.available = False
        self.clear_caches()

    def clear_caches(self) -> None:
        """Drop all cached vectors, including the label vocabulary."""
        self.labels_ready = False
        self.label_vectors.clear()
        self.prompt_vectors.clear()
        self.composite_vectors.clear()

    def evict_search_vector(self, key: str) -> None:
        """Drop the cached title+text vector for *key* (retitled prompts)."""
        if self.composite_vectors.pop(key, None) is not None:
            logger.debug("Evicted cached search vector", extra={"prompt_id": key})

    def evict_prompt(self, prompt_id: str) -> None:
        """Remove cached vectors for *prompt_id* (deleted or edited prompts)."""
        if not prompt_id:
            return
        removed = self.prompt_vectors.pop(prompt_id, None) is not None
        removed = self.composite_vectors.pop(prompt_id, None) is not None or removed
        if removed:
            logger.debug("Evicted cached embedding", extra={"prompt_id": prompt_id})


__all__ = ["InferenceFunction", "SemanticContext"]
