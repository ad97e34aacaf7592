"""Label embedding cache and tag suggestions.

Updates:
  v0.2.0 - 2026-03-03 - Prefix candidate text with the persisted user context.
  v0.1.0 - 2026-02-14 - Cache label embeddings once per model load.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from config.settings import DEFAULT_MAX_SUGGESTED_TAGS, DEFAULT_TAG_LABELS, DEFAULT_TAG_THRESHOLD

from .similarity import cosine_similarity

if TYPE_CHECKING:
    from .context import SemanticContext
    from .embedding import EmbeddingEngine

logger = logging.getLogger(__name__)

UserContextReader = Callable[[], Awaitable[str | None]]


class LabelCache:
    """Precompute label vectors and rank labels against candidate text."""

    def __init__(
        self,
        context: SemanticContext,
        engine: EmbeddingEngine,
        *,
        labels: Sequence[str] = DEFAULT_TAG_LABELS,
        threshold: float = DEFAULT_TAG_THRESHOLD,
        max_tags: int = DEFAULT_MAX_SUGGESTED_TAGS,
        user_context_reader: UserContextReader | None = None,
    ) -> None:
        self._context = context
        self._engine = engine
        self._labels = tuple(labels)
        self._threshold = threshold
        self._max_tags = max_tags
        self._user_context_reader = user_context_reader

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    async def precompute(self) -> None:
        """Embed every label once for the lifetime of the loaded model."""
        if not self._context.available or self._context.labels_ready:
            return
        for label in self._labels:
            vector = await self._engine.embed(label)
            if vector is not None:
                self._context.label_vectors[label] = vector
        self._context.labels_ready = True
        logger.debug(
            "Label embeddings cached",
            extra={"labels": len(self._context.label_vectors)},
        )

    async def _read_user_context(self) -> str:
        if self._user_context_reader is None:
            return ""
        try:
            value = await self._user_context_reader()
        except Exception:  # noqa: BLE001 - preference reads are best-effort
            logger.warning("Unable to read user context; continuing without it", exc_info=True)
            return ""
        return str(value or "").strip()

    async def suggest_tags(self, text: str | None) -> list[str]:
        """Return up to ``max_tags`` labels scoring strictly above the threshold."""
        if not self._context.available:
            return []
        candidate = str(text or "").strip()
        user_context = await self._read_user_context()
        contextual_text = f"{user_context} {candidate}".strip() if user_context else candidate
        text_vector = await self._engine.embed(contextual_text)
        if text_vector is None:
            return []
        if not self._context.labels_ready:
            await self.precompute()

        scored: list[tuple[float, str]] = []
        for label in self._labels:
            similarity = cosine_similarity(text_vector, self._context.label_vectors.get(label))
            if similarity > self._threshold:
                scored.append((similarity, label))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [label for _, label in scored[: self._max_tags]]


__all__ = ["LabelCache", "UserContextReader"]
