"""Near-duplicate detection for newly submitted prompt text.

Updates:
  v0.2.0 - 2026-03-01 - Reuse persisted embeddings before computing new ones.
  v0.1.0 - 2026-02-16 - Introduce first-match duplicate check above 0.92 similarity.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from config.settings import DEFAULT_DUPLICATE_THRESHOLD

from .similarity import cosine_similarity

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .context import SemanticContext
    from .embedding import EmbeddingEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DuplicateCheck:
    """Outcome of a duplicate check; ``match`` is set only when ``duplicate`` is true."""

    duplicate: bool
    match: Prompt | None = None
    similarity: float | None = None

    def __bool__(self) -> bool:
        return self.duplicate


NOT_DUPLICATE = DuplicateCheck(duplicate=False)


class DuplicateDetector:
    """Flag candidate text that is nearly identical to an existing prompt."""

    def __init__(
        self,
        context: SemanticContext,
        engine: EmbeddingEngine,
        *,
        threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
    ) -> None:
        self._context = context
        self._engine = engine
        self._threshold = threshold

    async def is_duplicate(
        self,
        candidate_text: str | None,
        existing: Sequence[Prompt],
    ) -> DuplicateCheck:
        """Return the first prompt in *existing* scoring strictly above the threshold.

        The check fails open: without a model, or when the candidate cannot
        be embedded, the text is reported as not a duplicate.
        """
        if not self._context.available:
            return NOT_DUPLICATE
        candidate_vector = await self._engine.embed(candidate_text)
        if candidate_vector is None:
            return NOT_DUPLICATE

        for prompt in existing:
            vector = await self._resolve_vector(prompt)
            if vector is None:
                continue
            similarity = cosine_similarity(candidate_vector, vector)
            if similarity > self._threshold:
                logger.info(
                    "Duplicate prompt detected",
                    extra={"prompt_id": prompt.id, "similarity": round(similarity, 4)},
                )
                return DuplicateCheck(duplicate=True, match=prompt, similarity=similarity)
        return NOT_DUPLICATE

    async def _resolve_vector(self, prompt: Prompt) -> list[float] | None:
        # Cache lookups are keyed by id; prompts without one are embedded every time.
        cached = self._context.prompt_vectors.get(prompt.id) if prompt.id else None
        if cached is not None:
            return cached
        vector = list(prompt.embedding) if prompt.embedding else None
        if vector is None:
            vector = await self._engine.embed(prompt.text)
        if vector is not None and prompt.id:
            self._context.prompt_vectors[prompt.id] = vector
        return vector


__all__ = ["NOT_DUPLICATE", "DuplicateCheck", "DuplicateDetector"]
