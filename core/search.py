"""Semantic ranking of prompts with a keyword fallback.

Updates:
  v0.3.0 - 2026-03-06 - Cap the scored pool and warn when prompts are excluded.
  v0.2.0 - 2026-02-27 - Attach similarity scores to copies instead of cached prompts.
  v0.1.0 - 2026-02-15 - Introduce cosine ranking over title and body embeddings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from config.settings import DEFAULT_SEARCH_THRESHOLD, DEFAULT_SEMANTIC_PROMPT_CAP

from .similarity import cosine_similarity

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .context import SemanticContext
    from .embedding import EmbeddingEngine

logger = logging.getLogger(__name__)


def keyword_filter(query: str, prompts: Sequence[Prompt]) -> list[Prompt]:
    """Return prompts whose title, text or tags contain *query* (case-insensitive)."""
    needle = query.strip().lower()
    if not needle:
        return list(prompts)
    matches: list[Prompt] = []
    for prompt in prompts:
        haystacks = (prompt.title, prompt.text, " ".join(prompt.tags))
        if any(needle in value.lower() for value in haystacks):
            matches.append(prompt)
    return matches


class SemanticSearch:
    """Rank prompts by cosine similarity between the query and title+text embeddings."""

    def __init__(
        self,
        context: SemanticContext,
        engine: EmbeddingEngine,
        *,
        threshold: float = DEFAULT_SEARCH_THRESHOLD,
        cap: int = DEFAULT_SEMANTIC_PROMPT_CAP,
    ) -> None:
        self._context = context
        self._engine = engine
        self._threshold = threshold
        self._cap = cap

    async def search(self, query: str | None, prompts: Sequence[Prompt]) -> list[Prompt]:
        """Return matching prompts, best first.

        An empty query returns *prompts* unchanged. Without a usable query
        embedding the keyword filter is applied instead, preserving input
        order. Only the first ``cap`` prompts are scored on the semantic path.
        """
        text = str(query or "").strip()
        if not text:
            return list(prompts)
        if not self._context.available:
            return keyword_filter(text, prompts)
        query_vector = await self._engine.embed(text)
        if query_vector is None:
            logger.info("Query embedding unavailable; using keyword search")
            return keyword_filter(text, prompts)

        candidates = list(prompts[: self._cap])
        if len(prompts) > self._cap:
            logger.warning(
                "Semantic search limited to the first %d prompts; %d excluded",
                self._cap,
                len(prompts) - self._cap,
            )

        scored: list[Prompt] = []
        for prompt in candidates:
            vector = await self._resolve_vector(prompt)
            if vector is None:
                continue
            similarity = cosine_similarity(query_vector, vector)
            if similarity > self._threshold:
                scored.append(prompt.with_similarity(similarity))
        # list.sort is stable, so equal scores keep their input order.
        scored.sort(key=lambda item: item.similarity or 0.0, reverse=True)
        return scored

    async def _resolve_vector(self, prompt: Prompt) -> list[float] | None:
        key = prompt.composite_key
        cached = self._context.composite_vectors.get(key)
        if cached is not None:
            return cached
        vector = await self._engine.embed(prompt.search_document)
        if vector is not None:
            self._context.composite_vectors[key] = vector
        return vector


__all__ = ["SemanticSearch", "keyword_filter"]
