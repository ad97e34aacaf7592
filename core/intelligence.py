"""Facade composing the on-device semantic features around one context.

Updates:
  v0.2.0 - 2026-03-07 - Expose background rehydration and cache eviction.
  v0.1.0 - 2026-02-18 - Introduce facade used by the CLI and host integrations.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from config.settings import (
    DEFAULT_DUPLICATE_THRESHOLD,
    DEFAULT_MAX_SUGGESTED_TAGS,
    DEFAULT_SEARCH_THRESHOLD,
    DEFAULT_SEMANTIC_PROMPT_CAP,
    DEFAULT_TAG_LABELS,
    DEFAULT_TAG_THRESHOLD,
)

from .context import SemanticContext
from .duplicates import DuplicateCheck, DuplicateDetector
from .embedding import EmbeddingEngine
from .labels import LabelCache, UserContextReader
from .model_lifecycle import ModelLifecycleManager, ModelStatus
from .notifications import NotificationCenter
from .rehydration import EmbeddingRehydrator
from .repository import PromptRepository
from .search import SemanticSearch
from .similarity import cosine_similarity

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .embedding import InferenceLoader
    from .storage import KeyValueStore

logger = logging.getLogger("prompt_nest.intelligence")


class PromptIntelligence:
    """Tag suggestion, semantic search, duplicate checks and embedding backfill.

    Every public coroutine returns a usable value when the model is missing
    or inference fails: no tags, keyword results, "not a duplicate", or
    "nothing changed".
    """

    def __init__(
        self,
        loader: InferenceLoader,
        store: KeyValueStore,
        *,
        context: SemanticContext | None = None,
        notification_center: NotificationCenter | None = None,
        user_context_reader: UserContextReader | None = None,
        tag_labels: Sequence[str] = DEFAULT_TAG_LABELS,
        tag_threshold: float = DEFAULT_TAG_THRESHOLD,
        max_suggested_tags: int = DEFAULT_MAX_SUGGESTED_TAGS,
        search_threshold: float = DEFAULT_SEARCH_THRESHOLD,
        semantic_prompt_cap: int = DEFAULT_SEMANTIC_PROMPT_CAP,
        duplicate_threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
    ) -> None:
        self._context = context or SemanticContext()
        self._notification_center = notification_center or NotificationCenter()
        self._engine = EmbeddingEngine(self._context)
        self._repository = PromptRepository(
            store,
            context=self._context,
            embedder=self._engine.embed,
        )
        self._labels = LabelCache(
            self._context,
            self._engine,
            labels=tag_labels,
            threshold=tag_threshold,
            max_tags=max_suggested_tags,
            user_context_reader=user_context_reader or self._repository.get_user_context,
        )
        self._lifecycle = ModelLifecycleManager(
            self._context,
            loader,
            self._labels,
            notification_center=self._notification_center,
        )
        self._search = SemanticSearch(
            self._context,
            self._engine,
            threshold=search_threshold,
            cap=semantic_prompt_cap,
        )
        self._duplicates = DuplicateDetector(
            self._context,
            self._engine,
            threshold=duplicate_threshold,
        )
        self._rehydrator = EmbeddingRehydrator(
            self._context,
            self._engine,
            store,
            notification_center=self._notification_center,
        )

    @property
    def context(self) -> SemanticContext:
        return self._context

    @property
    def repository(self) -> PromptRepository:
        return self._repository

    @property
    def notification_center(self) -> NotificationCenter:
        return self._notification_center

    @property
    def status(self) -> ModelStatus:
        return self._lifecycle.status

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels.labels

    async def ensure_ready(self) -> bool:
        return await self._lifecycle.ensure_ready()

    def is_available(self) -> bool:
        return self._lifecycle.is_available()

    async def reload(self) -> bool:
        """Reload the model, discarding every cached vector."""
        return await self._lifecycle.reload()

    async def embed(self, text: str | None) -> list[float] | None:
        return await self._engine.embed(text)

    @staticmethod
    def cosine(left: Sequence[float] | None, right: Sequence[float] | None) -> float:
        return cosine_similarity(left, right)

    async def suggest_tags(self, text: str | None) -> list[str]:
        return await self._labels.suggest_tags(text)

    async def search(self, query: str | None, prompts: Sequence[Prompt]) -> list[Prompt]:
        return await self._search.search(query, prompts)

    async def is_duplicate(
        self,
        candidate_text: str | None,
        existing: Sequence[Prompt],
    ) -> DuplicateCheck:
        return await self._duplicates.is_duplicate(candidate_text, existing)

    async def rehydrate(self, prompts: Sequence[Prompt]) -> bool:
        return await self._rehydrator.rehydrate(prompts)

    def schedule_rehydrate(self, prompts: Sequence[Prompt]) -> asyncio.Task[bool]:
        """Run :meth:`rehydrate` as a background task the caller may await."""
        return self._rehydrator.schedule(prompts)

    async def wait_idle(self) -> None:
        await self._rehydrator.wait_idle()

    def evict(self, prompt_id: str) -> None:
        """Forget cached vectors for a deleted or edited prompt."""
        self._context.evict_prompt(prompt_id)


__all__ = ["PromptIntelligence"]
