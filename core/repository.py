"""Prompt CRUD over the asynchronous key-value store.

Updates:
  v0.3.1 - 2026-03-10 - Drop the cached search vector when a prompt is retitled.
  v0.3.0 - 2026-03-07 - Evict cached vectors when prompts are edited or deleted.
  v0.2.0 - 2026-02-21 - Embed new prompts immediately when the model is ready.
  v0.1.0 - 2026-02-05 - Introduce newest-first prompt repository and user context.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any

from models.prompt_model import (
    DEFAULT_PROMPT_TITLE,
    Prompt,
    prompts_from_records,
    prompts_to_records,
)

from .exceptions import PromptNotFoundError
from .storage import PROMPTS_KEY, USER_CONTEXT_KEY

if TYPE_CHECKING:
    from .context import SemanticContext
    from .storage import KeyValueStore

logger = logging.getLogger("prompt_nest.repository")

Embedder = Callable[[str], Awaitable[list[float] | None]]

_ID_ALPHABET = string.digits + string.ascii_lowercase
_EDITABLE_FIELDS = frozenset({"title", "text", "tags"})


def create_id(prefix: str = "prompt") -> str:
    """Return an identifier shaped like ``prompt_<millis>_<6 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class PromptRepository:
    """Read and write the prompt collection stored under one key."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        context: SemanticContext | None = None,
        embedder: Embedder | None = None,
    ) -> None:
        self._store = store
        self._context = context
        self._embedder = embedder

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def list_prompts(self) -> list[Prompt]:
        """Return every stored prompt, newest first."""
        values = await self._store.get([PROMPTS_KEY])
        return prompts_from_records(values.get(PROMPTS_KEY))

    async def get_prompt(self, prompt_id: str) -> Prompt:
        """Return the prompt with *prompt_id* or raise :class:`PromptNotFoundError`."""
        for prompt in await self.list_prompts():
            if prompt.id == prompt_id:
                return prompt
        raise PromptNotFoundError(f"Prompt {prompt_id} not found")

    async def create_prompt(
        self,
        title: str | None,
        text: str,
        tags: Iterable[str] | None = None,
    ) -> Prompt:
        """Persist a new prompt at the front of the collection.

        The embedding is computed straight away when an embedder is wired and
        the model is ready; otherwise the prompt is saved without one and left
        for the rehydrator.
        """
        body = (text or "").strip()
        if not body:
            raise ValueError("Prompt text must not be empty")
        prompt = Prompt(
            id=create_id("prompt"),
            title=(title or "").strip() or DEFAULT_PROMPT_TITLE,
            text=body,
            tags=list(tags or []),
        )
        vector = await self._embed(body)
        if vector is not None:
            prompt = prompt.with_embedding(vector)
            if self._context is not None:
                self._context.prompt_vectors[prompt.id] = vector

        prompts = await self.list_prompts()
        await self._save([prompt, *prompts])
        logger.info(
            "Prompt created",
            extra={"prompt_id": prompt.id, "embedded": vector is not None},
        )
        return prompt

    async def update_prompt(self, prompt_id: str, **changes: Any) -> Prompt:
        """Apply *changes* to a stored prompt and return the updated copy."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported prompt fields: {', '.join(sorted(unknown))}")
        prompts = await self.list_prompts()
        for index, prompt in enumerate(prompts):
            if prompt.id != prompt_id:
                continue
            updated = prompt.with_changes(**changes)
            if updated.text != prompt.text:
                self._evict(prompt_id)
            elif updated.title != prompt.title and self._context is not None:
                # Search vectors embed the title; duplicate vectors embed text only.
                self._context.evict_search_vector(prompt.composite_key)
            prompts[index] = updated
            await self._save(prompts)
            return updated
        raise PromptNotFoundError(f"Prompt {prompt_id} not found")

    async def delete_prompt(self, prompt_id: str) -> list[Prompt]:
        """Remove *prompt_id* and return the remaining prompts."""
        prompts = await self.list_prompts()
        remaining = [prompt for prompt in prompts if prompt.id != prompt_id]
        if len(remaining) == len(prompts):
            raise PromptNotFoundError(f"Prompt {prompt_id} not found")
        await self._save(remaining)
        self._evict(prompt_id)
        logger.info("Prompt deleted", extra={"prompt_id": prompt_id})
        return remaining

    async def get_user_context(self) -> str:
        values = await self._store.get([USER_CONTEXT_KEY])
        return str(values.get(USER_CONTEXT_KEY) or "").strip()

    async def set_user_context(self, value: str | None) -> None:
        text = (value or "").strip()
        if text:
            await self._store.set({USER_CONTEXT_KEY: text})
        else:
            await self._store.remove(USER_CONTEXT_KEY)

    async def _embed(self, text: str) -> list[float] | None:
        if self._embedder is None:
            return None
        return await self._embedder(text)

    async def _save(self, prompts: Iterable[Prompt]) -> None:
        await self._store.set({PROMPTS_KEY: prompts_to_records(prompts)})

    def _evict(self, prompt_id: str) -> None:
        if self._context is not None:
            self._context.evict_prompt(prompt_id)


__all__ = ["Embedder", "PromptRepository", "create_id"]
