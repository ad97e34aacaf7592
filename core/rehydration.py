"""Backfill missing prompt embeddings into persistent storage.

Updates:
  v0.4.0 - 2026-03-10 - Merge new vectors into the stored collection at write time.
  v0.3.0 - 2026-03-07 - Run scheduled backfills as tracked asyncio tasks.
  v0.2.0 - 2026-02-25 - Write the whole collection once instead of per prompt.
  v0.1.0 - 2026-02-17 - Introduce rehydrator replacing the threaded sync worker.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from models.prompt_model import prompts_from_records, prompts_to_records

from .notifications import NotificationCenter
from .storage import PROMPTS_KEY

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .context import SemanticContext
    from .embedding import EmbeddingEngine
    from .storage import KeyValueStore

logger = logging.getLogger("prompt_nest.rehydration")


def _merge_embeddings(
    stored: list[Prompt],
    computed: dict[str, tuple[str, list[float]]],
) -> tuple[list[Prompt], list[str]]:
    """Fill computed vectors into *stored* prompts that still lack one.

    A vector is applied only when the stored prompt has the same text it was
    computed from. Ids missing from *stored* were deleted and stay deleted.
    """
    merged: list[Prompt] = []
    filled: list[str] = []
    for prompt in stored:
        entry = computed.get(prompt.id)
        if entry is None or prompt.has_embedding or prompt.text != entry[0]:
            merged.append(prompt)
            continue
        merged.append(prompt.with_embedding(entry[1]))
        filled.append(prompt.id)
    return merged, filled


class EmbeddingRehydrator:
    """Embed prompts saved without a vector and persist the updated collection."""

    def __init__(
        self,
        context: SemanticContext,
        engine: EmbeddingEngine,
        store: KeyValueStore,
        *,
        notification_center: NotificationCenter | None = None,
    ) -> None:
        self._context = context
        self._engine = engine
        self._store = store
        self._notification_center = notification_center or NotificationCenter()
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def busy(self) -> bool:
        return self._context.rehydrating

    async def rehydrate(self, prompts: Sequence[Prompt]) -> bool:
        """Return ``True`` when at least one embedding was added and persisted.

        Overlapping calls return ``False`` immediately. The given prompts are
        never mutated. Computed vectors are merged by id into the collection
        as stored at write time, so prompts saved, edited or deleted while the
        embeddings were computed are left as the repository wrote them. The
        merged collection is persisted in a single write.
        """
        if self._context.rehydrating:
            logger.debug("Rehydration already running; skipping")
            return False
        self._context.rehydrating = True
        try:
            if not self._context.available or not prompts:
                return False
            computed: dict[str, tuple[str, list[float]]] = {}
            for prompt in prompts:
                if prompt.has_embedding or not prompt.id:
                    continue
                vector = await self._engine.embed(prompt.text)
                if vector is not None:
                    computed[prompt.id] = (prompt.text, vector)
            if not computed:
                return False

            values = await self._store.get([PROMPTS_KEY])
            stored = prompts_from_records(values.get(PROMPTS_KEY))
            merged, filled = _merge_embeddings(stored, computed)
            if not filled:
                logger.info("Rehydrated prompts changed before write; nothing stored")
                return False
            for prompt_id in filled:
                self._context.prompt_vectors[prompt_id] = computed[prompt_id][1]
            await self._store.set({PROMPTS_KEY: prompts_to_records(merged)})
            logger.info(
                "Rehydrated prompt embeddings",
                extra={"updated": len(filled), "skipped": len(computed) - len(filled)},
            )
            return True
        except Exception:  # noqa: BLE001 - storage and inference failures mean no change
            logger.exception("Embedding rehydration failed")
            return False
        finally:
            self._context.rehydrating = False

    def schedule(self, prompts: Sequence[Prompt]) -> asyncio.Task[bool]:
        """Start :meth:`rehydrate` in the background and return its task."""
        snapshot = list(prompts)
        task = asyncio.get_running_loop().create_task(
            self._run_tracked(snapshot), name="prompt-embedding-rehydrate"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_tracked(self, prompts: list[Prompt]) -> bool:
        with self._notification_center.track_task(
            title="Embedding rehydration",
            start_message=f"Checking {len(prompts)} prompts for missing embeddings...",
            success_message="Embedding rehydration finished.",
            failure_message="Embedding rehydration failed",
            metadata={"prompts": len(prompts)},
        ) as results:
            changed = await self.rehydrate(prompts)
            results["changed"] = changed
        return changed

    async def wait_idle(self) -> None:
        """Wait for every scheduled rehydration task to settle."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


__all__ = ["EmbeddingRehydrator"]
