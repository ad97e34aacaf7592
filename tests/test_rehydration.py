"""Embedding backfill: idempotence, busy flag, storage failures, and concurrent edits.

Updates:
  v0.2.0 - 2026-03-10 - Cover prompts saved, edited, or deleted during a backfill.
  v0.1.0 - 2026-02-17 - Cover single write, busy flag, and failure reporting.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from core.context import SemanticContext
from core.embedding import EmbeddingEngine
from core.notifications import Notification, NotificationCenter, NotificationStatus
from core.rehydration import EmbeddingRehydrator
from core.storage import PROMPTS_KEY, MemoryKeyValueStore
from core.repository import PromptRepository
from models.prompt_model import Prompt, prompts_from_records, prompts_to_records


class _RecordingStore(MemoryKeyValueStore):
    def __init__(self, prompts: list[Prompt] | None = None) -> None:
        super().__init__({PROMPTS_KEY: prompts_to_records(prompts)} if prompts else None)
        self.writes: list[dict[str, Any]] = []

    async def set(self, values: Mapping[str, Any]) -> None:
        self.writes.append(dict(values))
        await super().set(values)


class _FailingStore(MemoryKeyValueStore):
    async def set(self, values: Mapping[str, Any]) -> None:
        raise OSError("quota exceeded")


def _prompts() -> list[Prompt]:
    return [
        Prompt(id="p1", title="Trace", text="python stack trace"),
        Prompt(id="p2", title="Poem", text="poem about autumn", embedding=[0.0, 1.0]),
        Prompt(id="p3", title="Exam", text="study for the exam"),
    ]


@pytest.mark.asyncio()
async def test_rehydrate_writes_once_then_is_idempotent(
    ready_context: SemanticContext,
    engine: EmbeddingEngine,
) -> None:
    prompts = _prompts()
    store = _RecordingStore(prompts)
    rehydrator = EmbeddingRehydrator(ready_context, engine, store)

    assert await rehydrator.rehydrate(prompts) is True
    assert len(store.writes) == 1
    assert set(store.writes[0]) == {PROMPTS_KEY}

    persisted = prompts_from_records((await store.get([PROMPTS_KEY]))[PROMPTS_KEY])
    assert [prompt.id for prompt in persisted] == ["p1", "p2", "p3"]
    assert all(prompt.has_embedding for prompt in persisted)
    assert persisted[1].embedding == [0.0, 1.0]
    assert prompts[0].embedding is None
    assert "p1" in ready_context.prompt_vectors

    assert await rehydrator.rehydrate(persisted) is False
    assert len(store.writes) == 1


@pytest.mark.asyncio()
async def test_rehydrate_is_noop_without_model() -> None:
    offline = SemanticContext()
    store = _RecordingStore()

    rehydrator = EmbeddingRehydrator(offline, EmbeddingEngine(offline), store)

    assert await rehydrator.rehydrate(_prompts()) is False
    assert store.writes == []


@pytest.mark.asyncio()
async def test_empty_list_returns_false(
    ready_context: SemanticContext,
    engine: EmbeddingEngine,
) -> None:
    rehydrator = EmbeddingRehydrator(ready_context, engine, _RecordingStore())
    assert await rehydrator.rehydrate([]) is False
    assert not ready_context.rehydrating


@pytest.mark.asyncio()
async def test_overlapping_rehydration_is_rejected(
    context_factory: Any,
) -> None:
    release = asyncio.Event()

    async def _slow(text: str) -> list[float]:
        await release.wait()
        return [1.0, 0.0]

    context = context_factory(_slow)
    store = _RecordingStore(_prompts())
    rehydrator = EmbeddingRehydrator(context, EmbeddingEngine(context), store)

    first = asyncio.ensure_future(rehydrator.rehydrate(_prompts()))
    await asyncio.sleep(0)
    assert rehydrator.busy
    assert await rehydrator.rehydrate(_prompts()) is False

    release.set()
    assert await first is True
    assert not rehydrator.busy
    assert len(store.writes) == 1


@pytest.mark.asyncio()
async def test_storage_failure_reports_no_change(
    ready_context: SemanticContext,
    engine: EmbeddingEngine,
) -> None:
    store = _FailingStore({PROMPTS_KEY: prompts_to_records(_prompts())})
    rehydrator = EmbeddingRehydrator(ready_context, engine, store)

    assert await rehydrator.rehydrate(_prompts()) is False
    assert not ready_context.rehydrating


@pytest.mark.asyncio()
async def test_scheduled_rehydration_publishes_progress(
    ready_context: SemanticContext,
    engine: EmbeddingEngine,
) -> None:
    center = NotificationCenter()
    events: list[Notification] = []
    center.subscribe(events.append)
    rehydrator = EmbeddingRehydrator(
        ready_context, engine, _RecordingStore(_prompts()), notification_center=center
    )

    task = rehydrator.schedule(_prompts())

    assert await task is True
    assert [event.status for event in events] == [
        NotificationStatus.STARTED,
        NotificationStatus.SUCCEEDED,
    ]
    assert events[-1].metadata["changed"] is True
    await rehydrator.wait_idle()


class _GatedInference:
    """Backend that holds every call until :attr:`release` is set."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    async def __call__(self, text: str) -> list[float]:
        self.started.set()
        await self.release.wait()
        return [1.0, 0.0]


@pytest.mark.asyncio()
async def test_prompt_saved_during_backfill_is_kept(context_factory: Any) -> None:
    inference = _GatedInference()
    context = context_factory(inference)
    store = MemoryKeyValueStore()
    repository = PromptRepository(store)
    old = await repository.create_prompt("Old", "saved while offline")
    rehydrator = EmbeddingRehydrator(context, EmbeddingEngine(context), store)

    task = rehydrator.schedule(await repository.list_prompts())
    await inference.started.wait()
    new = await repository.create_prompt("New", "saved during the backfill")
    inference.release.set()

    assert await task is True
    stored = await repository.list_prompts()
    assert [prompt.id for prompt in stored] == [new.id, old.id]
    assert stored[1].embedding == pytest.approx([1.0, 0.0])
    assert not stored[0].has_embedding


@pytest.mark.asyncio()
async def test_backfill_skips_prompts_edited_or_deleted_meanwhile(
    context_factory: Any,
) -> None:
    inference = _GatedInference()
    context = context_factory(inference)
    store = MemoryKeyValueStore()
    repository = PromptRepository(store, context=context)
    edited = await repository.create_prompt("Edited", "first draft")
    deleted = await repository.create_prompt("Deleted", "short lived")
    rehydrator = EmbeddingRehydrator(context, EmbeddingEngine(context), store)

    task = rehydrator.schedule(await repository.list_prompts())
    await inference.started.wait()
    await repository.update_prompt(edited.id, text="second draft")
    await repository.delete_prompt(deleted.id)
    inference.release.set()

    assert await task is False
    stored = await repository.list_prompts()
    assert [prompt.id for prompt in stored] == [edited.id]
    assert stored[0].text == "second draft"
    assert not stored[0].has_embedding
    assert context.prompt_vectors == {}
