"""End-to-end checks for the prompt intelligence facade and its factory.

Updates:
  v0.2.0 - 2026-03-07 - Cover injected stores and notification centres in the factory.
  v0.1.0 - 2026-02-18 - Exercise tagging, search, duplicates, and rehydration together.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from config import load_settings
from core import (
    DeterministicInference,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    ModelStatus,
    NotificationCenter,
    PromptIntelligence,
    build_prompt_intelligence,
)
from core.factory import build_inference_loader
from core.notifications import MODEL_STATUS_TOPIC


def _intelligence(loader: Any, store: MemoryKeyValueStore | None = None) -> PromptIntelligence:
    return PromptIntelligence(
        loader,
        store or MemoryKeyValueStore(),
        notification_center=NotificationCenter(),
    )


@pytest.mark.asyncio()
async def test_full_prompt_flow(keyword_inference: Any) -> None:
    intelligence = _intelligence(lambda: keyword_inference)

    assert intelligence.status is ModelStatus.IDLE
    assert await intelligence.ensure_ready() is True
    assert intelligence.status is ModelStatus.READY
    assert intelligence.is_available()

    repository = intelligence.repository
    debug = await repository.create_prompt("Debug", "debug null pointer exception")
    poem = await repository.create_prompt("Poem", "poem about autumn story")
    prompts = await repository.list_prompts()

    assert await intelligence.suggest_tags("fix segmentation fault") == ["coding", "debugging"]

    results = await intelligence.search("python stack trace", prompts)
    assert [prompt.id for prompt in results] == [debug.id]
    assert results[0].similarity is not None

    check = await intelligence.is_duplicate("debug null pointer exception", prompts)
    assert check.duplicate
    assert check.match is not None and check.match.id == debug.id
    assert not await intelligence.is_duplicate("poem about spring", [poem])

    statuses = [
        item.metadata["model_status"]
        for item in intelligence.notification_center.history(MODEL_STATUS_TOPIC)
    ]
    assert statuses == ["loading", "ready"]


@pytest.mark.asyncio()
async def test_user_context_biases_tag_suggestions(keyword_inference: Any) -> None:
    intelligence = _intelligence(lambda: keyword_inference)
    await intelligence.ensure_ready()

    await intelligence.repository.set_user_context("interview interview interview")
    tags = await intelligence.suggest_tags("explain")

    assert tags[0] == "interview"


@pytest.mark.asyncio()
async def test_unavailable_model_degrades_gracefully() -> None:
    def _broken_loader() -> Any:
        raise OSError("weights missing")

    intelligence = _intelligence(_broken_loader)

    assert await intelligence.ensure_ready() is False
    assert intelligence.status is ModelStatus.UNAVAILABLE

    prompt = await intelligence.repository.create_prompt("Letter", "cover letter draft")
    prompts = await intelligence.repository.list_prompts()

    assert not prompt.has_embedding
    assert await intelligence.suggest_tags("anything") == []
    assert [item.id for item in await intelligence.search("LETTER", prompts)] == [prompt.id]
    assert not await intelligence.is_duplicate("cover letter draft", prompts)
    assert await intelligence.rehydrate(prompts) is False


@pytest.mark.asyncio()
async def test_rehydrate_after_late_model_load(keyword_inference: Any) -> None:
    store = MemoryKeyValueStore()
    intelligence = _intelligence(lambda: keyword_inference, store)
    await intelligence.repository.create_prompt("Study", "study for the exam")

    await intelligence.ensure_ready()
    changed = await intelligence.schedule_rehydrate(await intelligence.repository.list_prompts())
    await intelligence.wait_idle()

    assert changed is True
    stored = await intelligence.repository.list_prompts()
    assert stored[0].has_embedding
    assert intelligence.context.prompt_vectors[stored[0].id] == stored[0].embedding


@pytest.mark.asyncio()
async def test_reload_clears_caches(keyword_inference: Any) -> None:
    intelligence = _intelligence(lambda: keyword_inference)
    await intelligence.ensure_ready()
    intelligence.context.prompt_vectors["prompt_1"] = [1.0]

    assert await intelligence.reload() is True
    assert intelligence.context.prompt_vectors == {}
    assert intelligence.context.labels_ready


def test_cosine_is_exposed() -> None:
    assert PromptIntelligence.cosine([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert PromptIntelligence.cosine([], [1.0]) == 0.0


@pytest.mark.asyncio()
async def test_factory_builds_from_settings(tmp_path: Path) -> None:
    settings = load_settings(
        storage_path=str(tmp_path / "store.json"),
        embedding_backend="deterministic",
        tag_labels=["coding", "general"],
    )
    center = NotificationCenter()

    intelligence = build_prompt_intelligence(settings, notification_center=center)

    assert intelligence.notification_center is center
    assert intelligence.labels == ("coding", "general")
    assert isinstance(intelligence.repository.store, JsonFileKeyValueStore)
    assert await intelligence.ensure_ready() is True
    assert isinstance(intelligence.context.pipeline, DeterministicInference)


def test_factory_accepts_injected_store_and_loader(keyword_inference: Any) -> None:
    settings = load_settings(embedding_backend="deterministic")
    store = MemoryKeyValueStore()

    intelligence = build_prompt_intelligence(
        settings,
        store=store,
        loader=lambda: keyword_inference,
    )

    assert intelligence.repository.store is store


def test_inference_loader_selection() -> None:
    settings = load_settings(embedding_backend="deterministic")
    assert build_inference_loader(settings) is DeterministicInference
