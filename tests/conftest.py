"""Pytest configuration for shared test fixtures and fake inference backends.

Updates:
  v0.2.0 - 2026-03-09 - Add keyword and vector-table inference fakes for semantic tests.
  v0.1.0 - 2026-02-06 - Isolate Prompt Nest environment variables per test.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path

import pytest
from pytest import MonkeyPatch

from core.context import SemanticContext
from core.embedding import EmbeddingEngine
from core.labels import LabelCache
from core.model_lifecycle import ModelLifecycleManager

# Concept axes used by the keyword inference fake.
CODE, CREATIVE, STUDY, CAREER, INTERVIEW, EXPLANATION, GENERAL, FILLER = range(8)

KEYWORD_AXES: dict[str, int] = {
    "coding": CODE,
    "debugging": CODE,
    "debug": CODE,
    "null": CODE,
    "pointer": CODE,
    "exception": CODE,
    "segmentation": CODE,
    "fault": CODE,
    "fix": CODE,
    "stack": CODE,
    "trace": CODE,
    "python": CODE,
    "script": CODE,
    "creative": CREATIVE,
    "poem": CREATIVE,
    "autumn": CREATIVE,
    "story": CREATIVE,
    "study": STUDY,
    "exam": STUDY,
    "career": CAREER,
    "resume": CAREER,
    "interview": INTERVIEW,
    "explanation": EXPLANATION,
    "explain": EXPLANATION,
    "general": GENERAL,
}

_WORD = re.compile(r"[a-z0-9]+")


class KeywordInference:
    """Fake transformer returning one concept-axis vector per word token.

    Output mimics token embeddings for a batch of one: ``[[token_vector, ...]]``.
    Words outside :data:`KEYWORD_AXES` land on the filler axis.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[list[list[float]]]:
        self.calls.append(text)
        rows: list[list[float]] = []
        for word in _WORD.findall(text.lower()) or ["?"]:
            row = [0.0] * 8
            row[KEYWORD_AXES.get(word, FILLER)] = 1.0
            rows.append(row)
        return [rows]


class VectorTableInference:
    """Fake backend returning a fixed, already-pooled vector per exact text."""

    def __init__(self, table: Mapping[str, Sequence[float]]) -> None:
        self._table = {key: list(value) for key, value in table.items()}
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        if text not in self._table:
            raise KeyError(text)
        return list(self._table[text])


def make_ready_context(pipeline: object) -> SemanticContext:
    """Return a context with *pipeline* installed and marked available."""
    context = SemanticContext()
    context.pipeline = pipeline  # type: ignore[assignment]
    context.available = True
    return context


def make_lifecycle(
    loader: object,
    *,
    context: SemanticContext | None = None,
) -> tuple[ModelLifecycleManager, SemanticContext]:
    """Return a lifecycle manager wired to a label cache over *context*."""
    resolved = context or SemanticContext()
    engine = EmbeddingEngine(resolved)
    labels = LabelCache(resolved, engine)
    return ModelLifecycleManager(resolved, loader, labels), resolved  # type: ignore[arg-type]


@pytest.fixture()
def keyword_inference() -> KeywordInference:
    return KeywordInference()


@pytest.fixture()
def ready_context(keyword_inference: KeywordInference) -> SemanticContext:
    return make_ready_context(keyword_inference)


@pytest.fixture()
def engine(ready_context: SemanticContext) -> EmbeddingEngine:
    return EmbeddingEngine(ready_context)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Run each test in an empty directory with no Prompt Nest configuration."""
    for key in list(os.environ):
        if key.upper().startswith("PROMPT_NEST_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROMPT_NEST_ENV_FILE", "")
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture()
def vector_table() -> type[VectorTableInference]:
    return VectorTableInference


@pytest.fixture()
def context_factory() -> Callable[[object], SemanticContext]:
    return make_ready_context


@pytest.fixture()
def lifecycle_factory() -> Callable[..., tuple[ModelLifecycleManager, SemanticContext]]:
    return make_lifecycle
