"""Prompt data model definitions.

Updates: v0.3.0 - 2026-03-04 - Add copy-on-write helpers for embeddings and edits.
Updates: v0.2.0 - 2026-02-18 - Persist optional embedding vectors alongside prompts.
Updates: v0.1.1 - 2026-02-12 - Accept legacy ``body`` records when hydrating prompts.
Updates: v0.1.0 - 2026-02-04 - Initial Prompt schema with record serialisation helpers.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_PROMPT_TITLE = "Untitled prompt"


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None or value == "":
        return _utc_now()
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _format_datetime(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _normalise_tags(items: Iterable[Any] | str | None) -> list[str]:
    """Return a trimmed, de-duplicated list of tag strings."""
    if items is None:
        return []
    if isinstance(items, str):
        items = [items]
    tags: list[str] = []
    for raw in items:
        text = str(raw).strip()
        if text and text not in tags:
            tags.append(text)
    return tags


def coerce_embedding(value: Any) -> list[float] | None:
    """Return *value* as a list of floats, or ``None`` when it is not a usable vector.

    Non-numeric entries are coerced to ``0.0`` so that a partially corrupted
    record still yields a vector of the stored dimensionality.
    """
    if value is None or isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return None
    if not value:
        return None
    vector: list[float] = []
    for item in value:
        try:
            vector.append(float(item))
        except (TypeError, ValueError):
            vector.append(0.0)
    return vector


@dataclass(slots=True)
class Prompt:
    """Dataclass representation of a saved prompt."""

    id: str
    title: str
    text: str
    tags: list[str] = field(default_factory=list)
    embedding: list[float] | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    # Transient search-only attribute populated at runtime; excluded from
    # persistence and comparisons.
    similarity: float | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        """Normalise tags and embedding payloads supplied by callers."""
        self.tags = _normalise_tags(self.tags)
        self.embedding = coerce_embedding(self.embedding)

    @property
    def has_embedding(self) -> bool:
        """Return ``True`` when a non-empty embedding is stored on the prompt."""
        return bool(self.embedding)

    @property
    def composite_key(self) -> str:
        """Cache key used when a prompt is ranked without relying on its identifier."""
        return self.id or f"{self.title}:{self.text}"

    @property
    def search_document(self) -> str:
        """Text embedded for semantic search (title and body)."""
        return f"{self.title.strip()} {self.text.strip()}".strip()

    def with_embedding(self, embedding: Sequence[float] | None) -> Prompt:
        """Return a copy of the prompt carrying *embedding*."""
        return dataclasses.replace(
            self,
            embedding=list(embedding) if embedding is not None else None,
            similarity=None,
        )

    def with_similarity(self, similarity: float) -> Prompt:
        """Return a copy of the prompt annotated with a search score."""
        return dataclasses.replace(self, similarity=similarity)

    def with_changes(self, **changes: Any) -> Prompt:
        """Return an edited copy, dropping the embedding when the text changes."""
        text_changed = "text" in changes and changes["text"] != self.text
        if text_changed and "embedding" not in changes:
            changes["embedding"] = None
        changes.setdefault("updated_at", _utc_now())
        changes["similarity"] = None
        return dataclasses.replace(self, **changes)

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable record for the key-value store."""
        record: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "tags": list(self.tags),
            "createdAt": _format_datetime(self.created_at),
            "updatedAt": _format_datetime(self.updated_at),
        }
        if self.embedding:
            record["embedding"] = [float(value) for value in self.embedding]
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Prompt:
        """Hydrate a prompt from a stored record."""
        text = record.get("text")
        if text is None:
            text = record.get("body", "")
        return cls(
            id=str(record.get("id") or ""),
            title=str(record.get("title") or ""),
            text=str(text or ""),
            tags=_normalise_tags(record.get("tags")),
            embedding=coerce_embedding(record.get("embedding")),
            created_at=_ensure_datetime(record.get("createdAt")),
            updated_at=_ensure_datetime(record.get("updatedAt")),
        )


def prompts_from_records(records: Any) -> list[Prompt]:
    """Hydrate a list of prompts, skipping entries that are not mappings."""
    if not isinstance(records, Sequence) or isinstance(records, (str, bytes)):
        return []
    return [Prompt.from_record(item) for item in records if isinstance(item, Mapping)]


def prompts_to_records(prompts: Iterable[Prompt]) -> list[dict[str, Any]]:
    """Serialise prompts for the key-value store."""
    return [prompt.to_record() for prompt in prompts]


__all__ = [
    "DEFAULT_PROMPT_TITLE",
    "Prompt",
    "coerce_embedding",
    "prompts_from_records",
    "prompts_to_records",
]
