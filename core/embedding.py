"""Embedding backends and the text-to-vector engine for Prompt Nest.

Updates:
  v0.4.0 - 2026-03-08 - Reject ragged nested output instead of pooling garbage.
  v0.3.0 - 2026-02-26 - Accept array-likes exposing ``tolist`` from local backends.
  v0.2.0 - 2026-02-18 - Mean-pool token output and normalise to unit length.
  v0.1.0 - 2026-02-09 - Introduce deterministic and sentence-transformers backends.
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import logging
import math
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

from .exceptions import EmbeddingGenerationError, ModelLoadError, TensorShapeError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .context import InferenceFunction, SemanticContext

logger = logging.getLogger("prompt_nest.embedding")

InferenceLoader = Callable[[], "InferenceFunction | Awaitable[InferenceFunction]"]

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
_MAX_NESTING = 3


class DeterministicInference:
    """Deterministic, lightweight token embedding backend.

    Each lower-cased word is hashed into a fixed-length vector in [-1.0, 1.0]
    and the result is shaped like transformer token output: one batch of
    ``tokens x hidden`` values. Texts sharing words therefore land close to
    each other after pooling, which is enough for offline use and tests.
    """

    def __init__(self, dimensions: int = 64) -> None:
        if dimensions <= 0 or dimensions > 64:
            raise ValueError("dimensions must be between 1 and 64")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def __call__(self, text: str) -> list[list[list[float]]]:
        tokens = _TOKEN_PATTERN.findall(text.lower()) or [text]
        rows = [self._token_vector(token) for token in tokens]
        return [rows]

    def _token_vector(self, token: str) -> list[float]:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=self._dimensions).digest()
        return [(byte / 127.5) - 1.0 for byte in digest]


class SentenceTransformersInference:
    """Use a sentence-transformers model to produce token embeddings locally."""

    def __init__(self, model: str, *, device: str | None = None) -> None:
        """Load a sentence-transformers model for local embedding generation."""
        if not model:
            raise ValueError("sentence-transformers backend requires a model name.")
        self._model_name = model
        self._device = device
        self._model: Any = self._load_model()

    @property
    def name(self) -> str:
        return f"sentence-transformers:{self._model_name}"

    def _load_model(self) -> Any:
        try:  # pragma: no cover - runtime dependency
            from sentence_transformers import SentenceTransformer  # type: ignore[import-not-found]
        except ImportError as exc:
            raise ModelLoadError("sentence-transformers is not installed") from exc
        sentence_transformer = cast("Any", SentenceTransformer)
        return sentence_transformer(self._model_name, device=self._device)

    async def __call__(self, text: str) -> Any:
        try:
            return await asyncio.to_thread(self._encode, text)
        except Exception as exc:
            raise EmbeddingGenerationError(f"{self.name} failed to encode text") from exc

    def _encode(self, text: str) -> Any:  # pragma: no cover - runtime dependency
        return self._model.encode(
            text,
            output_value="token_embeddings",
            convert_to_numpy=False,
            show_progress_bar=False,
        )


def create_inference_loader(
    backend: str,
    *,
    model: str | None,
    device: str | None = None,
) -> InferenceLoader:
    """Return a zero-argument loader producing the configured inference callable."""
    backend_normalised = (backend or "sentence-transformers").strip().lower()
    if backend_normalised in {"deterministic", "hash"}:
        return DeterministicInference
    if backend_normalised in {"sentence-transformers", "sentence_transformers", "st"}:
        if not model:
            raise ValueError("sentence-transformers backend requires a model name.")

        async def _load() -> InferenceFunction:
            return await asyncio.to_thread(SentenceTransformersInference, model, device=device)

        return _load
    raise ValueError(f"Unsupported embedding backend: {backend}")


# ---------------------------------------------------------------------------
# Tensor resolution and pooling
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawTensor:
    """Flat numeric buffer plus its dimension list."""

    data: Sequence[float]
    dims: tuple[int, ...]


def _to_number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _is_nested(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _nested_dims(value: Sequence[Any]) -> tuple[int, ...]:
    dims: list[int] = []
    level: Any = value
    while _is_nested(level) and len(dims) < _MAX_NESTING:
        dims.append(len(level))
        if not level:
            break
        level = level[0]
    return tuple(dims)


def _flatten(value: Any, depth: int, out: list[float]) -> None:
    if depth == 0 or not _is_nested(value):
        out.append(_to_number(value))
        return
    for item in value:
        _flatten(item, depth - 1, out)


def resolve_tensor(output: Any) -> RawTensor:
    """Normalise raw model output into a :class:`RawTensor`.

    Accepted shapes are a tensor-like object (or mapping) carrying a flat
    ``data`` buffer plus ``dims``, an array-like exposing ``tolist()``, or a
    nested sequence of which the first three levels are used.
    """
    data: Any
    dims: Any
    if isinstance(output, Mapping):
        mapping = cast("Mapping[str, Any]", output)
        data, dims = mapping.get("data"), mapping.get("dims")
    else:
        data, dims = getattr(output, "data", None), getattr(output, "dims", None)
    if data is not None and _is_nested(dims):
        dim_values = tuple(int(size) for size in dims)
        flat = [_to_number(item) for item in data]
        return RawTensor(flat, dim_values)

    if not _is_nested(output) and callable(getattr(output, "tolist", None)):
        output = output.tolist()
    if not _is_nested(output):
        raise TensorShapeError(f"Unsupported model output type: {type(output).__name__}")

    nested_dims = _nested_dims(output)
    flat_values: list[float] = []
    _flatten(output, len(nested_dims), flat_values)
    if math.prod(nested_dims) != len(flat_values):
        raise TensorShapeError(f"Ragged model output for dims {list(nested_dims)}")
    return RawTensor(flat_values, nested_dims)


def mean_pool_and_normalize(tensor: RawTensor) -> list[float]:
    """Mean-pool token vectors into one vector and scale it to unit length.

    Rank >= 3 pools the tokens axis of the first batch entry, rank 2 pools the
    rows, and rank 1 is taken as an already-pooled vector. A vector with
    exactly zero magnitude is returned as-is.
    """
    dims = tensor.dims
    source = tensor.data
    if len(dims) >= 2:
        tokens, hidden = dims[-2], dims[-1]
        if tokens <= 0 or hidden <= 0 or len(source) < tokens * hidden:
            raise TensorShapeError(f"Cannot pool model output with dims {list(dims)}")
        pooled = [0.0] * hidden
        for token_index in range(tokens):
            offset = token_index * hidden
            for feature_index in range(hidden):
                pooled[feature_index] += source[offset + feature_index]
        pooled = [value / tokens for value in pooled]
    elif len(dims) == 1:
        if dims[0] <= 0 or len(source) < dims[0]:
            raise TensorShapeError("Model output vector is empty")
        pooled = [float(value) for value in source[: dims[0]]]
    else:
        raise TensorShapeError("Model output has no dimensions")

    magnitude = math.sqrt(sum(value * value for value in pooled))
    if not magnitude:
        return pooled
    return [value / magnitude for value in pooled]


class EmbeddingEngine:
    """Turn raw text into a single normalised vector using the loaded pipeline."""

    def __init__(self, context: SemanticContext) -> None:
        self._context = context

    async def embed(self, text: str | None) -> list[float] | None:
        """Return a unit-length embedding for *text* or ``None`` when unavailable.

        Inference errors and malformed model output are logged and reported as
        ``None``; nothing raised by the backend crosses this boundary.
        """
        input_text = str(text or "").strip()
        pipeline = self._context.pipeline
        if not input_text or not self._context.available or pipeline is None:
            return None
        try:
            output = pipeline(input_text)
            if inspect.isawaitable(output):
                output = await output
            return mean_pool_and_normalize(resolve_tensor(output))
        except TensorShapeError as exc:
            logger.warning("Model output could not be pooled: %s", exc)
            return None
        except Exception:  # noqa: BLE001 - inference failures degrade to None
            logger.exception("Failed to embed text")
            return None


__all__ = [
    "DeterministicInference",
    "EmbeddingEngine",
    "InferenceLoader",
    "RawTensor",
    "SentenceTransformersInference",
    "create_inference_loader",
    "mean_pool_and_normalize",
    "resolve_tensor",
]
