"""Common exception classes for core package.

All exceptions ultimately inherit from :class:`PromptNestError`, allowing
callers to catch a single base class for any Prompt Nest failure while still
distinguishing individual error categories when needed.

The semantic layer converts model and inference errors into safe return
values at its public boundary; these classes mostly travel between the
internal layers and the reference storage collaborators.

Updates:
  v0.3.0 - 2026-03-06 - Add storage quota error for bounded key-value stores.
  v0.2.0 - 2026-02-22 - Add tensor shape error raised by pooling helpers.
  v0.1.0 - 2026-02-04 - Created module with model, embedding, and storage errors.
"""

from __future__ import annotations


class PromptNestError(Exception):
    """Base exception for Prompt Nest failures."""


# ---------------------------------------------------------------------------
# Model and embedding errors
# ---------------------------------------------------------------------------


class ModelLoadError(PromptNestError):
    """Raised when the local embedding model cannot be loaded."""


class EmbeddingGenerationError(PromptNestError):
    """Raised when the inference backend fails to produce token output."""


class TensorShapeError(EmbeddingGenerationError):
    """Raised when raw model output cannot be resolved into a pooled vector."""


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------


class StorageError(PromptNestError):
    """Raised when interactions with the key-value store fail."""


class StorageQuotaError(StorageError):
    """Raised when a write would exceed the store's size ceiling."""


class PromptNotFoundError(PromptNestError):
    """Raised when a prompt cannot be located in the backing store."""
