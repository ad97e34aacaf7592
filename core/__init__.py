"""Core service layer for Prompt Nest.

Updates:
  v0.3.0 - 2026-03-07 - Export the intelligence facade, stores, and factory helpers.
  v0.2.0 - 2026-02-18 - Export semantic search, duplicate detection, and rehydration.
  v0.1.0 - 2026-02-05 - Surface the embedding engine and similarity helpers.
"""

from .context import SemanticContext
from .duplicates import DuplicateCheck, DuplicateDetector
from .embedding import (
    DeterministicInference,
    EmbeddingEngine,
    SentenceTransformersInference,
    create_inference_loader,
    mean_pool_and_normalize,
    resolve_tensor,
)
from .exceptions import (
    EmbeddingGenerationError,
    ModelLoadError,
    PromptNestError,
    PromptNotFoundError,
    StorageError,
    StorageQuotaError,
    TensorShapeError,
)
from .factory import build_prompt_intelligence
from .intelligence import PromptIntelligence
from .labels import LabelCache
from .model_lifecycle import ModelLifecycleManager, ModelStatus
from .notifications import (
    Notification,
    NotificationCenter,
    NotificationLevel,
    NotificationStatus,
    NotificationSubscription,
    notification_center,
)
from .rehydration import EmbeddingRehydrator
from .repository import PromptRepository, create_id
from .search import SemanticSearch, keyword_filter
from .similarity import cosine_similarity
from .storage import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "PromptIntelligence",
    "build_prompt_intelligence",
    "SemanticContext",
    "ModelLifecycleManager",
    "ModelStatus",
    "EmbeddingEngine",
    "DeterministicInference",
    "SentenceTransformersInference",
    "create_inference_loader",
    "mean_pool_and_normalize",
    "resolve_tensor",
    "cosine_similarity",
    "LabelCache",
    "SemanticSearch",
    "keyword_filter",
    "DuplicateCheck",
    "DuplicateDetector",
    "EmbeddingRehydrator",
    "PromptRepository",
    "create_id",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "PromptNestError",
    "ModelLoadError",
    "EmbeddingGenerationError",
    "TensorShapeError",
    "StorageError",
    "StorageQuotaError",
    "PromptNotFoundError",
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    "NotificationStatus",
    "NotificationSubscription",
    "notification_center",
]
