"""Lazy model loading with a shared in-flight load and status reporting.

Updates:
  v0.3.0 - 2026-03-05 - Publish loading/ready/unavailable transitions to listeners.
  v0.2.0 - 2026-02-24 - Shield the shared load task from waiter cancellation.
  v0.1.0 - 2026-02-10 - Introduce lifecycle manager with single in-flight load.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING

from .notifications import (
    MODEL_STATUS_TOPIC,
    Notification,
    NotificationCenter,
    NotificationLevel,
    NotificationStatus,
)

if TYPE_CHECKING:
    from .context import SemanticContext
    from .embedding import InferenceLoader
    from .labels import LabelCache

logger = logging.getLogger(__name__)


class ModelStatus(str, Enum):
    """States rendered by a loading / ready / unavailable indicator."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


_STATUS_MESSAGES = {
    ModelStatus.IDLE: "AI idle",
    ModelStatus.LOADING: "Loading AI...",
    ModelStatus.READY: "AI Ready",
    ModelStatus.UNAVAILABLE: "AI Unavailable",
}

_STATUS_EVENTS = {
    ModelStatus.IDLE: (NotificationLevel.INFO, NotificationStatus.STARTED),
    ModelStatus.LOADING: (NotificationLevel.INFO, NotificationStatus.STARTED),
    ModelStatus.READY: (NotificationLevel.SUCCESS, NotificationStatus.SUCCEEDED),
    ModelStatus.UNAVAILABLE: (NotificationLevel.WARNING, NotificationStatus.FAILED),
}


class ModelLifecycleManager:
    """Load the inference pipeline once and expose its availability.

    Concurrent :meth:`ensure_ready` calls share one load task, which is
    forgotten as soon as it settles. A failed load leaves the subsystem in
    keyword-only mode until the next explicit :meth:`ensure_ready` call.
    """

    def __init__(
        self,
        context: SemanticContext,
        loader: InferenceLoader,
        labels: LabelCache,
        *,
        notification_center: NotificationCenter | None = None,
    ) -> None:
        self._context = context
        self._loader = loader
        self._labels = labels
        self._notification_center = notification_center or NotificationCenter()
        self._loading: asyncio.Task[bool] | None = None
        self._status = ModelStatus.IDLE

    @property
    def status(self) -> ModelStatus:
        return self._status

    @property
    def notification_center(self) -> NotificationCenter:
        return self._notification_center

    def is_available(self) -> bool:
        """Return ``True`` while a loaded pipeline is ready for inference."""
        return self._context.available and self._context.pipeline is not None

    async def ensure_ready(self) -> bool:
        """Load the model if needed and report whether it is available."""
        if self.is_available():
            self._set_status(ModelStatus.READY)
            return True
        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._loading)

    async def reload(self) -> bool:
        """Drop the current pipeline and every cache, then load again."""
        if self._loading is not None:
            await asyncio.shield(self._loading)
        self.unload()
        return await self.ensure_ready()

    def unload(self) -> None:
        """Forget the loaded pipeline; features fall back until the next load."""
        self._context.reset_model()
        self._set_status(ModelStatus.IDLE)

    async def _load(self) -> bool:
        self._set_status(ModelStatus.LOADING)
        try:
            pipeline = self._loader()
            if inspect.isawaitable(pipeline):
                pipeline = await pipeline
            self._context.pipeline = pipeline
            self._context.available = True
            await self._labels.precompute()
        except Exception:  # noqa: BLE001 - a failed load degrades to keyword-only mode
            logger.exception("Model initialisation failed")
            self._context.reset_model()
            self._set_status(ModelStatus.UNAVAILABLE)
            return False
        else:
            self._set_status(ModelStatus.READY)
            return True
        finally:
            self._loading = None

    def _set_status(self, status: ModelStatus) -> None:
        if status is self._status:
            return
        self._status = status
        level, event_status = _STATUS_EVENTS[status]
        self._notification_center.publish(
            Notification(
                title="Embedding model",
                message=_STATUS_MESSAGES[status],
                level=level,
                status=event_status,
                topic=MODEL_STATUS_TOPIC,
                metadata={"model_status": status.value},
            )
        )


__all__ = ["ModelLifecycleManager", "ModelStatus"]
