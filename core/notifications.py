"""Notification hub used to surface model status and background task progress.

Updates:
  v0.2.0 - 2026-03-05 - Publish model status transitions for loading indicators.
  v0.1.0 - 2026-02-12 - Introduce single-loop notification hub with task tracking.
"""
from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger("prompt_nest.notifications")

MODEL_STATUS_TOPIC = "model-status"


class NotificationLevel(str, Enum):
    """Severity levels communicated to listeners."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationStatus(str, Enum):
    """High-level lifecycle stage for a task notification."""
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class Notification:
    """Payload describing one notification event."""
    title: str
    message: str
    level: NotificationLevel
    status: NotificationStatus
    topic: str | None = None
    task_id: str | None = None
    duration_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class NotificationSubscription:
    """Disposable handle that removes its callback when closed."""
    def __init__(
        self,
        center: NotificationCenter,
        callback: Callable[[Notification], None],
    ) -> None:
        self._center = center
        self._callback = callback
        self._closed = False

    def close(self) -> None:
        """Detach the stored callback if it is still active."""
        if self._closed:
            return
        self._closed = True
        self._center.unsubscribe(self._callback)

    def __enter__(self) -> NotificationSubscription:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class NotificationCenter:
    """Publish/subscribe hub for listeners living on the same event loop."""
    def __init__(self, history_limit: int = 100) -> None:
        self._subscribers: list[Callable[[Notification], None]] = []
        self._history: deque[Notification] = deque(maxlen=history_limit)

    def subscribe(self, callback: Callable[[Notification], None]) -> NotificationSubscription:
        """Register *callback* to receive future notifications."""
        self._subscribers.append(callback)
        return NotificationSubscription(self, callback)

    def unsubscribe(self, callback: Callable[[Notification], None]) -> None:
        """Remove a previously subscribed callback if present."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def publish(self, notification: Notification) -> None:
        """Deliver *notification* to all registered subscribers."""
        self._history.append(notification)
        logger.debug(
            "Notification event",
            extra={
                "title": notification.title,
                "topic": notification.topic,
                "status": notification.status.value,
                "task_id": notification.task_id,
            },
        )
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:  # noqa: BLE001 - a faulty listener must not break publishers
                logger.exception("Notification subscriber raised an exception")

    def history(self, topic: str | None = None) -> tuple[Notification, ...]:
        """Return stored notifications, optionally limited to *topic*."""
        if topic is None:
            return tuple(self._history)
        return tuple(item for item in self._history if item.topic == topic)

    @contextmanager
    def track_task(
        self,
        *,
        title: str,
        start_message: str,
        success_message: str,
        failure_message: str | None = None,
        task_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Emit start/success/failure events around a block of work.

        The yielded dictionary is merged into the success event's metadata so
        the tracked block can report results (counts, flags) to listeners.
        """
        resolved_task_id = task_id or f"task:{uuid.uuid4()}"
        base_metadata = dict(metadata or {})
        started_at = time.perf_counter()
        self.publish(
            Notification(
                title=title,
                message=start_message,
                level=NotificationLevel.INFO,
                status=NotificationStatus.STARTED,
                task_id=resolved_task_id,
                metadata=dict(base_metadata),
            )
        )
        results: dict[str, Any] = {}
        try:
            yield results
        except Exception as exc:
            self.publish(
                Notification(
                    title=title,
                    message=f"{failure_message or f'{title} failed'}: {exc}",
                    level=NotificationLevel.ERROR,
                    status=NotificationStatus.FAILED,
                    task_id=resolved_task_id,
                    duration_ms=int((time.perf_counter() - started_at) * 1000),
                    metadata=dict(base_metadata),
                )
            )
            raise
        self.publish(
            Notification(
                title=title,
                message=success_message,
                level=NotificationLevel.SUCCESS,
                status=NotificationStatus.SUCCEEDED,
                task_id=resolved_task_id,
                duration_ms=int((time.perf_counter() - started_at) * 1000),
                metadata={**base_metadata, **results},
            )
        )


notification_center = NotificationCenter()


__all__ = [
    "MODEL_STATUS_TOPIC",
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    "NotificationStatus",
    "NotificationSubscription",
    "notification_center",
]
