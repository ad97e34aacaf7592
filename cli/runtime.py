"""Runtime boot helpers for the Prompt Nest CLI.

Updates:
  v0.2.0 - 2026-03-08 - Mirror notification events into the CLI log.
  v0.1.0 - 2026-02-19 - Extract logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import TYPE_CHECKING

from core.notifications import NotificationLevel

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.notifications import Notification, NotificationCenter, NotificationSubscription

_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or Path("config/logging.conf")
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except Exception:  # pragma: no cover - configuration fallback
            logging.getLogger("prompt_nest.main").debug(
                "Invalid logging configuration at %s", path, exc_info=True
            )
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def log_notifications(
    center: NotificationCenter,
    logger: logging.Logger | None = None,
) -> NotificationSubscription:
    """Forward every notification published on *center* to *logger*."""
    target = logger or logging.getLogger("prompt_nest.events")

    def _forward(notification: Notification) -> None:
        target.log(
            _LEVELS.get(notification.level, logging.INFO),
            "%s: %s",
            notification.title,
            notification.message,
        )

    return center.subscribe(_forward)
