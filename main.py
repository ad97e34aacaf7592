"""Application entry point for Prompt Nest.

Updates:
  v0.2.0 - 2026-03-08 - Mirror model status notifications into the CLI log.
  v0.1.0 - 2026-02-19 - Wire settings, the intelligence facade, and CLI commands.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS
from cli.parser import parse_args
from cli.runtime import log_notifications, setup_logging
from cli.settings_summary import print_settings_summary
from config import load_settings
from core import build_prompt_intelligence

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptNestSettings
    from core.intelligence import PromptIntelligence


def _initialise_intelligence(
    settings: PromptNestSettings,
    logger: logging.Logger,
) -> PromptIntelligence | None:
    try:
        return build_prompt_intelligence(settings)
    except Exception as exc:  # noqa: BLE001 - surfaced to CLI as exit code 3
        logger.error("Failed to initialise services: %s", exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompt_nest.main")
    try:
        settings = load_settings()
    except Exception as exc:  # noqa: BLE001 - surfaced to CLI as exit code 2
        logger.error("Failed to load settings: %s", exc)
        return 2

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS.get(command)
    if spec is None:  # pragma: no cover - argparse rejects unknown commands
        logger.error("Unknown command: %s", command)
        return 1

    intelligence = _initialise_intelligence(settings, logger)
    if intelligence is None:
        return 3

    with log_notifications(intelligence.notification_center):
        return spec.handler(intelligence, args, logger)


if __name__ == "__main__":
    raise SystemExit(main())
