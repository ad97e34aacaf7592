"""CLI command handlers for Prompt Nest.

Updates:
  v0.2.0 - 2026-03-08 - Add duplicate check, rehydrate, and user context commands.
  v0.1.0 - 2026-02-19 - Introduce prompt, search, and tag suggestion handlers.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.exceptions import PromptNotFoundError, StorageError

from .utils import format_prompt_line, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.intelligence import PromptIntelligence

CommandHandler = Callable[["PromptIntelligence", argparse.Namespace, logging.Logger], int]
_Coroutine = Callable[["PromptIntelligence", argparse.Namespace, logging.Logger], Awaitable[int]]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler


def _run(coroutine: _Coroutine) -> CommandHandler:
    """Return a synchronous handler running *coroutine* on a fresh event loop."""

    def _handler(
        intelligence: PromptIntelligence,
        args: argparse.Namespace,
        logger: logging.Logger,
    ) -> int:
        try:
            return asyncio.run(coroutine(intelligence, args, logger))
        except PromptNotFoundError as exc:
            logger.error("%s", exc)
            return 4
        except (StorageError, ValueError) as exc:
            logger.error("Command failed: %s", exc)
            return 5

    _handler.__name__ = coroutine.__name__
    _handler.__doc__ = coroutine.__doc__
    return _handler


async def _prepare(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> bool:
    if getattr(args, "offline", False):
        return False
    ready = await intelligence.ensure_ready()
    if not ready:
        logger.warning("Embedding model unavailable; continuing without semantic features.")
    return ready


async def run_add(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Save a prompt unless it nearly duplicates an existing one."""
    text = (getattr(args, "text", "") or "").strip()
    if not text:
        logger.error("Prompt text must be provided.")
        return 5
    await _prepare(intelligence, args, logger)
    repository = intelligence.repository
    existing = await repository.list_prompts()
    if not getattr(args, "allow_duplicate", False):
        check = await intelligence.is_duplicate(text, existing)
        if check.duplicate and check.match is not None:
            print_and_log(
                logger,
                logging.WARNING,
                f"Similar prompt already saved: {check.match.id} ({check.match.title}). "
                "Use --allow-duplicate to save anyway.",
            )
            return 5

    tags = list(getattr(args, "tags", None) or [])
    if not tags and getattr(args, "suggest_tags", False):
        tags = await intelligence.suggest_tags(text)
    prompt = await repository.create_prompt(getattr(args, "title", None), text, tags)
    print_and_log(logger, logging.INFO, f"Saved prompt {prompt.id} ({prompt.title}).")
    if tags:
        print(f"Tags: {', '.join(prompt.tags)}")
    return 0


async def run_list(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    prompts = await intelligence.repository.list_prompts()
    tag = (getattr(args, "tag", None) or "").strip()
    if tag:
        prompts = [prompt for prompt in prompts if tag in prompt.tags]
    if not prompts:
        print("No prompts saved.")
        return 0
    for prompt in prompts:
        print(format_prompt_line(prompt))
    logger.debug("Listed prompts", extra={"count": len(prompts)})
    return 0


async def run_delete(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    remaining = await intelligence.repository.delete_prompt(args.prompt_id)
    print_and_log(
        logger,
        logging.INFO,
        f"Deleted prompt {args.prompt_id}; {len(remaining)} prompt(s) remain.",
    )
    return 0


async def run_search(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Print prompts ranked against the query, best match first."""
    query = (getattr(args, "query", "") or "").strip()
    if not query:
        logger.error("Search query must be provided.")
        return 5
    semantic = await _prepare(intelligence, args, logger)
    prompts = await intelligence.repository.list_prompts()
    results = await intelligence.search(query, prompts)
    limit = max(1, int(getattr(args, "limit", 10) or 10))
    mode = "semantic" if semantic else "keyword"
    print(f"\n{len(results)} {mode} match(es) for: {query!r}\n")
    for prompt in results[:limit]:
        print(format_prompt_line(prompt))
    return 0


async def run_suggest_tags(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    if not await _prepare(intelligence, args, logger):
        print("Tag suggestions need the embedding model.")
        return 0
    tags = await intelligence.suggest_tags(args.text)
    print(", ".join(tags) if tags else "No confident tag suggestions.")
    return 0


async def run_check_duplicate(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    await _prepare(intelligence, args, logger)
    prompts = await intelligence.repository.list_prompts()
    check = await intelligence.is_duplicate(args.text, prompts)
    if check.duplicate and check.match is not None:
        similarity = check.similarity or 0.0
        print(f"Duplicate of {check.match.id} ({check.match.title}), similarity {similarity:.3f}")
        return 0
    print("No duplicate found.")
    return 0


async def run_rehydrate(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Backfill embeddings for prompts saved while the model was unavailable."""
    if not await _prepare(intelligence, args, logger):
        logger.error("Rehydration requires the embedding model.")
        return 5
    prompts = await intelligence.repository.list_prompts()
    missing = sum(1 for prompt in prompts if not prompt.has_embedding)
    changed = await intelligence.schedule_rehydrate(prompts)
    if changed:
        print_and_log(logger, logging.INFO, f"Stored embeddings for up to {missing} prompt(s).")
    else:
        print_and_log(logger, logging.INFO, "No embeddings were added.")
    return 0


async def run_status(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    await _prepare(intelligence, args, logger)
    prompts = await intelligence.repository.list_prompts()
    embedded = sum(1 for prompt in prompts if prompt.has_embedding)
    print(f"Model: {intelligence.status.value}")
    print(f"Prompts: {len(prompts)} ({embedded} with embeddings)")
    return 0


async def run_set_context(
    intelligence: PromptIntelligence,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    text = (getattr(args, "text", "") or "").strip()
    await intelligence.repository.set_user_context(text)
    message = "User context cleared." if not text else "User context saved."
    print_and_log(logger, logging.INFO, message)
    return 0


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    None: CommandSpec(_run(run_status)),
    "add": CommandSpec(_run(run_add)),
    "list": CommandSpec(_run(run_list)),
    "delete": CommandSpec(_run(run_delete)),
    "search": CommandSpec(_run(run_search)),
    "suggest-tags": CommandSpec(_run(run_suggest_tags)),
    "check-duplicate": CommandSpec(_run(run_check_duplicate)),
    "rehydrate": CommandSpec(_run(run_rehydrate)),
    "status": CommandSpec(_run(run_status)),
    "set-context": CommandSpec(_run(run_set_context)),
}


__all__ = ["CommandSpec", "COMMAND_SPECS"]
