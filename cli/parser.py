"""Argument parser for the Prompt Nest CLI.

Updates:
  v0.2.0 - 2026-03-08 - Add duplicate check, rehydrate, and user context commands.
  v0.1.0 - 2026-02-19 - Introduce prompt, search, and tag suggestion commands.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser for the Prompt Nest launcher."""
    parser = argparse.ArgumentParser(description="Prompt Nest: local semantic prompt library")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip loading the embedding model; search falls back to keyword matching.",
    )

    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser("add", help="Save a new prompt.")
    add_parser.add_argument("text", type=str, help="Prompt text to save.")
    add_parser.add_argument("--title", type=str, default=None, help="Optional prompt title.")
    add_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=None,
        help="Tag to attach (repeatable).",
    )
    add_parser.add_argument(
        "--suggest-tags",
        action="store_true",
        help="Attach suggested tags when no --tag values are given.",
    )
    add_parser.add_argument(
        "--allow-duplicate",
        action="store_true",
        help="Save the prompt even when a near-identical prompt already exists.",
    )

    list_parser = subparsers.add_parser("list", help="List saved prompts, newest first.")
    list_parser.add_argument(
        "--tag",
        type=str,
        default=None,
        help="Only show prompts carrying this tag.",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a saved prompt.")
    delete_parser.add_argument("prompt_id", type=str, help="Identifier of the prompt to delete.")

    search_parser = subparsers.add_parser(
        "search",
        help="Rank saved prompts by meaning (keyword matching when the model is unavailable).",
    )
    search_parser.add_argument("query", type=str, help="Freeform search text.")
    search_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of results to display (default: 10).",
    )

    suggest_parser = subparsers.add_parser(
        "suggest-tags",
        help="Suggest up to two labels for the given text.",
    )
    suggest_parser.add_argument("text", type=str, help="Text to classify.")

    duplicate_parser = subparsers.add_parser(
        "check-duplicate",
        help="Report whether the text nearly matches a saved prompt.",
    )
    duplicate_parser.add_argument("text", type=str, help="Candidate prompt text.")

    subparsers.add_parser(
        "rehydrate",
        help="Compute embeddings for saved prompts that do not have one yet.",
    )
    subparsers.add_parser("status", help="Load the model and report its availability.")

    context_parser = subparsers.add_parser(
        "set-context",
        help="Store a short description of yourself used to bias tag suggestions.",
    )
    context_parser.add_argument(
        "text",
        type=str,
        nargs="?",
        default="",
        help="Context text (omit to clear the stored context).",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Prompt Nest launcher."""
    return build_parser().parse_args(argv)
