"""Integration checks for the CLI entry point.

Updates:
  v0.2.0 - 2026-03-08 - Cover duplicate rejection, rehydration, and user context commands.
  v0.1.0 - 2026-02-19 - Exercise add/list/search/delete against a temporary store.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, cast

import pytest

import main


@pytest.fixture()
def store_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "data" / "store.json"
    monkeypatch.setenv("PROMPT_NEST_STORAGE_PATH", str(path))
    monkeypatch.setenv("PROMPT_NEST_EMBEDDING_BACKEND", "deterministic")
    return path


def _stored_prompts(path: Path) -> list[dict[str, Any]]:
    return cast("list[dict[str, Any]]", json.loads(path.read_text(encoding="utf-8"))["prompts"])


def test_add_persists_prompt_with_embedding(
    store_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main.main(
        ["add", "Fix this python stack trace", "--title", "Trace", "--tag", "code"]
    )

    assert exit_code == 0
    prompts = _stored_prompts(store_path)
    assert len(prompts) == 1
    assert prompts[0]["title"] == "Trace"
    assert prompts[0]["tags"] == ["code"]
    assert len(prompts[0]["embedding"]) == 64
    assert "Saved prompt" in capsys.readouterr().out


def test_add_rejects_duplicates_unless_allowed(
    store_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert main.main(["add", "Summarise this article"]) == 0
    assert main.main(["add", "summarise this article"]) == 5
    assert "Similar prompt already saved" in capsys.readouterr().out
    assert len(_stored_prompts(store_path)) == 1

    assert main.main(["add", "summarise this article", "--allow-duplicate"]) == 0
    assert len(_stored_prompts(store_path)) == 2


def test_offline_add_skips_embedding_and_rehydrate_backfills(store_path: Path) -> None:
    assert main.main(["--offline", "add", "Write a poem about autumn"]) == 0
    assert "embedding" not in _stored_prompts(store_path)[0]

    assert main.main(["rehydrate"]) == 0
    assert len(_stored_prompts(store_path)[0]["embedding"]) == 64


def test_list_and_search(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main.main(["add", "Explain recursion to a beginner", "--title", "Recursion"])
    main.main(
        ["add", "Draft a cover letter for a job", "--title", "Cover letter", "--tag", "career"]
    )
    capsys.readouterr()

    assert main.main(["list", "--tag", "career"]) == 0
    listed = capsys.readouterr().out
    assert "Cover letter" in listed
    assert "Recursion" not in listed

    assert main.main(["search", "recursion beginner"]) == 0
    output = capsys.readouterr().out
    assert "semantic match(es)" in output
    assert "Recursion" in output.split("Tags:")[0]


def test_offline_search_uses_keyword_matching(
    store_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    main.main(["--offline", "add", "Draft a cover letter", "--title", "Letter"])
    main.main(["--offline", "add", "Plan a study schedule", "--title", "Study"])
    capsys.readouterr()

    assert main.main(["--offline", "search", "STUDY"]) == 0
    output = capsys.readouterr().out
    assert "1 keyword match(es)" in output
    assert "Study" in output
    assert "Letter" not in output


def test_delete_missing_prompt_returns_not_found(store_path: Path) -> None:
    assert main.main(["delete", "prompt_0_missing"]) == 4


def test_delete_existing_prompt(store_path: Path) -> None:
    main.main(["--offline", "add", "Temporary prompt"])
    prompt_id = _stored_prompts(store_path)[0]["id"]

    assert main.main(["delete", prompt_id]) == 0
    assert _stored_prompts(store_path) == []


def test_set_context_and_status(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(["set-context", "backend engineer"]) == 0
    stored = json.loads(store_path.read_text(encoding="utf-8"))
    assert stored["userContext"] == "backend engineer"

    assert main.main(["status"]) == 0
    output = capsys.readouterr().out
    assert "Model: ready" in output
    assert "Prompts: 0" in output

    assert main.main(["set-context"]) == 0
    assert "userContext" not in json.loads(store_path.read_text(encoding="utf-8"))


def test_check_duplicate_reports_match(
    store_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    main.main(["add", "Translate this paragraph into French"])
    capsys.readouterr()

    assert main.main(["check-duplicate", "translate this paragraph into french"]) == 0
    assert "Duplicate of" in capsys.readouterr().out

    assert main.main(["check-duplicate", "Generate unit tests"]) == 0
    assert "No duplicate found." in capsys.readouterr().out


def test_print_settings(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(["--print-settings"]) == 0
    output = capsys.readouterr().out
    assert "Prompt Nest configuration summary" in output
    assert "Backend: deterministic" in output
    assert "Duplicate threshold: 0.92" in output


def test_invalid_settings_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROMPT_NEST_SEARCH_THRESHOLD", "7")

    assert main.main(["status"]) == 2


def test_initialisation_failure_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(*_: object, **__: object) -> object:
        raise RuntimeError("backend exploded")

    monkeypatch.setattr(cast("Any", main), "build_prompt_intelligence", _boom)

    assert main.main(["list"]) == 3
