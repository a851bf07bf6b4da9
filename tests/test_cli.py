# tests/test_cli.py

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

from taskpilot.cli import main
from taskpilot.cli.main import cli
from taskpilot.core.state import AppState


@pytest.fixture()
def run(state: AppState, monkeypatch: pytest.MonkeyPatch):
    # Wide consoles so tmp paths in messages are not wrapped.
    monkeypatch.setattr(main, "console", Console(width=200, highlight=False))
    monkeypatch.setattr(main, "err_console", Console(width=200, stderr=True, highlight=False))
    runner = CliRunner()

    def _run(*args: str):
        return runner.invoke(cli, list(args), obj=state)

    return _run


def _saved(path: Path) -> dict:
    return json.loads(path.read_text("utf-8"))


def test_init_from_requirements(run, state: AppState, tmp_path: Path) -> None:
    prd = tmp_path / "prd.md"
    prd.write_text("- Login page\n- Logout button\n", "utf-8")

    result = run("init", "--prd", str(prd))
    assert result.exit_code == 0, result.output
    assert "Created 2 task(s)" in result.output
    assert "Tasks file created at" in result.output
    assert [t["title"] for t in _saved(state.store.path)["tasks"]] == ["Login page", "Logout button"]

    again = run("init")
    assert again.exit_code == 1
    assert "already exists" in again.output


def test_commands_without_tasks_file(run) -> None:
    result = run("list")
    assert result.exit_code == 1
    assert "taskpilot init" in result.output


def test_list_and_filter(run, seeded_store) -> None:
    result = run("list")
    assert result.exit_code == 0, result.output
    assert "Total: 5 task(s)" in result.output

    done = run("list", "--status", "done")
    assert "Total: 1 task(s)" in done.output

    tree = run("list", "-w")
    assert "[2.1] Sub 2.1" in tree.output


def test_list_rejects_unknown_status(run, seeded_store) -> None:
    result = run("list", "--status", "blocked")
    assert result.exit_code == 2


def test_next(run, seeded_store) -> None:
    result = run("next")
    assert result.exit_code == 0, result.output
    assert "Next task to work on:" in result.output
    assert "[2] Task 2" in result.output


def test_next_when_everything_is_blocked(run, seeded_store) -> None:
    # Only 5 stays open, waiting on a task that does not exist.
    assert run("set-status", "--id", "2,3,4", "--status", "done").exit_code == 0

    result = run("next")
    assert result.exit_code == 0, result.output
    assert "No available tasks found" in result.output
    assert "[5] Task 5" in result.output
    assert "(missing task)" in result.output


def test_show_task_and_subtask(run, seeded_store) -> None:
    task = run("show", "2")
    assert task.exit_code == 0, task.output
    assert "Description of task 2" in task.output

    sub = run("show", "2.2")
    assert sub.exit_code == 0, sub.output
    assert "[2.2] Sub 2.2" in sub.output
    assert "Parent:" in sub.output

    missing = run("show", "2.7")
    assert missing.exit_code == 1

    bad = run("show", "two")
    assert bad.exit_code == 2


def test_set_status_reports_skipped_ids(run, seeded_store) -> None:
    result = run("set-status", "--id", "1,3,77", "--status", "pending")
    assert result.exit_code == 0, result.output
    assert "Updated 2 task(s) to status: pending" in result.output
    assert "Not found (skipped): 77" in result.output


def test_set_status_invalid_status_exit_code(run, seeded_store) -> None:
    before = seeded_store.path.read_text("utf-8")
    result = run("set-status", "--id", "3", "--status", "finished")
    assert result.exit_code == 2
    assert "Error:" in result.output
    assert seeded_store.path.read_text("utf-8") == before


def test_add_task_and_dependencies(run, seeded_store) -> None:
    result = run("add-task", "--title", "Release", "--priority", "high", "--dependencies", "3")
    assert result.exit_code == 0, result.output
    assert "Added task 6:" in result.output

    cycle = run("add-dependency", "--id", "2", "--depends-on", "6")
    assert cycle.exit_code == 1
    assert "cycle" in cycle.output.lower()

    ok = run("add-dependency", "--id", "6", "--depends-on", "4")
    assert ok.exit_code == 0, ok.output
    assert "now depends on: 3, 4" in ok.output

    removed = run("remove-dependency", "--id", "6", "--depends-on", "3")
    assert removed.exit_code == 0, removed.output
    assert _saved(seeded_store.path)["tasks"][-1]["dependencies"] == [4]


def test_validate_and_fix_dependencies(run, seeded_store) -> None:
    result = run("validate-dependencies")
    assert result.exit_code == 1
    assert "Found 1 dependency problem(s)" in result.output

    fixed = run("fix-dependencies")
    assert fixed.exit_code == 0, fixed.output
    assert "Fixed 1" in fixed.output

    clean = run("validate-dependencies")
    assert clean.exit_code == 0
    assert "All dependencies are valid." in clean.output


def test_clear_subtasks_needs_exactly_one_selector(run, seeded_store) -> None:
    assert run("clear-subtasks").exit_code == 2
    assert run("clear-subtasks", "--id", "2", "--all").exit_code == 2

    result = run("clear-subtasks", "--id", "2")
    assert result.exit_code == 0, result.output
    assert "Cleared subtasks from 1 task(s)." in result.output


def test_expand_uses_llm(run, state: AppState, seeded_store) -> None:
    result = run("expand", "--id", "3", "--num", "2")
    assert result.exit_code == 0, result.output
    assert "Task 3: added 2 subtask(s)" in result.output
    assert "Write parser" in result.output
    assert len(state.llm.calls) == 1

    refused = run("expand", "--id", "3")
    assert refused.exit_code == 2
    assert "--force" in refused.output


def test_generate(run, seeded_store, tmp_path: Path) -> None:
    out = tmp_path / "docs"
    result = run("generate", "--output-dir", str(out))
    assert result.exit_code == 0, result.output
    assert "Wrote 5 task file(s)" in result.output
    assert (out / "task_001.md").exists()


def test_file_option_overrides_store(run, tmp_path: Path) -> None:
    other = tmp_path / "other" / "work.json"
    result = run("--file", str(other), "init")
    assert result.exit_code == 0, result.output
    assert other.exists()


def test_add_task_refuses_its_own_id_as_dependency(run, seeded_store) -> None:
    before = seeded_store.path.read_text("utf-8")
    result = run("add-task", "--title", "Loop", "--dependencies", "6")
    assert result.exit_code == 2
    assert "cannot depend on itself" in result.output
    assert seeded_store.path.read_text("utf-8") == before
