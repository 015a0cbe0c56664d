"""CLI のテスト（typer CliRunner）。"""

import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from scriptflow.cli import app
from scriptflow.settings import Settings, SettingsStore

runner = CliRunner()

needs_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not installed")


def test_uninitialized_list_prints_message_without_registry(
    store: SettingsStore, storage_root: Path
) -> None:
    store.save(Settings(storage_root=storage_root, initialized=False))

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "not initialized" in result.output
    assert not (storage_root / "flows.json").exists()
    assert not storage_root.exists()


@pytest.mark.parametrize(
    "args",
    [["create", "x", "-p", "."], ["run", "x"], ["delete", "x"], ["edit", "x"], ["reinit"]],
)
def test_uninitialized_verbs_do_nothing(
    store: SettingsStore, storage_root: Path, args: list[str]
) -> None:
    store.save(Settings(storage_root=storage_root, initialized=False))
    before = store.path.read_text(encoding="utf-8")

    result = runner.invoke(app, args)

    assert result.exit_code == 0
    assert "not initialized" in result.output
    assert store.path.read_text(encoding="utf-8") == before
    assert not storage_root.exists()


def test_init_prompts_and_saves(flow_home: Path, store: SettingsStore, tmp_path: Path) -> None:
    root = tmp_path / "root"

    result = runner.invoke(app, ["init"], input=f"zsh\n{root}\n")

    assert result.exit_code == 0, result.output
    assert "initialized successfully" in result.output
    s = store.load()
    assert s.initialized is True
    assert s.script_dialect == "zsh"
    assert s.storage_root == root


def test_init_when_already_initialized(settings: Settings, store: SettingsStore) -> None:
    before = store.path.read_text(encoding="utf-8")
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert "already initialized" in result.output
    assert store.path.read_text(encoding="utf-8") == before


def test_create_list_delete(settings: Settings, workdir: Path) -> None:
    result = runner.invoke(app, ["create", "build", "--path", str(workdir), "-c", "make,make test"])
    assert result.exit_code == 0, result.output
    assert "Flow created successfully" in result.output

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["List of flows:", "build"]

    result = runner.invoke(app, ["delete", "build"])
    assert result.exit_code == 0
    assert "Flow deleted successfully" in result.output

    result = runner.invoke(app, ["list"])
    assert "No flows found." in result.output


def test_create_interactive(settings: Settings, workdir: Path) -> None:
    result = runner.invoke(
        app, ["create"], input=f"bad name\ngood-name\n{workdir}\necho a,echo b\n"
    )
    assert result.exit_code == 0, result.output
    assert "valid flow name" in result.output

    script = settings.command_dir / "good-name" / "script.sh"
    assert script.read_text(encoding="utf-8") == "#!/bin/bash\n\necho a\n\necho b\n"


def test_create_duplicate_is_reported(settings: Settings, workdir: Path) -> None:
    runner.invoke(app, ["create", "dup", "-p", str(workdir), "-c", "true"])
    result = runner.invoke(app, ["create", "dup", "-p", str(workdir), "-c", "true"])
    assert result.exit_code == 1
    assert "already exists" in result.output


@needs_bash
def test_run_prints_output(settings: Settings, workdir: Path) -> None:
    runner.invoke(app, ["create", "hello", "-p", str(workdir), "-c", "echo hello-from-flow"])

    result = runner.invoke(app, ["run", "hello"])

    assert result.exit_code == 0, result.output
    assert "Running flow: hello" in result.output
    assert "hello-from-flow" in result.output
    assert "Finished." in result.output


@needs_bash
def test_run_failure_exit_code(settings: Settings, workdir: Path) -> None:
    runner.invoke(app, ["create", "bad", "-p", str(workdir), "-c", "echo before,exit 7"])
    before = Path.cwd()

    result = runner.invoke(app, ["run", "bad"])

    assert result.exit_code == 1
    assert "before" in result.output
    assert "Error running flow" in result.output
    assert "Finished." in result.output
    assert Path.cwd() == before


def test_run_unknown_flow(settings: Settings) -> None:
    result = runner.invoke(app, ["run", "nope"])
    assert result.exit_code == 1
    assert "Flow not found" in result.output


def test_corrupt_registry_is_reported(settings: Settings) -> None:
    settings.storage_root.mkdir(parents=True)
    (settings.storage_root / "flows.json").write_text("{oops", encoding="utf-8")
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "JSON" in result.output


def test_reinit_without_flows(settings: Settings, store: SettingsStore, tmp_path: Path) -> None:
    new_root = tmp_path / "second"
    result = runner.invoke(app, ["reinit"], input=f"cmd\n{new_root}\n")
    assert result.exit_code == 0, result.output
    assert "Delete Existing Flows" not in result.output
    assert store.load().storage_root == new_root
    assert store.load().script_dialect == "cmd"


def test_reinit_cancel(settings: Settings, store: SettingsStore, workdir: Path) -> None:
    runner.invoke(app, ["create", "a", "-p", str(workdir), "-c", "true"])
    before = store.path.read_text(encoding="utf-8")

    result = runner.invoke(app, ["reinit"], input="Cancel\n")

    assert result.exit_code == 0, result.output
    assert "Cancelled." in result.output
    assert store.path.read_text(encoding="utf-8") == before


@pytest.mark.parametrize("verb", ["reset-settings", "default"])
def test_reset_settings(settings: Settings, store: SettingsStore, verb: str) -> None:
    result = runner.invoke(app, [verb])
    assert result.exit_code == 0, result.output
    assert store.load() == Settings.default()


def test_first_run_bootstraps_config(flow_home: Path, store: SettingsStore) -> None:
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "not initialized" in result.output
    assert store.load() == Settings.default()
    assert (flow_home / "logs" / "scriptflow.log").parent.exists()


@needs_bash
def test_run_with_non_utf8_output(settings: Settings, workdir: Path) -> None:
    runner.invoke(app, ["create", "bin", "-p", str(workdir), "-c", "printf 'x\\377\\376'"])

    result = runner.invoke(app, ["run", "bin"])

    assert result.exit_code == 0, result.output
    assert result.exception is None
    assert "Finished." in result.output
