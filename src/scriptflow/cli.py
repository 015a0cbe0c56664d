"""scriptflow CLI エントリポイント。"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console

from scriptflow.errors import ExecutionFailed, NotInitialized, ScriptflowError
from scriptflow.logging_setup import LOG_LEVEL_ENV, setup_logging
from scriptflow.prompts import ReinitChoice, TyperPrompter
from scriptflow.service import FlowService
from scriptflow.settings import SettingsStore, app_dir, settings_path

APP_HELP = "Named, directory-scoped shell scripts: create once, run by name."

app = typer.Typer(add_completion=False, help=APP_HELP)
console = Console()


@contextmanager
def _reported() -> Iterator[None]:
    """想定内のエラーをメッセージにして終了コードへ変換する。"""
    try:
        yield
    except NotInitialized as e:
        console.print(str(e), style="yellow", markup=False)
        raise typer.Exit(code=0)
    except ExecutionFailed as e:
        _print_output(e.result.stdout, e.result.stderr)
        console.print(f"❌ Error running flow: {e}", style="red", markup=False)
        raise typer.Exit(code=1)
    except (ScriptflowError, OSError) as e:
        console.print(f"❌ {e}", style="red", markup=False)
        raise typer.Exit(code=1)


def _print_output(stdout: str, stderr: str) -> None:
    if stdout:
        console.print(stdout.rstrip("\n"), markup=False, highlight=False)
    if stderr:
        console.print(stderr.rstrip("\n"), style="yellow", markup=False, highlight=False)


def _store() -> SettingsStore:
    return SettingsStore(settings_path())


def _service() -> FlowService:
    store = _store()
    return FlowService(store.bootstrap(), store=store)


@app.callback()
def main(
    log_level: str = typer.Option(
        "INFO", "--log-level", envvar=LOG_LEVEL_ENV, help="ログレベル (DEBUG/INFO/...)"
    ),
) -> None:
    setup_logging(log_dir=app_dir() / "logs", level=log_level)


@app.command()
def init() -> None:
    """保存先とシェルを選んで初期化する。"""
    with _reported():
        service = _service()
        if service.settings.initialized:
            console.print("Flow manager is already initialized.")
            return
        service.initialize(TyperPrompter(console))
    console.print("✅ Flow manager initialized successfully!", style="green")


@app.command()
def create(
    name: str | None = typer.Argument(None, help="flow 名（省略時は対話）"),
    path: Path | None = typer.Option(None, "--path", "-p", help="flow を実行するディレクトリ"),
    commands: str | None = typer.Option(
        None, "--commands", "-c", help="実行するコマンド（カンマ区切り）"
    ),
) -> None:
    """新しい flow を作る。"""
    with _reported():
        service = _service()
        if not service.settings.initialized:
            raise NotInitialized()

        prompter = TyperPrompter(console)
        if name is None:
            name = prompter.ask_flow_name(service.check_name)
        if path is None:
            path = prompter.ask_working_directory(service.default_working_directory())
        if commands is None:
            commands = prompter.ask_commands()

        flow = service.create(name, path, commands)
    console.print(
        f"✅ Flow created successfully! File location: {flow.script_path}", style="green"
    )


@app.command("list")
def list_flows() -> None:
    """flow 名を作成順に表示する。"""
    with _reported():
        flow_names = _service().list_flows()
    if not flow_names:
        console.print("No flows found.")
        return
    console.print("List of flows:")
    for n in flow_names:
        console.print(n, markup=False, highlight=False)


@app.command()
def run(name: str = typer.Argument(..., help="flow 名")) -> None:
    """flow をその作業ディレクトリで実行する。"""
    with _reported():
        service = _service()
        service.get(name)
        console.print(f"Running flow: {name}", style="cyan")
        try:
            result = service.run(name)
        finally:
            console.print("Finished.", style="dim")
        _print_output(result.stdout, result.stderr)


@app.command()
def delete(name: str = typer.Argument(..., help="flow 名")) -> None:
    """flow とそのスクリプトを削除する。"""
    with _reported():
        _service().delete(name)
    console.print("✅ Flow deleted successfully!", style="green")


@app.command()
def edit(name: str = typer.Argument(..., help="flow 名")) -> None:
    """flow のスクリプトをエディタで開く。"""
    with _reported():
        service = _service()
        service.get(name)
        console.print(f"Opening flow for editing: {name}", style="cyan")
        try:
            service.edit(name)
        finally:
            console.print("Finished.", style="dim")


@app.command()
def reinit() -> None:
    """保存先を変更する（既存 flow は移動/削除/キャンセル）。"""
    with _reported():
        outcome = _service().reinitialize(TyperPrompter(console))

    if outcome.choice is ReinitChoice.CANCEL:
        console.print("Cancelled.", style="yellow")
    elif outcome.choice is ReinitChoice.MOVE:
        console.print(
            f"✅ Flows moved successfully!\n\nNew location: {outcome.settings.storage_root}",
            style="green",
        )
    else:
        console.print("✅ Flow manager initialized successfully!", style="green")


@app.command("reset-settings")
def reset_settings() -> None:
    """設定をデフォルトに戻す（flow ファイルには触らない）。"""
    with _reported():
        settings = _store().reset()
    console.print(f"Settings reset. Flows will be stored in {settings.storage_root}", style="green")


app.command("default", hidden=True)(reset_settings)
