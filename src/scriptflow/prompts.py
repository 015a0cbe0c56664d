"""対話入力。

FlowService はここから「検証済みの値」を受け取るだけで、入力の仕方は知らない。
テストでは `Prompter` を満たす固定値のスタブを渡す。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

import click
import typer
from rich.console import Console

from scriptflow.errors import ScriptflowError
from scriptflow.script_gen import Dialect


class ReinitChoice(str, Enum):
    MOVE = "Move To New Location"
    DELETE = "Delete Existing Flows"
    CANCEL = "Cancel"


class Prompter(Protocol):
    def ask_dialect(self, default: str) -> str: ...

    def ask_storage_root(self, default: Path) -> Path: ...

    def ask_flow_name(self, validate: Callable[[str], None]) -> str: ...

    def ask_working_directory(self, default: Path) -> Path: ...

    def ask_commands(self) -> str: ...

    def ask_reinit_choice(self) -> ReinitChoice: ...


class TyperPrompter:
    """typer.prompt ベースの実装。検証に通るまで聞き直す。"""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def ask_dialect(self, default: str) -> str:
        choices = [d.value for d in Dialect]
        return typer.prompt(
            "Select your terminal profile",
            default=default if default in choices else Dialect.BASH.value,
            type=click.Choice(choices),
        )

    def ask_storage_root(self, default: Path) -> Path:
        value = typer.prompt("Enter the path where flows will be stored", default=str(default))
        return Path(value).expanduser().resolve()

    def ask_flow_name(self, validate: Callable[[str], None]) -> str:
        while True:
            value = typer.prompt("Enter flow name").strip()
            try:
                validate(value)
            except ScriptflowError as e:
                self.console.print(f"  ❌ {e}", style="red", markup=False)
                continue
            return value

    def ask_working_directory(self, default: Path) -> Path:
        while True:
            value = typer.prompt(
                "Enter the path where the flow will be called from",
                default=str(default),
            )
            p = Path(value).expanduser()
            if p.is_dir():
                return p.resolve()
            self.console.print("  ❌ Please enter a valid directory path", style="red")

    def ask_commands(self) -> str:
        return typer.prompt("Enter the commands to run (comma separated)")

    def ask_reinit_choice(self) -> ReinitChoice:
        value = typer.prompt(
            "You are about to reinitialize the flow manager. "
            "What would you like to do with existing flows?",
            default=ReinitChoice.MOVE.value,
            type=click.Choice([c.value for c in ReinitChoice]),
        )
        return ReinitChoice(value)
