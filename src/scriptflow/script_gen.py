"""コマンド列 → シェルスクリプト生成。

入力はカンマ区切りの1文字列。エスケープは無い（カンマを含むコマンドは書けない）。

| dialect    | header                 | ext   | join   |
|------------|------------------------|-------|--------|
| bash       | `#!/bin/bash`          | .sh   | 空行区切り |
| zsh        | `#!/bin/zsh`           | .sh   | 空行区切り |
| powershell | コメントヘッダ          | .ps1  | 改行   |
| cmd        | `@echo off`            | .bat  | 改行   |
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from scriptflow.errors import UnsupportedDialect

COMMAND_DELIMITER = ","


class Dialect(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    POWERSHELL = "powershell"
    CMD = "cmd"


@dataclass(frozen=True)
class DialectPolicy:
    header: str
    extension: str
    separator: str
    interpreter: tuple[str, ...]  # script path is appended as the last argument


POLICIES: dict[Dialect, DialectPolicy] = {
    Dialect.BASH: DialectPolicy(
        header="#!/bin/bash",
        extension=".sh",
        separator="\n\n",
        interpreter=("bash",),
    ),
    Dialect.ZSH: DialectPolicy(
        header="#!/bin/zsh",
        extension=".sh",
        separator="\n\n",
        interpreter=("zsh",),
    ),
    Dialect.POWERSHELL: DialectPolicy(
        header="# PowerShell script generated by scriptflow",
        extension=".ps1",
        separator="\n",
        interpreter=("powershell", "-NoProfile", "-ExecutionPolicy", "Bypass", "-File"),
    ),
    Dialect.CMD: DialectPolicy(
        header="@echo off",
        extension=".bat",
        separator="\n",
        interpreter=("cmd", "/c"),
    ),
}


@dataclass(frozen=True)
class GeneratedScript:
    text: str
    extension: str


def parse_dialect(value: str | Dialect) -> Dialect:
    """設定値の文字列を Dialect にする。未知の値は UnsupportedDialect。"""
    if isinstance(value, Dialect):
        return value
    try:
        return Dialect(value)
    except ValueError as e:
        supported = ", ".join(d.value for d in Dialect)
        raise UnsupportedDialect(
            f"Invalid terminal profile: {value!r} (supported: {supported})"
        ) from e


def policy_for(dialect: str | Dialect) -> DialectPolicy:
    return POLICIES[parse_dialect(dialect)]


def split_commands(command_list: str) -> list[str]:
    return command_list.split(COMMAND_DELIMITER)


def generate(dialect: str | Dialect, command_list: str) -> GeneratedScript:
    policy = policy_for(dialect)
    body = policy.separator.join(split_commands(command_list))
    return GeneratedScript(
        text=f"{policy.header}\n\n{body}\n",
        extension=policy.extension,
    )


def interpreter_argv(dialect: str | Dialect, script_path: Path) -> list[str]:
    """スクリプト実行用の argv（シェル文字列は組み立てない）。"""
    return [*policy_for(dialect).interpreter, str(script_path)]
