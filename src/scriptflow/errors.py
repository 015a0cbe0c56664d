"""scriptflow のエラー種別。

CLI (`scriptflow.cli`) が一箇所でまとめて捕まえ、人間向けメッセージにする。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scriptflow.service import ExecutionResult


class ScriptflowError(RuntimeError):
    """Base class for every expected failure."""


class ConfigUnreadable(ScriptflowError):
    pass


class ConfigWriteFailed(ScriptflowError):
    pass


class RegistryCorrupt(ScriptflowError):
    pass


class RegistryWriteFailed(ScriptflowError):
    pass


class UnsupportedDialect(ScriptflowError):
    pass


class NotInitialized(ScriptflowError):
    def __init__(self) -> None:
        super().__init__(
            'Flow manager is not initialized. Please run "flow init" to initialize it.'
        )


class FlowNotFound(ScriptflowError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Flow not found: {name}")
        self.name = name


class DuplicateFlowName(ScriptflowError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Flow name already exists: {name}")
        self.name = name


class InvalidFlowName(ScriptflowError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Please enter a valid flow name (letters, digits, '-', '_'): {name!r}")
        self.name = name


class InvalidWorkingDirectory(ScriptflowError):
    pass


class ExecutionFailed(ScriptflowError):
    def __init__(self, result: ExecutionResult) -> None:
        super().__init__(f"flow '{result.flow.name}' exited with code {result.returncode}")
        self.result = result


class EditorLaunchFailed(ScriptflowError):
    pass


class StorageMoveFailed(ScriptflowError):
    pass
