from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest

from scriptflow.prompts import ReinitChoice
from scriptflow.service import FlowService
from scriptflow.settings import Settings, SettingsStore


@dataclass
class StubPrompter:
    """対話入力の代わりに固定値を返す。呼ばれた質問を記録する。"""

    dialect: str = "bash"
    storage_root: Path | None = None
    flow_name: str = "stub"
    working_directory: Path | None = None
    commands: str = "echo stub"
    reinit_choice: ReinitChoice | None = None
    asked: list[str] = field(default_factory=list)

    def ask_dialect(self, default: str) -> str:
        self.asked.append("dialect")
        return self.dialect

    def ask_storage_root(self, default: Path) -> Path:
        self.asked.append("storage_root")
        assert self.storage_root is not None
        return self.storage_root

    def ask_flow_name(self, validate: Callable[[str], None]) -> str:
        self.asked.append("flow_name")
        validate(self.flow_name)
        return self.flow_name

    def ask_working_directory(self, default: Path) -> Path:
        self.asked.append("working_directory")
        return self.working_directory or default

    def ask_commands(self) -> str:
        self.asked.append("commands")
        return self.commands

    def ask_reinit_choice(self) -> ReinitChoice:
        self.asked.append("reinit_choice")
        if self.reinit_choice is None:
            raise AssertionError("reinit choice should not be asked")
        return self.reinit_choice


@pytest.fixture()
def flow_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """設定ファイル置き場（SCRIPTFLOW_HOME）。"""
    home = tmp_path / "home"
    monkeypatch.setenv("SCRIPTFLOW_HOME", str(home))
    return home


@pytest.fixture()
def store(flow_home: Path) -> SettingsStore:
    return SettingsStore(flow_home / "config.yml")


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "flows"


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    d = tmp_path / "project"
    d.mkdir()
    return d


@pytest.fixture()
def settings(store: SettingsStore, storage_root: Path) -> Settings:
    s = Settings(storage_root=storage_root, script_dialect="bash", initialized=True)
    store.save(s)
    return s


@pytest.fixture()
def service(settings: Settings, store: SettingsStore) -> FlowService:
    return FlowService(settings, store=store)


@pytest.fixture()
def prompter() -> type[StubPrompter]:
    return StubPrompter
