"""FlowService: create / list / run / edit / delete / init / reinit.

設定 (Settings) は呼び出しごとに1回ロードして引数で渡す。
ファイル・サブプロセスの副作用はこのモジュールだけが持つ。

順序の約束:
- create: スクリプト書き込み → レジストリ保存（レジストリ更新が最後）
- delete: ファイル削除 → レジストリ保存（ファイル削除に失敗したら記録は残る）
- run/edit: `working_directory()` の中でだけ作業ディレクトリに入る
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass, replace
from pathlib import Path

from scriptflow.errors import (
    DuplicateFlowName,
    EditorLaunchFailed,
    ExecutionFailed,
    FlowNotFound,
    InvalidFlowName,
    InvalidWorkingDirectory,
    NotInitialized,
    StorageMoveFailed,
)
from scriptflow.prompts import Prompter, ReinitChoice
from scriptflow.registry import Flow, FlowRegistry, find_by_name, index_of_name, names
from scriptflow.script_gen import generate, interpreter_argv, parse_dialect
from scriptflow.settings import Settings, SettingsStore
from scriptflow.workdir import working_directory

log = logging.getLogger(__name__)

FLOW_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")
EDITOR_ENVS = ("SCRIPTFLOW_EDITOR", "VISUAL", "EDITOR")
DEFAULT_EDITOR = "code"


@dataclass(frozen=True)
class ExecutionResult:
    flow: Flow
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class ReinitOutcome:
    choice: ReinitChoice | None  # None: no flows existed, plain initialization
    settings: Settings


def validate_flow_name(name: str) -> None:
    if not FLOW_NAME_RE.fullmatch(name):
        raise InvalidFlowName(name)


def editor_command(env: dict[str, str] | None = None) -> list[str]:
    env = os.environ if env is None else env
    for key in EDITOR_ENVS:
        value = env.get(key, "").strip()
        if value:
            return shlex.split(value)
    return [DEFAULT_EDITOR]


class FlowService:
    def __init__(self, settings: Settings, *, store: SettingsStore) -> None:
        self.store = store
        self._bind(settings)

    def _bind(self, settings: Settings) -> None:
        self.settings = settings
        self.registry = FlowRegistry(settings.storage_root)

    def _require_initialized(self) -> None:
        if not self.settings.initialized:
            raise NotInitialized()

    def _get(self, flows: list[Flow], name: str) -> Flow:
        flow = find_by_name(flows, name)
        if flow is None:
            raise FlowNotFound(name)
        return flow

    # --- settings lifecycle ---

    def initialize(self, prompter: Prompter) -> Settings:
        """dialect と保存先を聞いて initialized=True で保存する。"""
        dialect = parse_dialect(prompter.ask_dialect(self.settings.script_dialect))
        root = prompter.ask_storage_root(self.settings.storage_root)
        settings = replace(
            self.settings,
            script_dialect=dialect.value,
            storage_root=root,
            initialized=True,
        )
        self.store.save(settings)
        self._bind(settings)
        log.info("initialized: root=%s dialect=%s", root, dialect.value)
        return settings

    def reinitialize(self, prompter: Prompter) -> ReinitOutcome:
        self._require_initialized()

        flows = self.registry.load()
        if not flows:
            return ReinitOutcome(choice=None, settings=self.initialize(prompter))

        choice = prompter.ask_reinit_choice()
        if choice is ReinitChoice.MOVE:
            new_root = prompter.ask_storage_root(self.settings.storage_root)
            self._move_storage(new_root)
            settings = replace(self.settings, storage_root=new_root, initialized=True)
            self.store.save(settings)
            self._bind(settings)
        elif choice is ReinitChoice.DELETE:
            old_root = self.settings.storage_root
            if old_root.exists():
                shutil.rmtree(old_root)
            log.info("storage deleted: %s (%d flows)", old_root, len(flows))
            settings = replace(self.settings, initialized=False)
            self.store.save(settings)
            self._bind(settings)
            self.initialize(prompter)
        return ReinitOutcome(choice=choice, settings=self.settings)

    def _move_storage(self, new_root: Path) -> None:
        old_root = self.settings.storage_root
        if new_root.resolve() == old_root.resolve():
            return
        if new_root.exists():
            if not new_root.is_dir() or any(new_root.iterdir()):
                raise StorageMoveFailed(f"target already exists and is not empty: {new_root}")
            new_root.rmdir()
        new_root.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.move(str(old_root), str(new_root))
        except OSError as e:
            raise StorageMoveFailed(f"failed to move {old_root} -> {new_root}: {e}") from e
        log.info("storage moved: %s -> %s", old_root, new_root)

    # --- flows ---

    def check_name(self, name: str) -> None:
        validate_flow_name(name)
        if find_by_name(self.registry.load(), name) is not None:
            raise DuplicateFlowName(name)

    def default_working_directory(self) -> Path:
        return (Path.cwd() / self.settings.default_flow_path).resolve()

    def create(self, name: str, working_dir: Path, command_list: str) -> Flow:
        self._require_initialized()
        validate_flow_name(name)

        flows = self.registry.load()
        if find_by_name(flows, name) is not None:
            raise DuplicateFlowName(name)

        working_dir = Path(working_dir).expanduser()
        if not working_dir.is_dir():
            raise InvalidWorkingDirectory(f"Please enter a valid directory path: {working_dir}")

        script = generate(self.settings.script_dialect, command_list)
        folder = self.settings.command_dir / name
        folder.mkdir(parents=True, exist_ok=True)
        script_path = folder / f"script{script.extension}"
        script_path.write_text(script.text, encoding="utf-8")
        script_path.chmod(0o755)

        flow = Flow(name=name, working_directory=working_dir.resolve(), script_path=script_path)
        flows.append(flow)
        self.registry.save(flows)
        log.info("flow created: %s -> %s", name, script_path)
        return flow

    def list_flows(self) -> list[str]:
        self._require_initialized()
        return names(self.registry.load())

    def get(self, name: str) -> Flow:
        self._require_initialized()
        return self._get(self.registry.load(), name)

    def run(self, name: str) -> ExecutionResult:
        flow = self.get(name)
        argv = interpreter_argv(self.settings.script_dialect, flow.script_path)

        log.info("run %s: %s (cwd=%s)", name, argv, flow.working_directory)
        with working_directory(flow.working_directory):
            proc = subprocess.run(
                argv,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )

        result = ExecutionResult(
            flow=flow,
            argv=argv,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        if not result.ok:
            log.warning("run %s failed: exit=%d", name, result.returncode)
            raise ExecutionFailed(result)
        return result

    def edit(self, name: str) -> None:
        flow = self.get(name)
        argv = [*editor_command(), str(flow.script_path)]

        log.info("edit %s: %s", name, argv)
        with working_directory(flow.working_directory):
            try:
                proc = subprocess.run(argv, check=False)
            except OSError as e:
                raise EditorLaunchFailed(f"Error opening flow for editing: {e}") from e
        if proc.returncode != 0:
            log.warning("editor exited with %d: %s", proc.returncode, argv[0])

    def delete(self, name: str) -> None:
        self._require_initialized()
        flows = self.registry.load()
        index = index_of_name(flows, name)
        if index is None:
            raise FlowNotFound(name)

        flow = flows[index]
        folder = self.settings.command_dir / flow.name
        if flow.script_path.parent == folder and folder.is_dir():
            shutil.rmtree(folder)
        elif flow.script_path.exists():
            flow.script_path.unlink()
        else:
            log.warning("script already missing: %s", flow.script_path)

        del flows[index]
        self.registry.save(flows)
        log.info("flow deleted: %s", name)
