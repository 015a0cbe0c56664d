"""設定ファイル (config.yml) のロードと保存。

場所:
- `$SCRIPTFLOW_HOME/config.yml`
- 未指定なら `typer.get_app_dir("scriptflow")/config.yml`

```yaml
storage_root: /home/user/.flow
script_dialect: bash
default_flow_path: .
command_dir: /home/user/.flow/commands
initialized: true
```

`command_dir` は読みやすさのために書き出すだけで、ロード時は
`storage_root/commands` から導出する。
キャッシュはしない（毎回ファイルを読み書きする）。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer
import yaml

from scriptflow.errors import ConfigUnreadable, ConfigWriteFailed

APP_NAME = "scriptflow"
HOME_ENV = "SCRIPTFLOW_HOME"
USER_HOME_PLACEHOLDER = "$USER_HOME"
COMMANDS_DIRNAME = "commands"


def app_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override)
    return Path(typer.get_app_dir(APP_NAME))


def settings_path() -> Path:
    return app_dir() / "config.yml"


def _expand_root(value: str) -> Path:
    return Path(value.replace(USER_HOME_PLACEHOLDER, str(Path.home()))).expanduser()


@dataclass(frozen=True)
class Settings:
    storage_root: Path
    script_dialect: str = "bash"
    default_flow_path: str = "."
    initialized: bool = False

    @property
    def command_dir(self) -> Path:
        return self.storage_root / COMMANDS_DIRNAME

    @classmethod
    def default(cls) -> Settings:
        return cls(storage_root=Path.home() / ".flow")

    def to_dict(self) -> dict[str, object]:
        return {
            "storage_root": str(self.storage_root),
            "script_dialect": self.script_dialect,
            "default_flow_path": self.default_flow_path,
            "command_dir": str(self.command_dir),
            "initialized": self.initialized,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> Settings:
        storage_root = raw.get("storage_root")
        if not isinstance(storage_root, str) or not storage_root:
            raise ValueError("storage_root must be a non-empty string")
        initialized = raw.get("initialized", False)
        if not isinstance(initialized, bool):
            raise ValueError("initialized must be true or false")
        return cls(
            storage_root=_expand_root(storage_root),
            script_dialect=str(raw.get("script_dialect", "bash")),
            default_flow_path=str(raw.get("default_flow_path", ".")),
            initialized=initialized,
        )


@dataclass
class SettingsStore:
    path: Path

    def load(self) -> Settings:
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigUnreadable(f"Failed to load {self.path}: {e}") from e

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigUnreadable(f"Failed to load {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigUnreadable(f"Failed to load {self.path}: not a mapping")

        try:
            return Settings.from_dict(raw)
        except ValueError as e:
            raise ConfigUnreadable(f"Failed to load {self.path}: {e}") from e

    def save(self, settings: Settings) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                yaml.safe_dump(settings.to_dict(), sort_keys=False, allow_unicode=True),
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigWriteFailed(f"Failed to save {self.path}: {e}") from e

    def bootstrap(self) -> Settings:
        """初回起動ならデフォルト設定を書き出す。"""
        if not self.path.exists():
            settings = Settings.default()
            self.save(settings)
            return settings
        return self.load()

    def reset(self) -> Settings:
        settings = Settings.default()
        self.save(settings)
        return settings
