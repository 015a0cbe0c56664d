"""Flow registry: `<storage_root>/flows.json`.

The document is an ordered JSON list (creation order):

```json
[
  {"name": "deploy", "working_directory": "/srv/app", "script_path": "commands/deploy/script.sh"}
]
```

`script_path` is stored relative to the storage root when the script lives
inside it, so a whole-root move keeps every record valid. Files written by
the earlier node release (`path` / `script` keys, absolute paths) still load.

No locking: one process, one operation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from scriptflow.errors import RegistryCorrupt, RegistryWriteFailed

log = logging.getLogger(__name__)

REGISTRY_FILENAME = "flows.json"


@dataclass(frozen=True)
class Flow:
    name: str
    working_directory: Path
    script_path: Path


@dataclass
class FlowRegistry:
    root: Path

    @property
    def path(self) -> Path:
        return self.root / REGISTRY_FILENAME

    def load(self) -> list[Flow]:
        if not self.path.exists():
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise RegistryCorrupt(f"{self.path}: JSON decode error ({e})") from e
        except UnicodeDecodeError as e:
            raise RegistryCorrupt(f"{self.path}: not valid UTF-8 ({e})") from e

        if not isinstance(raw, list):
            raise RegistryCorrupt(f"{self.path}: expected a list of flows")
        return [self._from_entry(i, entry) for i, entry in enumerate(raw)]

    def save(self, flows: list[Flow]) -> None:
        raw = [self._to_entry(f) for f in flows]
        text = json.dumps(raw, ensure_ascii=False, indent=2) + "\n"

        tmp_name: str | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                dir=self.root,
                prefix=".flows-",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as f:
                tmp_name = f.name
                f.write(text)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RegistryWriteFailed(f"Error saving flows to {self.path}: {e}") from e

        log.debug("registry saved: %s (%d flows)", self.path, len(flows))

    def _from_entry(self, index: int, entry: object) -> Flow:
        if not isinstance(entry, dict):
            raise RegistryCorrupt(f"{self.path}: entry #{index} is not an object")

        name = entry.get("name")
        workdir = entry.get("working_directory", entry.get("path"))
        script = entry.get("script_path", entry.get("script"))
        for key, value in (("name", name), ("working_directory", workdir), ("script_path", script)):
            if not isinstance(value, str) or not value:
                raise RegistryCorrupt(f"{self.path}: entry #{index} has no valid {key}")

        script_path = Path(script)
        if not script_path.is_absolute():
            script_path = self.root / script_path
        return Flow(name=name, working_directory=Path(workdir), script_path=script_path)

    def _to_entry(self, flow: Flow) -> dict[str, str]:
        try:
            script = flow.script_path.relative_to(self.root).as_posix()
        except ValueError:
            script = str(flow.script_path)
        return {
            "name": flow.name,
            "working_directory": str(flow.working_directory),
            "script_path": script,
        }


def find_by_name(flows: list[Flow], name: str) -> Flow | None:
    for f in flows:
        if f.name == name:
            return f
    return None


def index_of_name(flows: list[Flow], name: str) -> int | None:
    for i, f in enumerate(flows):
        if f.name == name:
            return i
    return None


def names(flows: list[Flow]) -> list[str]:
    return [f.name for f in flows]
