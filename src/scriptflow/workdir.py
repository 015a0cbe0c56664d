"""カレントディレクトリの一時切替。

run/edit は flow の作業ディレクトリに入ってからサブプロセスを起動する。
戻り先は成功・失敗・例外のどの経路でも元のディレクトリ。
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def working_directory(path: Path) -> Iterator[Path]:
    previous = Path.cwd()
    os.chdir(path)
    try:
        yield Path(path)
    finally:
        os.chdir(previous)
