"""logging の初期化。

- 詳細ログ: `<app dir>/logs/scriptflow.log`（`scriptflow.*` のロガーだけ）
- 画面出力は rich Console（cli.py）が担当し、ここでは扱わない

ログ先が変わった場合（`SCRIPTFLOW_HOME` の切替など）は古いハンドラを外して差し替える。
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_LEVEL_ENV = "SCRIPTFLOW_LOG_LEVEL"
LOGGER_NAME = "scriptflow"
LOG_FILENAME = "scriptflow.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _file_handlers(logger: logging.Logger) -> list[RotatingFileHandler]:
    return [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def setup_logging(*, log_dir: Path, level: str = "INFO") -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / LOG_FILENAME).resolve()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    for h in _file_handlers(logger):
        if Path(h.baseFilename) == log_path:
            return log_path
        logger.removeHandler(h)
        h.close()

    handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=2,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.debug("logging to %s", log_path)
    return log_path
