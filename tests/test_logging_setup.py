"""logging_setup のテスト。"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from scriptflow.logging_setup import LOGGER_NAME, setup_logging


@pytest.fixture()
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    for h in saved:
        logger.removeHandler(h)
    yield logger
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    for h in saved:
        logger.addHandler(h)


def _files(logger: logging.Logger) -> list[str]:
    return [h.baseFilename for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def test_writes_package_records_to_file(tmp_path: Path, clean_logger) -> None:
    log_path = setup_logging(log_dir=tmp_path / "logs", level="DEBUG")
    logging.getLogger("scriptflow.service").info("flow created: demo")

    for h in clean_logger.handlers:
        h.flush()
    text = log_path.read_text(encoding="utf-8")
    assert "INFO scriptflow.service: flow created: demo" in text
    assert clean_logger.propagate is False


def test_same_dir_is_configured_once(tmp_path: Path, clean_logger) -> None:
    setup_logging(log_dir=tmp_path / "logs")
    setup_logging(log_dir=tmp_path / "logs")
    assert len(_files(clean_logger)) == 1


def test_new_dir_replaces_handler(tmp_path: Path, clean_logger) -> None:
    setup_logging(log_dir=tmp_path / "a")
    second = setup_logging(log_dir=tmp_path / "b", level="warning")
    assert _files(clean_logger) == [str(second)]
    assert clean_logger.level == logging.WARNING
