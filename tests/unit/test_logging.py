"""
Unit tests for structured logging setup.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from orthanc_api.config.settings import Settings
from orthanc_api.core.logging import setup_logging, setup_logging_from_settings


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_lines_for_library_records(capsys: pytest.CaptureFixture[str]) -> None:
    setup_logging(level="DEBUG", fmt="json")
    logging.getLogger("orthanc_api.dicom.transport").debug("%s %s → %d", "GET", "/patients", 200)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "GET /patients → 200"
    assert record["level"] == "debug"
    assert record["logger"] == "orthanc_api.dicom.transport"


def test_level_and_noisy_loggers() -> None:
    setup_logging(level="warning")
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unknown_level_falls_back_to_info() -> None:
    setup_logging(level="chatty")
    assert logging.getLogger().level == logging.INFO


def test_from_settings() -> None:
    setup_logging_from_settings(Settings(_env_file=None, log_level="ERROR", log_format="json"))
    assert logging.getLogger().level == logging.ERROR
