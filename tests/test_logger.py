"""Tests for setup_logging."""

import logging

import pytest

from terraclient.utils.logger import get_log_dir, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_console_only(restore_root_logger):
    root = setup_logging(log_level="DEBUG", log_file=False)
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.StreamHandler)


def test_unknown_level_defaults_to_info(restore_root_logger):
    root = setup_logging(log_level="chatty", log_file=False)
    assert root.level == logging.INFO


def test_log_file(restore_root_logger, monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
    setup_logging(log_level="INFO", log_file=True)
    log_dir = tmp_path / "terraclient" / "logs"
    assert get_log_dir() == log_dir
    files = list(log_dir.glob("terraclient_*.log"))
    assert len(files) == 1
