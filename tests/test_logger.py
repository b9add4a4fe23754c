import logging
from logging.handlers import RotatingFileHandler

import pytest

from d3server.logger import get_logger, init_logger, is_initialized, reset_logger


@pytest.fixture(autouse=True)
def _clean_logger():
    reset_logger()
    yield
    reset_logger()


def _flush(logger):
    for handler in logger.handlers:
        handler.flush()


def test_not_initialized_initially():
    assert get_logger() is None
    assert is_initialized() is False


def test_file_output_creates_directories_and_writes(tmp_path):
    path = tmp_path / "logs" / "server.log"
    logger = init_logger("test-file", path, "debug", console_output=False, file_output=True)
    logger.debug("hello from test")
    _flush(logger)
    content = path.read_text(encoding="utf-8")
    assert "hello from test" in content
    assert "initialized" in content
    assert get_logger() is logger
    assert is_initialized() is True


def test_level_filters_messages(tmp_path):
    path = tmp_path / "filtered.log"
    logger = init_logger("test-level", path, "warning", console_output=False, file_output=True)
    logger.info("quiet message")
    logger.warning("loud message")
    _flush(logger)
    content = path.read_text(encoding="utf-8")
    assert "quiet message" not in content
    assert "loud message" in content


def test_second_init_returns_existing_logger(tmp_path):
    first = init_logger("test-once", tmp_path / "a.log", logging.INFO, False, True)
    other_path = tmp_path / "sub" / "b.log"
    second = init_logger("test-other", other_path, logging.INFO, False, True)
    assert second is first
    assert not other_path.exists()


def test_console_output(capsys):
    logger = init_logger("test-console", "", "info", console_output=True, file_output=False)
    logger.info("to the console")
    out = capsys.readouterr().out
    assert "to the console" in out


def test_no_outputs_falls_back_to_warning_console(capsys):
    logger = init_logger("test-none", "", "debug", console_output=False, file_output=False)
    captured = capsys.readouterr()
    assert "No sinks configured for logger 'test-none'" in captured.err
    logger.info("hidden info")
    logger.warning("shown warning")
    out = capsys.readouterr().out
    assert "hidden info" not in out
    assert "shown warning" in out


def test_rotating_file_settings(tmp_path):
    logger = init_logger("test-rotate", tmp_path / "r.log", "info", False, True)
    handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(handlers) == 1
    assert handlers[0].maxBytes == 5 * 1024 * 1024
    assert handlers[0].backupCount == 3


def test_failure_returns_none(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    result = init_logger("test-fail", blocker / "x.log", "info", False, True)
    assert result is None
    assert is_initialized() is False
    assert get_logger() is None
    assert "Log initialization failed" in capsys.readouterr().err


def test_unknown_level_raises():
    with pytest.raises(ValueError):
        init_logger("test-bad", "", "loudest", False, False)
    assert is_initialized() is False


def test_reset_allows_new_init(tmp_path):
    first = init_logger("test-reset-a", tmp_path / "a.log", "info", False, True)
    reset_logger()
    assert get_logger() is None
    assert first.handlers == []
    second = init_logger("test-reset-b", tmp_path / "b.log", "info", False, True)
    assert second.name == "test-reset-b"
    assert get_logger() is second