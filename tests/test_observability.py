"""
Tests for logging setup — level precedence, formats, file output.
"""

import logging
from pathlib import Path

import pytest

from pondctl.core.observability.logging_config import (
    parse_level,
    resolve_settings,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("Error", logging.ERROR),
    ])
    def test_names(self, name, expected):
        assert parse_level(name) == expected

    @pytest.mark.parametrize("name", [None, "", "chatty", "basic_format"])
    def test_unknown_falls_back_to_warning(self, name):
        assert parse_level(name) == logging.WARNING


class TestResolveSettings:
    def test_default_is_warning(self):
        settings = resolve_settings(environ={})
        assert settings.level == logging.WARNING
        assert settings.log_file is None

    def test_env_level(self):
        assert resolve_settings(environ={"POND_LOG_LEVEL": "info"}).level == logging.INFO

    @pytest.mark.parametrize("flags,expected", [
        ({"debug": True, "verbose": True, "quiet": True}, logging.DEBUG),
        ({"verbose": True, "quiet": True}, logging.INFO),
        ({"quiet": True}, logging.ERROR),
    ])
    def test_flags_beat_env(self, flags, expected):
        env = {"POND_LOG_LEVEL": "CRITICAL"}
        assert resolve_settings(environ=env, **flags).level == expected

    def test_file_level_defaults_to_console_level(self):
        settings = resolve_settings(verbose=True, environ={"POND_LOG_FILE": "pond.log"})
        assert settings.file_level == logging.INFO
        assert settings.root_level == logging.INFO

    def test_root_level_is_lowest_handler_level(self):
        settings = resolve_settings(environ={
            "POND_LOG_FILE": "pond.log",
            "POND_LOG_FILE_LEVEL": "DEBUG",
        })
        assert settings.level == logging.WARNING
        assert settings.root_level == logging.DEBUG


class TestSetupLogging:
    def test_repeated_setup_keeps_one_handler(self):
        setup_logging(verbose=True, environ={})
        setup_logging(verbose=True, environ={})
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_warning_is_bare_message(self):
        setup_logging(environ={})
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"

    def test_debug_includes_thread_name(self):
        setup_logging(debug=True, environ={})
        assert "%(threadName)s" in logging.getLogger().handlers[0].formatter._fmt

    def test_file_handler_with_own_level(self, tmp_path: Path):
        log_file = tmp_path / "pond.log"
        setup_logging(environ={
            "POND_LOG_FILE": str(log_file),
            "POND_LOG_FILE_LEVEL": "DEBUG",
        })

        root = logging.getLogger()
        assert len(root.handlers) == 2

        logging.getLogger("pondctl.test").debug("to the file only")
        for h in root.handlers:
            h.flush()
        assert "to the file only" in log_file.read_text()
