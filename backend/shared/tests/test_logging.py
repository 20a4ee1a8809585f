import json
import logging
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from shared.logging import enum_values, resolve_json_mode, resolve_log_level, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture(autouse=True)
def _allow_file_logging():
    """Lift the pytest guard so these tests can create real file handlers."""
    with patch("shared.logging._running_under_pytest", return_value=False):
        yield


class TestSetupLogging:
    def test_stdout_only_without_log_dir(self):
        result = setup_logging()
        root = logging.getLogger()

        assert result is None
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_adds_file_handler_in_log_dir(self, tmp_path):
        log_dir = tmp_path / "ito"
        log_path = setup_logging(log_dir=log_dir)
        root = logging.getLogger()

        assert log_path is not None
        assert log_path.parent == log_dir
        assert log_path.suffix == ".log"
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert Path(file_handlers[0].baseFilename) == log_path

    def test_log_file_named_by_timestamp(self, tmp_path):
        fixed_time = datetime(2025, 3, 15, 10, 30, 45, tzinfo=UTC)
        with patch("shared.logging.datetime") as mock_dt:
            mock_dt.now.return_value = fixed_time
            log_path = setup_logging(log_dir=tmp_path / "ito")

        assert log_path is not None
        assert log_path.name == "2025-03-15_10-30-45.log"

    def test_no_file_under_pytest_guard(self, tmp_path):
        with patch("shared.logging._running_under_pytest", return_value=True):
            result = setup_logging(log_dir=tmp_path / "ito")

        assert result is None
        assert not (tmp_path / "ito").exists()

    def test_repeated_calls_do_not_stack_handlers(self):
        setup_logging()
        setup_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_explicit_level_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG

    def test_json_lines_carry_bound_room_code(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        log_path = setup_logging(log_dir=tmp_path / "ito")

        structlog.contextvars.bind_contextvars(room_code="ABCD")
        structlog.get_logger("test.json").info("round started", player_count=3)

        assert log_path is not None
        parsed = json.loads(log_path.read_text().strip().splitlines()[0])
        assert parsed["event"] == "round started"
        assert parsed["room_code"] == "ABCD"
        assert parsed["player_count"] == 3

    def test_console_output_is_readable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        log_path = setup_logging(log_dir=tmp_path / "ito")

        structlog.get_logger("test.console").info("room created")

        assert log_path is not None
        assert "room created" in log_path.read_text()


class TestResolveEnv:
    def test_log_level_defaults_to_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert resolve_log_level() == logging.INFO

    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert resolve_log_level() == logging.WARNING

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            resolve_log_level()

    def test_unset_format_is_console(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        assert resolve_json_mode() is False

    def test_invalid_log_format_raises(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()


class TestEnumValues:
    class _Status(StrEnum):
        LOBBY = "lobby"

    def test_replaces_enum_with_value(self):
        result = enum_values(None, "", {"status": self._Status.LOBBY, "room_code": "ABCD"})

        assert result == {"status": "lobby", "room_code": "ABCD"}
        assert type(result["status"]) is str
