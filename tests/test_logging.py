"""
Tests for the logging configuration module.

Tests the centralized logging configuration functionality.
"""

import logging
import os
from pathlib import Path
from unittest.mock import patch

from b24_contact_sync.utils.logging import (
    CONSOLE_FORMAT,
    DATE_FORMAT,
    DEFAULT_FORMAT,
    LOG_FILE_PREFIX,
    ROOT_LOGGER_NAME,
    VERBOSE_FORMAT,
    ColoredFormatter,
    cleanup_old_logs,
    get_log_file_path,
    get_log_level_from_env,
    get_logger,
    set_log_level,
    setup_logging,
)


class TestConstants:
    """Tests for module constants."""

    def test_formats_include_message(self):
        for fmt in (DEFAULT_FORMAT, CONSOLE_FORMAT, VERBOSE_FORMAT):
            assert "%(message)s" in fmt

    def test_verbose_format_has_location(self):
        assert "%(filename)s" in VERBOSE_FORMAT
        assert "%(lineno)d" in VERBOSE_FORMAT

    def test_date_format_defined(self):
        assert "%Y" in DATE_FORMAT


class TestGetLogLevelFromEnv:
    """Tests for get_log_level_from_env function."""

    @patch.dict(os.environ, {"B24_CONTACT_SYNC_DEBUG": "1"}, clear=False)
    def test_debug_mode_from_env_1(self):
        assert get_log_level_from_env() == logging.DEBUG

    @patch.dict(os.environ, {"B24_CONTACT_SYNC_DEBUG": "true"}, clear=False)
    def test_debug_mode_from_env_true(self):
        assert get_log_level_from_env() == logging.DEBUG

    @patch.dict(
        os.environ,
        {"B24_CONTACT_SYNC_LOG_LEVEL": "WARNING", "B24_CONTACT_SYNC_DEBUG": ""},
        clear=False,
    )
    def test_log_level_warning(self):
        assert get_log_level_from_env() == logging.WARNING

    @patch.dict(
        os.environ,
        {"B24_CONTACT_SYNC_LOG_LEVEL": "WARN", "B24_CONTACT_SYNC_DEBUG": ""},
        clear=False,
    )
    def test_warn_alias_for_warning(self):
        assert get_log_level_from_env() == logging.WARNING

    @patch.dict(
        os.environ,
        {"B24_CONTACT_SYNC_LOG_LEVEL": "INVALID", "B24_CONTACT_SYNC_DEBUG": ""},
        clear=False,
    )
    def test_invalid_level_defaults_to_info(self):
        assert get_log_level_from_env() == logging.INFO


class TestGetLogFilePath:
    """Tests for get_log_file_path function."""

    @patch.dict(os.environ, {"B24_CONTACT_SYNC_LOG_FILE": "/custom/path/app.log"})
    def test_custom_log_file_from_env(self):
        assert get_log_file_path() == Path("/custom/path/app.log")

    @patch.dict(os.environ, {"B24_CONTACT_SYNC_LOG_FILE": "none"})
    def test_log_file_disabled_with_none(self):
        assert get_log_file_path() is None

    @patch.dict(os.environ, {"B24_CONTACT_SYNC_LOG_FILE": "disabled"})
    def test_log_file_disabled_with_disabled(self):
        assert get_log_file_path() is None

    def test_default_is_daily_file(self):
        with patch.dict(os.environ, {}, clear=True):
            path = get_log_file_path()
        assert path is not None
        assert path.name.startswith(LOG_FILE_PREFIX)
        assert path.suffix == ".log"


class TestColoredFormatter:
    """Tests for ColoredFormatter class."""

    def test_formatter_with_colors_disabled(self):
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=False)
        assert formatter.use_colors is False

    @patch("sys.stderr")
    def test_formatter_supports_color_non_tty(self, mock_stderr):
        mock_stderr.isatty.return_value = False
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=True)
        assert formatter.use_colors is False

    @patch.dict(os.environ, {"NO_COLOR": "1"})
    @patch("sys.stderr")
    def test_formatter_respects_no_color_env(self, mock_stderr):
        mock_stderr.isatty.return_value = True
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=True)
        assert formatter.use_colors is False

    @patch.dict(os.environ, {"TERM": "dumb", "NO_COLOR": ""})
    @patch("sys.stderr")
    def test_formatter_detects_dumb_terminal(self, mock_stderr):
        mock_stderr.isatty.return_value = True
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=True)
        assert formatter.use_colors is False

    def test_format_record_without_colors(self):
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=False)
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="test.py",
            lineno=1,
            msg="Контакт 42 обновлён",
            args=(),
            exc_info=None,
        )
        result = formatter.format(record)
        assert "Контакт 42 обновлён" in result
        assert "\033[" not in result

    def test_colored_format_does_not_touch_record(self):
        formatter = ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT, use_colors=False)
        formatter.use_colors = True
        record = logging.LogRecord(
            name="test",
            level=logging.ERROR,
            pathname="test.py",
            lineno=1,
            msg="boom",
            args=(),
            exc_info=None,
        )

        result = formatter.format(record)

        assert "\033[31m" in result
        assert record.msg == "boom"
        assert record.levelname == "ERROR"


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_returns_logger(self):
        logger = setup_logging(enable_file_logging=False)
        assert isinstance(logger, logging.Logger)
        assert logger.name == ROOT_LOGGER_NAME

    def test_setup_logging_with_verbose(self):
        logger = setup_logging(verbose=True, enable_file_logging=False)
        assert logger.level == logging.DEBUG

    def test_setup_logging_with_explicit_level(self):
        logger = setup_logging(level=logging.WARNING, enable_file_logging=False)
        assert logger.level == logging.WARNING

    def test_setup_logging_clears_handlers(self):
        setup_logging(enable_file_logging=False)
        logger = setup_logging(enable_file_logging=False)
        assert len(logger.handlers) == 1

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "test.log"
        logger = setup_logging(
            log_file=log_file, enable_file_logging=True, use_colors=False
        )
        assert len(logger.handlers) == 2
        logger.info("Test message")
        assert log_file.exists()
        logger.handlers.clear()

    def test_setup_logging_with_log_dir(self, tmp_path):
        logger = setup_logging(log_dir=tmp_path / "logs", use_colors=False)
        files = list((tmp_path / "logs").glob(f"{LOG_FILE_PREFIX}*.log"))
        assert len(files) == 1
        logger.handlers.clear()

    def test_setup_logging_propagate_disabled(self):
        logger = setup_logging(enable_file_logging=False)
        assert logger.propagate is False


class TestCleanupOldLogs:
    """Tests for cleanup_old_logs function."""

    def _make_logs(self, log_dir, count):
        log_dir.mkdir(parents=True, exist_ok=True)
        paths = []
        for i in range(count):
            path = log_dir / f"{LOG_FILE_PREFIX}2024010{i}.log"
            path.write_text("x")
            os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))
            paths.append(path)
        return paths

    def test_keeps_most_recent(self, tmp_path):
        paths = self._make_logs(tmp_path, 5)

        deleted = cleanup_old_logs(log_dir=tmp_path, keep_count=2)

        assert deleted == 3
        assert [p.exists() for p in paths] == [False, False, False, True, True]

    def test_other_files_untouched(self, tmp_path):
        self._make_logs(tmp_path, 3)
        other = tmp_path / "notes.log"
        other.write_text("keep")

        cleanup_old_logs(log_dir=tmp_path, keep_count=1)

        assert other.exists()

    def test_zero_keep_count_disables_cleanup(self, tmp_path):
        self._make_logs(tmp_path, 3)
        assert cleanup_old_logs(log_dir=tmp_path, keep_count=0) == 0

    def test_missing_directory(self, tmp_path):
        assert cleanup_old_logs(log_dir=tmp_path / "missing") == 0


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_with_module_name(self):
        logger = get_logger("b24_contact_sync.test")
        assert logger.name == "b24_contact_sync.test"

    def test_get_logger_without_prefix(self):
        logger = get_logger("mymodule")
        assert logger.name == "b24_contact_sync.mymodule"


class TestSetLogLevel:
    """Tests for set_log_level function."""

    def test_set_log_level_changes_level(self):
        setup_logging(enable_file_logging=False)
        set_log_level(logging.ERROR)
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert logger.level == logging.ERROR
        assert logger.handlers[0].level == logging.ERROR
        set_log_level(logging.INFO)
