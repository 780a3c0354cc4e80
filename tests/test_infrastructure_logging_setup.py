"""
Tests for logging setup and configuration utilities.

测试日志设置和配置工具功能。
"""

import pytest
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List
from unittest.mock import Mock, patch

from loguru import logger as loguru_logger

from strav_kernel.infrastructure.config.models import LoggingConfig
from strav_kernel.infrastructure.logging.setup import (
    CONSOLE_FORMAT,
    InterceptHandler,
    _standard_level,
    intercept_standard_logging,
    setup_logging,
)


@contextmanager
def preserved_root_logger() -> Iterator[logging.Logger]:
    """Restore root logger handlers and level after the block."""
    root = logging.getLogger()
    level = root.level
    with patch.object(root, 'handlers', []):
        try:
            yield root
        finally:
            root.setLevel(level)


class TestSetupLogging:
    """测试日志设置主函数"""

    @patch('strav_kernel.infrastructure.logging.setup.intercept_standard_logging')
    @patch('strav_kernel.infrastructure.logging.setup.loguru_logger')
    def test_console_only(self, mock_loguru: Mock, mock_intercept: Mock) -> None:
        """测试仅控制台输出"""
        config = LoggingConfig(level="DEBUG")

        setup_logging(config)

        mock_loguru.remove.assert_called_once_with()
        mock_loguru.add.assert_called_once()
        args, kwargs = mock_loguru.add.call_args
        assert args[0] is sys.stderr
        assert kwargs['level'] == "DEBUG"
        assert kwargs['format'] == CONSOLE_FORMAT
        mock_intercept.assert_called_once_with("DEBUG")

    @patch('strav_kernel.infrastructure.logging.setup.intercept_standard_logging')
    @patch('strav_kernel.infrastructure.logging.setup.loguru_logger')
    def test_console_and_file(self, mock_loguru: Mock, mock_intercept: Mock,
                              tmp_path: Path) -> None:
        """测试控制台和文件输出"""
        log_dir = tmp_path / "nested" / "logs"
        config = LoggingConfig(
            log_directory=str(log_dir),
            file_enabled=True,
            max_file_size="1 MB",
            backup_count=3
        )

        setup_logging(config)

        assert log_dir.is_dir()
        assert mock_loguru.add.call_count == 2
        args, kwargs = mock_loguru.add.call_args_list[1]
        assert args[0] == log_dir / "app.log"
        assert kwargs['format'] == config.format
        assert kwargs['rotation'] == "1 MB"
        assert kwargs['retention'] == 3
        assert kwargs['compression'] == "zip"

    @patch('strav_kernel.infrastructure.logging.setup.intercept_standard_logging')
    @patch('strav_kernel.infrastructure.logging.setup.loguru_logger')
    def test_all_sinks_disabled(self, mock_loguru: Mock, mock_intercept: Mock) -> None:
        """测试禁用所有输出"""
        config = LoggingConfig(console_enabled=False, file_enabled=False)

        setup_logging(config)

        mock_loguru.remove.assert_called_once_with()
        mock_loguru.add.assert_not_called()
        mock_intercept.assert_called_once_with("INFO")


class TestInterceptStandardLogging:
    """测试标准日志拦截"""

    def test_replaces_root_handlers(self) -> None:
        with preserved_root_logger() as root:
            root.handlers.append(logging.NullHandler())

            intercept_standard_logging("WARNING")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0], InterceptHandler)
            assert root.level == logging.WARNING

    @pytest.mark.parametrize("level,expected", [
        ("TRACE", logging.DEBUG),
        ("DEBUG", logging.DEBUG),
        ("success", logging.INFO),
        ("ERROR", logging.ERROR),
        ("CRITICAL", logging.CRITICAL),
        ("NONSENSE", logging.INFO),
    ])
    def test_standard_level(self, level: str, expected: int) -> None:
        assert _standard_level(level) == expected

    def test_records_reach_loguru(self) -> None:
        """测试标准日志记录转发到loguru"""
        messages: List[str] = []
        handler_id = loguru_logger.add(messages.append, format="{level}|{message}", level="DEBUG")

        try:
            with preserved_root_logger():
                intercept_standard_logging("DEBUG")
                logging.getLogger("orders.database").warning("connection pool exhausted")
        finally:
            loguru_logger.remove(handler_id)

        assert any("WARNING|connection pool exhausted" in str(m) for m in messages)


class TestInterceptHandler:
    """测试拦截处理器"""

    @patch('strav_kernel.infrastructure.logging.setup.loguru_logger')
    def test_known_level(self, mock_loguru: Mock) -> None:
        mock_loguru.level.return_value.name = "INFO"
        record = logging.LogRecord("orders", logging.INFO, __file__, 10, "hello %s", ("world",), None)

        InterceptHandler().emit(record)

        mock_loguru.level.assert_called_once_with("INFO")
        mock_loguru.opt.return_value.log.assert_called_once_with("INFO", "hello world")

    @patch('strav_kernel.infrastructure.logging.setup.loguru_logger')
    def test_unknown_level_uses_number(self, mock_loguru: Mock) -> None:
        mock_loguru.level.side_effect = ValueError("unknown level")
        record = logging.LogRecord("orders", 25, __file__, 10, "custom", None, None)
        record.levelname = "NOTICE"

        InterceptHandler().emit(record)

        mock_loguru.opt.return_value.log.assert_called_once_with(25, "custom")
