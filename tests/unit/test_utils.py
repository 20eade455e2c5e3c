"""Test utils module functionality."""

import logging
from collections.abc import Iterator

import pytest
import structlog.testing

from nimbus_search.config import Settings
from nimbus_search.utils.error_handler import (
    handle_errors,
    safe_operation,
    safe_with_default,
)
from nimbus_search.utils.logger import get_logger, setup_logging
from nimbus_search.utils.mixins import LoggerMixin


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Iterator[None]:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    try:
        yield
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()


class TestLogger:
    """Test logging functionality."""

    def test_setup_logging(self):
        """Test logging setup doesn't raise errors."""
        setup_logging()

    def test_setup_logging_level(self):
        setup_logging(Settings(log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_file_handler(self, tmp_path):
        setup_logging(Settings(log_dir=tmp_path / "logs", log_format="console"))

        handlers = logging.getLogger().handlers
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert (tmp_path / "logs" / "search.log").exists()

    def test_get_logger(self):
        logger = get_logger("test")
        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestLoggerMixin:
    def test_logger_property(self):
        class Sample(LoggerMixin):
            pass

        logger = Sample().logger
        assert logger is not None
        assert hasattr(logger, "info")

    def test_log_context_is_bound(self):
        class Sample(LoggerMixin):
            log_context = {"component": "sample"}

        with structlog.testing.capture_logs() as logs:
            Sample().logger.info("hello")

        assert logs == [
            {"component": "sample", "event": "hello", "log_level": "info"}
        ]


class TestErrorHandlers:
    def test_sync_default_return(self):
        @handle_errors("divide", default_return=-1)
        def divide(a, b):
            return a / b

        assert divide(4, 2) == 2
        assert divide(1, 0) == -1

    def test_reraise(self):
        @handle_errors("explode", reraise=True)
        def explode():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            explode()

    @pytest.mark.asyncio
    async def test_async_default(self):
        @safe_with_default("load", default_value=[])
        async def load():
            raise OSError("disk gone")

        assert await load() == []

    @pytest.mark.asyncio
    async def test_safe_operation_returns_none(self):
        @safe_operation("save")
        async def save():
            raise OSError("read-only")

        assert await save() is None

    @pytest.mark.asyncio
    async def test_async_success_passes_through(self):
        @safe_with_default("load", default_value=None)
        async def load():
            return {"ok": True}

        assert await load() == {"ok": True}
