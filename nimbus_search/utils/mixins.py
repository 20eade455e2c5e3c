from typing import Any, ClassVar, cast

import structlog


class LoggerMixin:
    """Gives a class a structlog logger named after it.

    Fields in ``log_context`` are bound onto every entry the class logs.
    """

    log_context: ClassVar[dict[str, Any]] = {}

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get logger instance for this class"""
        logger = structlog.get_logger(self.__class__.__name__)
        if self.log_context:
            logger = logger.bind(**self.log_context)
        return cast("structlog.stdlib.BoundLogger", logger)
