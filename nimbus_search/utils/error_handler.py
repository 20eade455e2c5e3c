"""Shared error handling utilities.

Log-and-degrade helpers for operations whose failure must not take the
engine down, such as reading or writing the history and saved-search
documents.
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ErrorHandler:
    """Standard logging patterns for handled exceptions"""

    @staticmethod
    def log_and_return_default(
        operation_name: str, exception: Exception, default_value: T, **kwargs: Any
    ) -> T:
        """Log the error and hand back a default value"""
        logger.warning(f"Failed to {operation_name}", error=str(exception), **kwargs)
        return default_value

    @staticmethod
    def log_and_reraise(
        operation_name: str, exception: Exception, **kwargs: Any
    ) -> None:
        """Log the error, then raise it again"""
        logger.error(f"Failed to {operation_name}", error=str(exception), **kwargs)
        raise exception


def handle_errors(
    operation_name: str,
    default_return: Any = None,
    reraise: bool = False,
    **log_kwargs: Any,
):
    """
    Decorator that wraps a sync or async callable with error logging.

    Args:
        operation_name: Operation name used in the log message
        default_return: Value returned when the call fails
        reraise: Re-raise the exception after logging
        **log_kwargs: Extra fields attached to the log entry
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if reraise:
                    ErrorHandler.log_and_reraise(operation_name, e, **log_kwargs)
                return ErrorHandler.log_and_return_default(
                    operation_name, e, default_return, **log_kwargs
                )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if reraise:
                    ErrorHandler.log_and_reraise(operation_name, e, **log_kwargs)
                return ErrorHandler.log_and_return_default(
                    operation_name, e, default_return, **log_kwargs
                )

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return wrapper

    return decorator


def safe_with_default(operation_name: str, default_value: Any, **log_kwargs: Any):
    """Safe operation that falls back to ``default_value``"""
    return handle_errors(operation_name, default_return=default_value, **log_kwargs)


def safe_operation(operation_name: str, **log_kwargs: Any):
    """Safe operation that returns None on failure"""
    return handle_errors(operation_name, default_return=None, **log_kwargs)
