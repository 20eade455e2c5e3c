"""Utility modules for nimbus-search"""

from .logger import (
    get_logger,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
]
