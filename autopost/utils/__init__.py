"""工具模块."""

from .logger_setup import get_logger_with_context, setup_logger
from .page_waiter import PageWaiter, WaitStrategy

__all__ = [
    "PageWaiter",
    "WaitStrategy",
    "get_logger_with_context",
    "setup_logger",
]
