"""Utility modules for configuration, logging, security and AWS clients."""

from resource_reaper.utils.aws_client import AWSClientManager, RetryStrategy
from resource_reaper.utils.config import Settings, configure_logging
from resource_reaper.utils.logging import (
    ActionType,
    LogEntry,
    LogLevel,
    ReaperLogger,
)
from resource_reaper.utils.security import InputValidator, LogSanitizer

__all__ = [
    "AWSClientManager",
    "RetryStrategy",
    "Settings",
    "configure_logging",
    "ActionType",
    "LogEntry",
    "LogLevel",
    "ReaperLogger",
    "InputValidator",
    "LogSanitizer",
]
