"""CacheIt Log Sink - Observability Hook for Cache Events.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Dict


class LoggingLevel(Enum):
    """Verbosity of the cache event hook."""

    NONE = 0    # Hook disabled
    INFO = 1    # Saves, expirations, rehydration
    DEBUG = 2   # Everything


class LogCategory(Enum):
    """Cache event categories."""

    SAVE = "save"
    FETCH = "fetch"
    EXPIRE = "expire"


_STDLIB_LEVELS = {
    LoggingLevel.INFO: logging.INFO,
    LoggingLevel.DEBUG: logging.DEBUG,
}


class LogSink:
    """Routes cache events to per-category loggers.

    Each category gets its own child logger of the package logger
    (``cacheit_core.save``, ``cacheit_core.fetch``, ``cacheit_core.expire``)
    so hosts can filter them independently. Messages are dropped unless the
    sink's level admits them, regardless of the stdlib logger configuration.

    Example:
        sink = LogSink(LoggingLevel.INFO)
        sink.log("stored greeting", LogCategory.SAVE, LoggingLevel.INFO)
    """

    def __init__(self, level: LoggingLevel = LoggingLevel.NONE):
        """Initialize sink.

        Args:
            level: Highest event level that will be emitted
        """
        self._level = level
        self._lock = threading.Lock()
        self._loggers: Dict[LogCategory, logging.Logger] = {
            category: logging.getLogger(f"cacheit_core.{category.value}")
            for category in LogCategory
        }

    @property
    def level(self) -> LoggingLevel:
        """Get current level."""
        return self._level

    @level.setter
    def level(self, value: LoggingLevel) -> None:
        with self._lock:
            self._level = value

    def enabled_for(self, level: LoggingLevel) -> bool:
        """Check whether events at a level would be emitted."""
        if level == LoggingLevel.NONE:
            return False
        return self._level.value >= level.value

    def log(
        self,
        message: str,
        category: LogCategory,
        level: LoggingLevel = LoggingLevel.INFO,
    ) -> None:
        """Emit a cache event.

        Args:
            message: Event description
            category: Event category
            level: Event level
        """
        if not self.enabled_for(level):
            return
        self._loggers[category].log(_STDLIB_LEVELS[level], message)

    def __repr__(self) -> str:
        return f"LogSink(level={self._level.name})"


__all__ = ["LogSink", "LogCategory", "LoggingLevel"]
