"""Logs module - Cache event logging hook."""

from cacheit_core.logs.sink import LogCategory, LoggingLevel, LogSink

__all__ = [
    "LogCategory",
    "LoggingLevel",
    "LogSink",
]
