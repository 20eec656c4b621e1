"""Concurrency module - Locking and expiry scheduling."""

from cacheit_core.concurrency.lock import ReadWriteLock
from cacheit_core.concurrency.scheduler import ExpiryScheduler, ScheduledExpiry

__all__ = [
    "ReadWriteLock",
    "ExpiryScheduler",
    "ScheduledExpiry",
]
