"""
Core service implementations.
"""

from .event_bus import EventEmitter

__all__ = [
    "EventEmitter",
]
