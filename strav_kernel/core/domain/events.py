"""
Lifecycle event names published by the application orchestrator.

These events carry no payload. Observers subscribe to them on the
application's event emitter to react to startup and shutdown transitions.
"""

from enum import Enum


class LifecycleEvent(str, Enum):
    """Named lifecycle transitions, in the order they are published."""
    STARTING = "app:starting"
    BOOTED = "app:booted"
    SHUTDOWN = "app:shutdown"
    TERMINATED = "app:terminated"

    def __str__(self) -> str:
        return self.value
