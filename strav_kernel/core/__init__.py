"""
Core module containing the kernel's contracts, domain values and services.

Nothing in this module depends on the application or infrastructure layers.
"""

from .domain.events import LifecycleEvent
from .interfaces.lifecycle import ServiceProvider
from .interfaces.messaging import IEventEmitter, Listener
from .services.event_bus import EventEmitter

__all__ = [
    "LifecycleEvent",
    "ServiceProvider",
    "IEventEmitter",
    "Listener",
    "EventEmitter",
]
