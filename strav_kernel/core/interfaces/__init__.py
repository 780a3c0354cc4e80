"""
Core interfaces defining the contracts between the kernel and its providers.
"""

from .lifecycle import ServiceProvider
from .messaging import IEventEmitter, Listener

__all__ = [
    "ServiceProvider",
    "IEventEmitter",
    "Listener",
]
