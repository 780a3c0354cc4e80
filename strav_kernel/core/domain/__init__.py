"""
Domain values shared across the kernel.
"""

from .events import LifecycleEvent

__all__ = [
    "LifecycleEvent",
]
