"""
Messaging interface for the in-process event emitter.

The emitter is the only channel the application uses to broadcast lifecycle
transitions, so observers never need a reference to the orchestrator itself.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

Listener = Callable[[Any], Union[None, Awaitable[None]]]
"""A function receiving the event payload. May be sync or async."""


class IEventEmitter(ABC):
    """Interface for publish/subscribe event emitters."""

    @abstractmethod
    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener for an event.

        Registering the same listener twice for one event has no effect.
        """
        pass

    @abstractmethod
    def once(self, event: str, listener: Listener) -> None:
        """Register a listener that is removed after its first invocation."""
        pass

    @abstractmethod
    def off(self, event: str, listener: Listener) -> None:
        """Remove a specific listener for an event."""
        pass

    @abstractmethod
    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        """Remove all listeners for one event, or for every event."""
        pass

    @abstractmethod
    async def emit(self, event: str, payload: Any = None) -> None:
        """
        Emit an event to every registered listener.

        Args:
            event: Event name
            payload: Value passed to every listener

        Raises:
            Exception: The first listener failure, by registration order,
                after every listener has finished.
        """
        pass

    @abstractmethod
    def listener_count(self, event: str) -> int:
        """Return the number of listeners registered for an event."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Clear all listener state. Intended for test teardown."""
        pass

    @abstractmethod
    def get_metrics(self) -> Dict[str, Any]:
        """Get emitter metrics."""
        pass
