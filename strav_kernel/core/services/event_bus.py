"""
In-memory event emitter with async publish/subscribe.

Listeners of one event are invoked concurrently when the event is emitted.
A failing listener never prevents its siblings from running; once every
listener has settled, the first failure is re-raised to the emitter.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Dict, List, Optional, Set, Tuple

from ..interfaces.messaging import IEventEmitter, Listener

logger = logging.getLogger(__name__)


class EventEmitter(IEventEmitter):
    """
    Publish/subscribe event emitter.

    One instance is created per application and passed to whoever needs it;
    there is no process-wide emitter.

    Example:
        async def on_registered(payload):
            await send_welcome_email(payload["user"])

        emitter.on("user.registered", on_registered)
        await emitter.emit("user.registered", {"user": user})
    """

    def __init__(self) -> None:
        # dict keys give an insertion-ordered set
        self._listeners: Dict[str, Dict[Listener, None]] = {}
        self._once: Set[Tuple[str, Listener]] = set()

        self._metrics: Dict[str, int] = {
            'events_emitted': 0,
            'listeners_invoked': 0,
            'listener_failures': 0,
        }

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener for an event."""
        listeners = self._listeners.get(event)
        if listeners is None:
            listeners = {}
            self._listeners[event] = listeners
        listeners[listener] = None
        logger.debug(f"Added listener for '{event}'")

    def once(self, event: str, listener: Listener) -> None:
        """Register a listener that is removed after its first invocation."""
        self._once.add((event, listener))
        self.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a specific listener for an event."""
        self._once.discard((event, listener))
        listeners = self._listeners.get(event)
        if listeners is None:
            return
        listeners.pop(listener, None)
        if not listeners:
            del self._listeners[event]

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        """Remove all listeners for a specific event, or all listeners entirely."""
        if event is None:
            self._listeners.clear()
            self._once.clear()
            return

        self._listeners.pop(event, None)
        self._once = {entry for entry in self._once if entry[0] != event}

    async def emit(self, event: str, payload: Any = None) -> None:
        """
        Emit an event. All registered listeners are invoked concurrently.

        If any listener raises, the other listeners still run to completion.
        After all of them settle, the first error by registration order is
        re-raised.
        """
        listeners = self._listeners.get(event)
        if not listeners:
            return

        snapshot = list(listeners)

        # Drop one-time listeners before invoking anything so a re-entrant
        # emit from inside a listener cannot fire them twice.
        for listener in snapshot:
            if (event, listener) in self._once:
                self._once.discard((event, listener))
                del listeners[listener]
        if not listeners:
            del self._listeners[event]

        self._metrics['events_emitted'] += 1
        logger.debug(f"Emitting '{event}' to {len(snapshot)} listener(s)")

        outcomes: List[Optional[BaseException]] = [None] * len(snapshot)
        pending: List[Tuple[int, Awaitable[Any]]] = []

        for index, listener in enumerate(snapshot):
            self._metrics['listeners_invoked'] += 1
            try:
                result = listener(payload)
            except Exception as e:
                outcomes[index] = e
                continue
            if inspect.isawaitable(result):
                pending.append((index, result))

        if pending:
            settled = await asyncio.gather(
                *(awaitable for _, awaitable in pending),
                return_exceptions=True
            )
            for (index, _), outcome in zip(pending, settled):
                if isinstance(outcome, BaseException):
                    outcomes[index] = outcome

        failures = [outcome for outcome in outcomes if outcome is not None]
        if failures:
            self._metrics['listener_failures'] += len(failures)
            logger.error(
                f"{len(failures)} listener(s) failed for event '{event}': {failures[0]}")
            raise failures[0]

    def listener_count(self, event: str) -> int:
        """Return the number of listeners registered for an event."""
        listeners = self._listeners.get(event)
        return len(listeners) if listeners else 0

    def reset(self) -> None:
        """Clear all state. Intended for test teardown."""
        self._listeners.clear()
        self._once = set()
        for key in self._metrics:
            self._metrics[key] = 0

    def get_metrics(self) -> Dict[str, Any]:
        """Get emitter metrics."""
        return {
            **self._metrics,
            'events_count': len(self._listeners),
            'subscriptions_count': sum(len(listeners) for listeners in self._listeners.values()),
        }
