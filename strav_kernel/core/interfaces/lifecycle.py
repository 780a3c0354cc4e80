"""
Lifecycle contract for service providers.

A service provider encapsulates the full lifecycle of one framework service:
registration (binding factories into the container), booting (asynchronous
initialization) and shutdown (cleanup). The application orchestrates providers
in dependency order.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Sequence

if TYPE_CHECKING:
    from ...application.application import Application


class ServiceProvider(ABC):
    """
    Base class for service providers.

    Subclasses must define ``name``; everything else is optional. ``boot`` and
    ``shutdown`` may be overridden either as coroutines or as plain methods.

    Example:
        class DatabaseProvider(ServiceProvider):
            name = "database"
            dependencies = ["config"]

            def register(self, app):
                app.singleton(Database, lambda c: Database(c.resolve("config")))

            async def boot(self, app):
                await app.resolve(Database).connect()

            async def shutdown(self, app):
                await app.resolve(Database).close()
    """

    dependencies: Sequence[str] = ()
    """Names of providers that must complete boot before this one boots."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name used for dependency resolution between providers."""
        pass

    def register(self, app: 'Application') -> None:
        """
        Bind services into the container.

        Called synchronously for every provider before any provider boots.
        Must not perform I/O.
        """
        pass

    async def boot(self, app: 'Application') -> None:
        """
        Initialize services after all providers have registered.

        Raises:
            Exception: Any error aborts startup and rolls back booted providers.
        """
        pass

    async def shutdown(self, app: 'Application') -> None:
        """Release resources. Called in reverse boot order."""
        pass

    def describe(self) -> Dict[str, Any]:
        """Return a short description used in diagnostics."""
        return {
            'name': self.name,
            'dependencies': list(self.dependencies),
            'class': type(self).__name__,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
