"""
Application lifecycle orchestration.

The Application composes the dependency injection container, the set of
service providers and the event emitter. It orders providers by their
declared dependencies, registers and boots them, rolls back on boot failure,
and shuts them down in reverse boot order under a deadline.
"""

import asyncio
import inspect
import logging
import os
import signal
import sys
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple, Type, TypeVar, Union

from ..core.domain.events import LifecycleEvent
from ..core.exceptions import (
    ApplicationStateException,
    CircularDependencyException,
    DuplicateProviderException,
    UnknownDependencyException,
)
from ..core.interfaces.lifecycle import ServiceProvider
from ..core.interfaces.messaging import IEventEmitter
from ..core.services.event_bus import EventEmitter
from ..infrastructure.config.models import ApplicationConfig
from .container import Container, Factory, IContainer, ServiceKey, ServiceLifetime

logger = logging.getLogger(__name__)

T = TypeVar('T')

BootedCallback = Callable[['Application'], Union[None, Awaitable[None]]]

SHUTDOWN_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ApplicationState(Enum):
    """Lifecycle states of an application. There is no restart transition."""
    CREATED = auto()
    STARTING = auto()
    BOOTED = auto()
    SHUTTING_DOWN = auto()
    TERMINATED = auto()


@dataclass
class ProviderDescriptor:
    """Lifecycle bookkeeping for one added provider."""
    name: str
    dependencies: Tuple[str, ...]
    registered: bool = False
    booted: bool = False


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class Application:
    """
    Application container with service-provider lifecycle management.

    Construct one instance per process and pass it to whatever needs it.

    Example:
        app = Application()
        app.use(ConfigProvider(config)).use(DatabaseProvider()).use(AuthProvider())
        await app.start()
        ...
        await app.shutdown()
    """

    def __init__(self,
                 container: Optional[IContainer] = None,
                 events: Optional[IEventEmitter] = None,
                 config: Optional[ApplicationConfig] = None) -> None:
        self._container: IContainer = container if container is not None else Container()
        self._events: IEventEmitter = events if events is not None else EventEmitter()
        self._config = config if config is not None else ApplicationConfig()

        self._providers: List[ServiceProvider] = []
        self._descriptors: Dict[int, ProviderDescriptor] = {}
        self._booted_providers: List[ServiceProvider] = []
        self._booted_callbacks: List[BootedCallback] = []

        self._state = ApplicationState.CREATED
        self._booted = False
        self._shutting_down = False

        self._signal_loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed_signals: List[signal.Signals] = []
        self._background_tasks: Set['asyncio.Task[Any]'] = set()

        self._container.register_instance(Application, self)
        self._container.register_instance(IEventEmitter, self._events)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def container(self) -> IContainer:
        return self._container

    @property
    def events(self) -> IEventEmitter:
        return self._events

    @property
    def config(self) -> ApplicationConfig:
        return self._config

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def is_booted(self) -> bool:
        """Whether the application has finished booting."""
        return self._booted

    @property
    def is_shutting_down(self) -> bool:
        """Whether the application is currently shutting down."""
        return self._shutting_down

    @property
    def providers(self) -> List[ServiceProvider]:
        """Added providers, in the order they were added."""
        return list(self._providers)

    @property
    def booted_providers(self) -> List[ServiceProvider]:
        """Booted providers, in boot-completion order."""
        return list(self._booted_providers)

    # ------------------------------------------------------------------
    # Container shortcuts
    # ------------------------------------------------------------------

    def bind(self, key: ServiceKey, factory: Optional[Union[Factory, Type[Any]]] = None,
             lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT) -> 'Application':
        self._container.register(key, factory, lifetime)
        return self

    def singleton(self, key: ServiceKey,
                  factory: Optional[Union[Factory, Type[Any]]] = None) -> 'Application':
        self._container.singleton(key, factory)
        return self

    def resolve(self, key: ServiceKey) -> Any:
        return self._container.resolve(key)

    def make(self, cls: Type[T]) -> T:
        return self._container.make(cls)

    def has(self, key: ServiceKey) -> bool:
        return self._container.has(key)

    # ------------------------------------------------------------------
    # Provider management
    # ------------------------------------------------------------------

    def use(self, provider: ServiceProvider) -> 'Application':
        """Add a service provider. Must be called before start()."""
        if self._booted:
            raise ApplicationStateException(
                f'Cannot add provider "{provider.name}" after the application has started.')

        self._providers.append(provider)
        self._descriptors[id(provider)] = ProviderDescriptor(
            name=provider.name,
            dependencies=tuple(provider.dependencies)
        )
        logger.debug(f"Added provider: {provider.name}")
        return self

    def load_providers(self, providers: Iterable[ServiceProvider]) -> 'Application':
        """Add multiple service providers at once. Must be called before start()."""
        for provider in providers:
            self.use(provider)
        return self

    def on_booted(self, callback: BootedCallback) -> 'Application':
        """
        Register a callback to run after all providers have booted.

        If the application has already booted, the callback runs immediately;
        an awaitable result is scheduled on the running loop.
        """
        if not self._booted:
            self._booted_callbacks.append(callback)
            return self

        result = callback(self)
        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(result))
        return self

    def boot_order(self) -> List[str]:
        """
        Return provider names in the order they would boot.

        Raises:
            DuplicateProviderException: If two providers share a name
            UnknownDependencyException: If a dependency was never added
            CircularDependencyException: If providers depend on each other
        """
        return [provider.name for provider in self._sort_providers()]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Boot the application.

        1. Emit ``app:starting``
        2. Topologically sort providers by their declared dependencies
        3. Call ``register()`` on every provider
        4. Call ``boot()`` on every provider in dependency order
        5. Run on_booted callbacks
        6. Install SIGINT / SIGTERM handlers for graceful shutdown
        7. Emit ``app:booted``

        If a provider fails to boot, every provider booted so far is shut
        down in reverse order and the original error is re-raised.
        """
        if self._booted:
            return
        if self._state == ApplicationState.TERMINATED:
            raise ApplicationStateException("Application has terminated and cannot be restarted.")
        if self._state != ApplicationState.CREATED:
            raise ApplicationStateException(
                f"Cannot start application in state {self._state.name}")

        logger.info(f"Starting {self._config.name} with {len(self._providers)} provider(s)...")
        self._state = ApplicationState.STARTING

        try:
            await self._events.emit(LifecycleEvent.STARTING)

            ordered = self._sort_providers()
            logger.debug(f"Boot order: {', '.join(p.name for p in ordered)}")

            self._register_providers(ordered)
            await self._boot_providers(ordered)
        except BaseException:
            self._state = ApplicationState.CREATED
            raise

        self._booted = True
        self._state = ApplicationState.BOOTED

        for callback in self._booted_callbacks:
            await _maybe_await(callback(self))

        self._install_signal_handlers()

        logger.info("Application startup completed successfully")
        await self._events.emit(LifecycleEvent.BOOTED)

    async def shutdown(self) -> None:
        """
        Gracefully shut down the application.

        Calls ``shutdown()`` on every booted provider in reverse boot order.
        If providers do not finish within the configured timeout, the process
        is terminated with exit status 1.
        """
        if self._shutting_down:
            return

        self._shutting_down = True
        self._state = ApplicationState.SHUTTING_DOWN
        logger.info("Shutting down application...")

        timer: Optional[asyncio.TimerHandle] = None
        try:
            await self._emit_quietly(LifecycleEvent.SHUTDOWN)

            timeout = self._config.shutdown_timeout
            timer = asyncio.get_running_loop().call_later(
                timeout, self._on_shutdown_timeout, timeout)

            await self._shutdown_providers()
        finally:
            if timer is not None:
                timer.cancel()
            self._remove_signal_handlers()
            self._booted = False
            self._shutting_down = False
            self._state = ApplicationState.TERMINATED

        logger.info("Application shutdown completed")
        await self._emit_quietly(LifecycleEvent.TERMINATED)

    def check_health(self) -> Dict[str, Any]:
        """Report lifecycle state and per-provider status."""
        return {
            'healthy': self._state == ApplicationState.BOOTED,
            'status': self._state.name.lower(),
            'details': {
                'providers': {
                    descriptor.name: {
                        'dependencies': list(descriptor.dependencies),
                        'registered': descriptor.registered,
                        'booted': descriptor.booted,
                    }
                    for descriptor in (self._descriptors[id(p)] for p in self._providers)
                },
                'booted_order': [p.name for p in self._booted_providers],
            }
        }

    async def __aenter__(self) -> 'Application':
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _register_providers(self, ordered: List[ServiceProvider]) -> None:
        """Phase 1: register all providers (synchronous)."""
        for provider in ordered:
            provider.register(self)
            self._descriptors[id(provider)].registered = True
            logger.debug(f"Registered provider: {provider.name}")

    async def _boot_providers(self, ordered: List[ServiceProvider]) -> None:
        """Phase 2: boot providers one at a time, rolling back on failure."""
        for provider in ordered:
            try:
                await _maybe_await(provider.boot(self))
            except Exception as e:
                logger.error(f"Failed to boot provider {provider.name}: {e}")
                await self._shutdown_providers()
                raise

            self._booted_providers.append(provider)
            self._descriptors[id(provider)].booted = True
            logger.info(f"Booted provider: {provider.name}")

    async def _shutdown_providers(self) -> None:
        """Shut down booted providers in reverse order."""
        for provider in reversed(self._booted_providers):
            try:
                await _maybe_await(provider.shutdown(self))
                logger.info(f"Stopped provider: {provider.name}")
            except Exception:
                logger.exception(f'Error shutting down provider "{provider.name}"')
            finally:
                self._descriptors[id(provider)].booted = False

        self._booted_providers = []

    def _sort_providers(self) -> List[ServiceProvider]:
        """
        Topologically sort providers using Kahn's algorithm.

        Raises if a provider name is duplicated, if a provider declares a
        dependency on an unknown provider, or if a cycle is detected.
        """
        by_name: Dict[str, ServiceProvider] = {}
        for provider in self._providers:
            if provider.name in by_name:
                raise DuplicateProviderException(provider.name)
            by_name[provider.name] = provider

        in_degree: Dict[str, int] = {name: 0 for name in by_name}
        dependents: Dict[str, List[str]] = {name: [] for name in by_name}

        for provider in self._providers:
            for dependency in provider.dependencies:
                if dependency not in by_name:
                    raise UnknownDependencyException(provider.name, dependency)
                in_degree[provider.name] += 1
                dependents[dependency].append(provider.name)

        queue: Deque[str] = deque(name for name, degree in in_degree.items() if degree == 0)
        ordered: List[ServiceProvider] = []

        while queue:
            name = queue.popleft()
            ordered.append(by_name[name])

            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) != len(self._providers):
            sorted_names = {provider.name for provider in ordered}
            remaining = [p.name for p in self._providers if p.name not in sorted_names]
            raise CircularDependencyException(
                f"Circular dependency detected among providers: {', '.join(remaining)}",
                remaining)

        return ordered

    async def _emit_quietly(self, event: LifecycleEvent) -> None:
        """Emit a shutdown-side event; listener failures never stop teardown."""
        try:
            await self._events.emit(event)
        except Exception:
            logger.exception(f"Listener for '{event}' failed during shutdown")

    def _install_signal_handlers(self) -> None:
        """Install SIGINT/SIGTERM handlers for graceful shutdown."""
        if not self._config.handle_signals:
            return

        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Not supported on this platform or outside the main thread
                logger.debug(f"Cannot install handler for {sig.name}: {e}")
                continue
            self._installed_signals.append(sig)

        self._signal_loop = loop

    def _remove_signal_handlers(self) -> None:
        """Remove signal handlers."""
        loop = self._signal_loop
        if loop is not None and not loop.is_closed():
            for sig in self._installed_signals:
                loop.remove_signal_handler(sig)

        self._installed_signals = []
        self._signal_loop = None

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        self._track(asyncio.ensure_future(self._shutdown_and_exit()))

    async def _shutdown_and_exit(self) -> None:
        status = 0
        try:
            await self.shutdown()
        except Exception:
            logger.exception("Error during shutdown")
            status = 1
        self._exit_process(status)

    def _on_shutdown_timeout(self, timeout: float) -> None:
        logger.critical(f"Shutdown timed out after {timeout}s, forcing exit.")
        self._force_exit(1)

    def _exit_process(self, status: int) -> None:
        """Exit after a completed shutdown, unwinding the event loop."""
        sys.exit(status)

    def _force_exit(self, status: int) -> None:
        """Terminate immediately, abandoning in-flight work."""
        os._exit(status)

    def _track(self, task: 'asyncio.Future[Any]') -> None:
        self._background_tasks.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: 'asyncio.Future[Any]') -> None:
        self._background_tasks.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task failed", exc_info=error)
