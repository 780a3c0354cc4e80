"""
Dependency injection container for managing service lifetimes and dependencies.

This module provides a lightweight dependency injection container that supports
singleton and transient service lifetimes, keyed by string name or by type,
and auto-wiring of classes marked with ``@injectable``.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

from ..core.exceptions import (
    CircularDependencyException,
    KernelError,
    ServiceNotRegisteredException,
    ServiceResolutionException,
    describe_key,
)
from .inject import get_dependencies, is_injectable

logger = logging.getLogger(__name__)

T = TypeVar('T')

ServiceKey = Union[str, Type[Any]]
Factory = Callable[['Container'], Any]

_UNSET: Any = object()


class ServiceLifetime(Enum):
    """Service lifetime management options."""
    SINGLETON = auto()  # Single instance per container
    TRANSIENT = auto()  # New instance created each time


class ServiceRegistration:
    """Registration information for a service."""

    def __init__(self,
                 key: ServiceKey,
                 factory: Factory,
                 lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT,
                 instance: Any = _UNSET):
        self.key = key
        self.factory = factory
        self.lifetime = lifetime
        self._instance = instance

    @property
    def is_singleton(self) -> bool:
        return self.lifetime == ServiceLifetime.SINGLETON

    @property
    def has_instance(self) -> bool:
        """True once a singleton has been created."""
        return self._instance is not _UNSET

    @property
    def instance(self) -> Any:
        return None if self._instance is _UNSET else self._instance

    def store(self, instance: Any) -> None:
        self._instance = instance

    def __repr__(self) -> str:
        return (f"<ServiceRegistration key={describe_key(self.key)} "
                f"lifetime={self.lifetime.name} cached={self.has_instance}>")


class IContainer(ABC):
    """Interface for dependency injection containers."""

    @abstractmethod
    def register(self,
                 key: ServiceKey,
                 factory: Optional[Union[Factory, Type[Any]]] = None,
                 lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT) -> 'IContainer':
        """
        Register a service with the container.

        Args:
            key: String name or type the service is resolved by
            factory: Callable receiving the container, an injectable class,
                or None when ``key`` is itself the implementation class
            lifetime: Service lifetime management
        """
        pass

    @abstractmethod
    def singleton(self,
                  key: ServiceKey,
                  factory: Optional[Union[Factory, Type[Any]]] = None) -> 'IContainer':
        """Register a service whose factory runs at most once."""
        pass

    @abstractmethod
    def register_instance(self, key: ServiceKey, instance: Any) -> 'IContainer':
        """
        Register a specific instance as a singleton.

        Args:
            key: String name or type
            instance: Service instance
        """
        pass

    @abstractmethod
    def resolve(self, key: ServiceKey) -> Any:
        """
        Resolve a service instance.

        Args:
            key: Name or type to resolve

        Returns:
            Service instance

        Raises:
            ServiceNotRegisteredException: If service not registered
            CircularDependencyException: If the factory re-enters itself
            ServiceResolutionException: If the factory fails
        """
        pass

    @abstractmethod
    def try_resolve(self, key: ServiceKey) -> Optional[Any]:
        """
        Try to resolve a service instance without raising kernel errors.

        Returns:
            Service instance or None if it cannot be resolved
        """
        pass

    @abstractmethod
    def has(self, key: ServiceKey) -> bool:
        """Check whether a service is registered under the given key."""
        pass

    @abstractmethod
    def make(self, cls: Type[T]) -> T:
        """
        Instantiate a class with automatic dependency injection.

        Does not require prior registration.
        """
        pass


class Container(IContainer):
    """
    Lightweight dependency injection container.

    Services are registered as factory functions or ``@injectable`` classes
    and resolved by string name or by type.

    Example:
        container = Container()
        container.singleton(Database)
        container.singleton(UserService)                    # @injectable
        container.singleton("logger", lambda c: Logger())

        service = container.resolve(UserService)            # Database injected
    """

    def __init__(self) -> None:
        self._services: Dict[ServiceKey, ServiceRegistration] = {}
        self._resolution_stack: List[Any] = []

    def register(self,
                 key: ServiceKey,
                 factory: Optional[Union[Factory, Type[Any]]] = None,
                 lifetime: ServiceLifetime = ServiceLifetime.TRANSIENT) -> 'Container':
        """Register a service with the container."""
        registration = ServiceRegistration(
            key=key,
            factory=self._to_factory(key, factory),
            lifetime=lifetime
        )

        if key in self._services:
            logger.debug(f"Replacing registration for {describe_key(key)}")
        self._services[key] = registration
        logger.debug(f"Registered {describe_key(key)} with {lifetime.name} lifetime")
        return self

    def singleton(self,
                  key: ServiceKey,
                  factory: Optional[Union[Factory, Type[Any]]] = None) -> 'Container':
        """Register a service whose factory runs at most once."""
        return self.register(key, factory, ServiceLifetime.SINGLETON)

    def register_instance(self, key: ServiceKey, instance: Any) -> 'Container':
        """Register a specific instance as a singleton."""
        self._services[key] = ServiceRegistration(
            key=key,
            factory=lambda _: instance,
            lifetime=ServiceLifetime.SINGLETON,
            instance=instance
        )
        logger.debug(f"Registered instance for {describe_key(key)}")
        return self

    def resolve(self, key: ServiceKey) -> Any:
        """Resolve a service instance."""
        registration = self._services.get(key)
        if registration is None:
            raise ServiceNotRegisteredException(key)

        # Return existing singleton instance
        if registration.is_singleton and registration.has_instance:
            return registration.instance

        self._enter(key)
        try:
            instance = registration.factory(self)
        except KernelError:
            raise
        except Exception as e:
            raise ServiceResolutionException(
                f"Failed to resolve {describe_key(key)}: {e}") from e
        finally:
            self._leave()

        if registration.is_singleton:
            registration.store(instance)

        return instance

    def try_resolve(self, key: ServiceKey) -> Optional[Any]:
        """Try to resolve a service instance without raising exceptions."""
        try:
            return self.resolve(key)
        except KernelError:
            return None

    def has(self, key: ServiceKey) -> bool:
        """Check whether a service is registered under the given key."""
        return key in self._services

    def make(self, cls: Type[T]) -> T:
        """
        Instantiate a class with automatic dependency injection.

        Unlike resolve(), this does not require prior registration.
        Registered dependencies are pulled from the container; unregistered
        classes are built with make() as well.
        """
        if not inspect.isclass(cls):
            raise ServiceResolutionException(f"Cannot make {cls!r}: not a class")

        self._enter(cls)
        try:
            args, kwargs = self._collect_arguments(cls, build_missing=True)
            return self._construct(cls, args, kwargs)
        finally:
            self._leave()

    def get_registrations(self) -> Dict[ServiceKey, ServiceRegistration]:
        """Get all service registrations (for debugging)."""
        return self._services.copy()

    def _to_factory(self, key: ServiceKey,
                    factory: Optional[Union[Factory, Type[Any]]]) -> Factory:
        """Turn whatever was registered into a factory taking the container."""
        if factory is None:
            if not inspect.isclass(key):
                raise TypeError(
                    f"A factory is required when registering {describe_key(key)}")
            return self._class_factory(key)

        if inspect.isclass(factory):
            return self._class_factory(factory)

        if not callable(factory):
            raise TypeError(
                f"Factory for {describe_key(key)} must be callable, got {factory!r}")

        return factory

    def _class_factory(self, cls: Type[Any]) -> Factory:
        """Create a factory that builds ``cls`` from registered dependencies."""
        def factory(container: 'Container') -> Any:
            args, kwargs = container._collect_arguments(cls, build_missing=False)
            return container._construct(cls, args, kwargs)

        factory.__qualname__ = f"class_factory[{cls.__name__}]"
        return factory

    def _collect_arguments(self, cls: Type[Any],
                           build_missing: bool) -> Tuple[List[Any], Dict[str, Any]]:
        """Resolve the constructor arguments of ``cls``."""
        try:
            dependencies = get_dependencies(cls)
        except TypeError as e:
            raise ServiceResolutionException(str(e)) from e

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}

        for dependency in dependencies:
            if self.has(dependency.key):
                value = self.resolve(dependency.key)
            elif dependency.optional:
                continue
            elif build_missing and inspect.isclass(dependency.key):
                value = self.make(dependency.key)
            else:
                raise ServiceNotRegisteredException(dependency.key)

            if dependency.parameter is None:
                args.append(value)
            else:
                kwargs[dependency.parameter] = value

        return args, kwargs

    def _construct(self, cls: Type[T], args: List[Any], kwargs: Dict[str, Any]) -> T:
        try:
            return cls(*args, **kwargs)
        except KernelError:
            raise
        except Exception as e:
            hint = "" if is_injectable(cls) else " (class is not marked @injectable)"
            raise ServiceResolutionException(
                f"Failed to construct {cls.__name__}{hint}: {e}") from e

    def _enter(self, key: Any) -> None:
        if key in self._resolution_stack:
            chain = [describe_key(k) for k in self._resolution_stack] + [describe_key(key)]
            raise CircularDependencyException(
                f"Circular dependency detected: {' -> '.join(chain)}", chain)
        self._resolution_stack.append(key)

    def _leave(self) -> None:
        self._resolution_stack.pop()
