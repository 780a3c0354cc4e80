"""
Strav Kernel - dependency injection container and application lifecycle orchestrator.

This package provides the service container, the service-provider contract,
the application orchestrator that boots providers in dependency order and
shuts them down in reverse, and the async event emitter used to publish
lifecycle transitions.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.events import LifecycleEvent
from .core.exceptions import (
    KernelError,
    ServiceNotRegisteredException,
    ServiceResolutionException,
    CircularDependencyException,
    DuplicateProviderException,
    UnknownDependencyException,
    ApplicationStateException,
)
from .core.interfaces.lifecycle import ServiceProvider
from .core.services.event_bus import EventEmitter
from .application.container import Container, IContainer, ServiceLifetime
from .application.inject import injectable
from .application.application import Application, ApplicationState

__all__ = [
    "LifecycleEvent",
    "KernelError",
    "ServiceNotRegisteredException",
    "ServiceResolutionException",
    "CircularDependencyException",
    "DuplicateProviderException",
    "UnknownDependencyException",
    "ApplicationStateException",
    "ServiceProvider",
    "EventEmitter",
    "Container",
    "IContainer",
    "ServiceLifetime",
    "injectable",
    "Application",
    "ApplicationState",
]
