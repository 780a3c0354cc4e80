"""
Application layer containing dependency injection and lifecycle orchestration.

This layer wires providers into the container and drives their register,
boot and shutdown phases.
"""

from .container import Container, IContainer, ServiceLifetime, ServiceRegistration
from .inject import injectable, is_injectable, get_dependencies
from .application import Application, ApplicationState, ProviderDescriptor

__all__ = [
    "Container",
    "IContainer",
    "ServiceLifetime",
    "ServiceRegistration",
    "injectable",
    "is_injectable",
    "get_dependencies",
    "Application",
    "ApplicationState",
    "ProviderDescriptor",
]
