"""
Exception hierarchy for the kernel.

Every error raised by the container or the application orchestrator derives
from KernelError, so callers can catch any kernel failure with a single clause.
"""

from typing import Any, Iterable, List


def describe_key(key: Any) -> str:
    """Render a container key (string name or type) for error messages."""
    if isinstance(key, str):
        return f'"{key}"'
    return getattr(key, '__name__', repr(key))


class KernelError(Exception):
    """Base class for all kernel errors."""
    pass


class RegistrationException(KernelError):
    """Raised on registration conflicts."""
    pass


class ServiceNotRegisteredException(RegistrationException):
    """Raised when trying to resolve an unregistered service."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Service {describe_key(key)} is not registered")


class DuplicateProviderException(RegistrationException):
    """Raised when two providers share a name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Duplicate provider name: "{name}"')


class DependencyGraphException(KernelError):
    """Raised when the provider dependency graph cannot be ordered."""
    pass


class UnknownDependencyException(DependencyGraphException):
    """Raised when a provider depends on a provider that was never added."""

    def __init__(self, provider: str, dependency: str) -> None:
        self.provider = provider
        self.dependency = dependency
        super().__init__(
            f'Provider "{provider}" depends on "{dependency}", which is not registered.')


class CircularDependencyException(DependencyGraphException):
    """
    Raised when circular dependencies are detected.

    Used both for the provider graph, where ``names`` holds the providers that
    could not be sorted, and for container construction chains, where
    ``names`` holds the chain that re-entered itself.
    """

    def __init__(self, message: str, names: Iterable[str]) -> None:
        self.names: List[str] = list(names)
        super().__init__(message)


class ServiceResolutionException(KernelError):
    """Raised when service resolution fails."""
    pass


class ApplicationStateException(KernelError):
    """Raised when an operation is not valid in the application's current state."""
    pass
