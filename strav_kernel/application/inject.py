"""
Injectable marker and constructor dependency analysis.

``@injectable`` marks a class as eligible for auto-wiring by the container.
The marker carries no behaviour of its own: dependencies are either supplied
explicitly with ``@injectable(dependencies=[...])`` or read from the
constructor's type hints.
"""

import inspect
import logging
import types
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar, Union, get_args, get_origin, get_type_hints, overload

logger = logging.getLogger(__name__)

T = TypeVar('T')

INJECTABLE_ATTR = '__strav_injectable__'
DEPENDENCIES_ATTR = '__strav_dependencies__'

# types.UnionType (X | None) only exists on Python 3.10+
UNION_TYPES = tuple(t for t in (Union, getattr(types, 'UnionType', None)) if t is not None)


@dataclass(frozen=True)
class Dependency:
    """One constructor dependency of an injectable class."""

    key: Any
    """Container key (type or string name) to resolve."""

    parameter: Optional[str] = None
    """Keyword name to pass it as, or None to pass it positionally."""

    optional: bool = False
    """True when the parameter has a default and may be left out."""


@overload
def injectable(target: Type[T]) -> Type[T]: ...


@overload
def injectable(target: None = None, *,
               dependencies: Optional[Sequence[Any]] = None) -> Callable[[Type[T]], Type[T]]: ...


def injectable(target: Optional[Type[T]] = None, *,
               dependencies: Optional[Sequence[Any]] = None) -> Union[Type[T], Callable[[Type[T]], Type[T]]]:
    """
    Mark a class as injectable.

    Works as ``@injectable``, ``@injectable()`` and
    ``@injectable(dependencies=[Database, "logger"])``. Explicit dependencies
    are resolved in order and passed positionally to the constructor.

    Example:
        @injectable
        class UserService:
            def __init__(self, db: Database, logger: Logger) -> None: ...

        container.singleton(Database)
        container.singleton(Logger)
        container.singleton(UserService)
        container.resolve(UserService)  # db and logger injected by type
    """
    def mark(cls: Type[T]) -> Type[T]:
        if not inspect.isclass(cls):
            raise TypeError(f"@injectable can only decorate classes, got {cls!r}")
        setattr(cls, INJECTABLE_ATTR, True)
        # Always set, so a subclass never inherits its parent's descriptor
        setattr(cls, DEPENDENCIES_ATTR,
                tuple(dependencies) if dependencies is not None else None)
        return cls

    if target is not None:
        return mark(target)
    return mark


def is_injectable(cls: Any) -> bool:
    """Check whether a class carries the injectable marker."""
    return inspect.isclass(cls) and bool(getattr(cls, INJECTABLE_ATTR, False))


def get_dependencies(cls: Type[Any]) -> List[Dependency]:
    """
    Return the constructor dependencies of an injectable class.

    Classes without the marker have no dependencies.
    """
    if not is_injectable(cls):
        return []

    explicit = cls.__dict__.get(DEPENDENCIES_ATTR)
    if explicit is not None:
        return [Dependency(key=key) for key in explicit]

    return _analyze_constructor(cls)


def _analyze_constructor(cls: Type[Any]) -> List[Dependency]:
    """Analyze constructor dependencies of a class from its type hints."""
    constructor = cls.__init__
    if constructor is object.__init__:
        return []

    signature = inspect.signature(constructor)
    try:
        type_hints = get_type_hints(constructor)
    except Exception as e:
        logger.warning(f"Failed to read type hints for {cls.__name__}: {e}")
        type_hints = {}

    dependencies = []
    for param_name, param in signature.parameters.items():
        if param_name == 'self':
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        param_type = type_hints.get(param_name, param.annotation)
        optional = param.default is not inspect.Parameter.empty

        if param_type is inspect.Parameter.empty:
            if optional:
                continue
            raise TypeError(
                f"Cannot auto-wire {cls.__name__}: parameter '{param_name}' has no type annotation")

        dependencies.append(Dependency(
            key=_unwrap_optional(param_type),
            parameter=param_name,
            optional=optional
        ))

    return dependencies


def _unwrap_optional(param_type: Any) -> Any:
    """Turn Optional[T] and T | None into T; leave every other annotation alone."""
    if get_origin(param_type) in UNION_TYPES:
        args = get_args(param_type)
        if len(args) == 2 and type(None) in args:
            return next(arg for arg in args if arg is not type(None))
    return param_type
