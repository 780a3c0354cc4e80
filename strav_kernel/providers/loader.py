"""
Provider loading from import paths.

Lets configuration files name providers as ``"package.module:ClassName"``
(or ``"package.module.ClassName"``) instead of requiring code changes.
"""

import importlib
import inspect
import logging
from typing import Iterable, List

from ..core.interfaces.lifecycle import ServiceProvider

logger = logging.getLogger(__name__)


def load_provider(path: str) -> ServiceProvider:
    """
    Import and instantiate a provider class.

    Args:
        path: Import path of a ServiceProvider subclass

    Returns:
        A new provider instance

    Raises:
        ValueError: If the path cannot be imported or does not name a provider
    """
    module_name, _, attr_name = path.partition(':')
    if not attr_name:
        module_name, _, attr_name = path.rpartition('.')
    if not module_name or not attr_name:
        raise ValueError(f"Invalid provider path: {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import provider module {module_name!r}: {e}") from e

    target = getattr(module, attr_name, None)
    if target is None:
        raise ValueError(f"Module {module_name!r} has no attribute {attr_name!r}")

    if not (inspect.isclass(target) and issubclass(target, ServiceProvider)):
        raise ValueError(f"{path!r} is not a ServiceProvider subclass")

    try:
        provider = target()
    except TypeError as e:
        raise ValueError(f"Cannot instantiate provider {path!r}: {e}") from e

    logger.debug(f"Loaded provider {provider.name!r} from {path}")
    return provider


def load_providers(paths: Iterable[str]) -> List[ServiceProvider]:
    """Load every provider in ``paths``, in order."""
    return [load_provider(path) for path in paths]
