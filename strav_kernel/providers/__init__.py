"""
Built-in service providers and provider loading helpers.
"""

from .config_provider import ConfigProvider
from .logger_provider import LoggerProvider
from .loader import load_provider, load_providers

__all__ = [
    "ConfigProvider",
    "LoggerProvider",
    "load_provider",
    "load_providers",
]
