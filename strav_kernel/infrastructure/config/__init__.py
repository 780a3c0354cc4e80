"""
Configuration management infrastructure.

This module provides configuration loading and validation for the kernel
runtime.
"""

from .models import ApplicationConfig, LoggingConfig
from .loader import ConfigLoader

__all__ = [
    "ApplicationConfig",
    "LoggingConfig",
    "ConfigLoader",
]
