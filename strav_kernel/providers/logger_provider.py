"""
Logger provider.

Configures loguru sinks from the logging section of the resolved
configuration when the application boots.
"""

import logging
from typing import TYPE_CHECKING

from ..core.interfaces.lifecycle import ServiceProvider
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.logging.setup import setup_logging

if TYPE_CHECKING:
    from ..application.application import Application

logger = logging.getLogger(__name__)


class LoggerProvider(ServiceProvider):
    """Sets up logging once configuration is available."""

    name = "logger"
    dependencies = ["config"]

    async def boot(self, app: 'Application') -> None:
        config: ApplicationConfig = app.resolve(ApplicationConfig)
        setup_logging(config.logging)
        logger.info(f"Logging configured at level {config.logging.level}")
