"""
Configuration provider.

Makes the loaded ApplicationConfig available through the container, both by
type and under the ``"config"`` name.
"""

from typing import TYPE_CHECKING, Optional

from ..core.interfaces.lifecycle import ServiceProvider
from ..infrastructure.config.models import ApplicationConfig

if TYPE_CHECKING:
    from ..application.application import Application


class ConfigProvider(ServiceProvider):
    """Binds the application configuration into the container."""

    name = "config"

    def __init__(self, config: Optional[ApplicationConfig] = None) -> None:
        self._config = config

    def register(self, app: 'Application') -> None:
        config = self._config if self._config is not None else app.config
        app.container.register_instance(ApplicationConfig, config)
        app.container.register_instance("config", config)
