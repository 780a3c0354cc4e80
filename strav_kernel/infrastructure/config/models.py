"""
Configuration models and data structures.

This module defines the configuration models used by the kernel runtime,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

DEFAULT_SHUTDOWN_TIMEOUT = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = ("{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                   "{name}:{function}:{line} - {message}")
    log_directory: str = "logs"
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.level, str):
            raise ValueError(f"Log level must be a string, got {self.level!r}")
        self.level = self.level.upper()
        if self.level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level {self.level!r}, expected one of {', '.join(LOG_LEVELS)}")
        if not isinstance(self.backup_count, int) or isinstance(self.backup_count, bool):
            raise ValueError(f"backup_count must be an integer, got {self.backup_count!r}")
        if self.backup_count < 0:
            raise ValueError(f"backup_count must not be negative, got {self.backup_count}")


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Basic application settings
    name: str = "Strav"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    # Lifecycle settings
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT
    handle_signals: bool = True

    # Import paths ("package.module:Class") of providers loaded by the CLI
    providers: List[str] = field(default_factory=list)

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if isinstance(self.logging, dict):
            self.logging = LoggingConfig(**self.logging)
        self._validate_timeouts()

    def _validate_timeouts(self) -> None:
        """Validate timeout values."""
        if isinstance(self.shutdown_timeout, bool) or not isinstance(self.shutdown_timeout, (int, float)):
            raise ValueError(
                f"Shutdown timeout must be a number, got {self.shutdown_timeout!r}")
        if self.shutdown_timeout <= 0:
            raise ValueError(
                f"Shutdown timeout must be positive, got {self.shutdown_timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result = asdict(self)
        result.pop('config_file_path', None)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        defaults = cls.__dataclass_fields__
        unknown = set(data) - set(defaults)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        logging_section = data.get('logging') or {}
        if not isinstance(logging_section, dict):
            raise ValueError(f"Logging configuration must be a mapping, got {logging_section!r}")
        try:
            logging_config = LoggingConfig(**logging_section)
        except TypeError as e:
            raise ValueError(f"Invalid logging configuration: {e}") from e

        providers = data.get('providers') or []
        if not isinstance(providers, list) or not all(isinstance(p, str) for p in providers):
            raise ValueError(f"providers must be a list of import paths, got {providers!r}")

        shutdown_timeout = data.get('shutdown_timeout', DEFAULT_SHUTDOWN_TIMEOUT)
        try:
            shutdown_timeout = float(shutdown_timeout)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid shutdown_timeout {shutdown_timeout!r}") from e

        return cls(
            name=data.get('name', 'Strav'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            environment=data.get('environment', 'production'),
            shutdown_timeout=shutdown_timeout,
            handle_signals=data.get('handle_signals', True),
            providers=list(providers),
            logging=logging_config,
            config_file_path=data.get('config_file_path')
        )
