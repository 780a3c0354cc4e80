"""
Configuration loading and saving utilities.

A kernel configuration comes from at most one YAML or JSON file, then
``STRAV_*`` environment variables override individual settings. Only the
top level and the ``logging`` section can be overridden from the
environment.
"""

import json
import os
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, NamedTuple, Optional, Tuple

import yaml

from .models import ApplicationConfig

LOGGING_SECTION = 'logging'


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ('true', '1', 'yes', 'on', 'enabled')


def parse_provider_list(value: str) -> List[str]:
    """Split ``STRAV_PROVIDERS``: comma separated import paths, blanks dropped."""
    return [item.strip() for item in value.split(',') if item.strip()]


class EnvOverride(NamedTuple):
    """One environment variable and the setting it replaces."""
    suffix: str
    section: Optional[str]
    key: str
    convert: Callable[[str], Any]


ENV_OVERRIDES: Tuple[EnvOverride, ...] = (
    EnvOverride("DEBUG", None, "debug", parse_bool),
    EnvOverride("ENVIRONMENT", None, "environment", str),
    EnvOverride("SHUTDOWN_TIMEOUT", None, "shutdown_timeout", float),
    EnvOverride("HANDLE_SIGNALS", None, "handle_signals", parse_bool),
    EnvOverride("PROVIDERS", None, "providers", parse_provider_list),
    EnvOverride("LOG_LEVEL", LOGGING_SECTION, "level", str),
    EnvOverride("LOG_DIR", LOGGING_SECTION, "log_directory", str),
)


def _read_yaml(stream: IO[str], file_path: str) -> Any:
    try:
        return yaml.safe_load(stream) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e


def _read_json(stream: IO[str], file_path: str) -> Any:
    try:
        return json.load(stream)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e


def _write_yaml(data: Dict[str, Any], stream: IO[str]) -> None:
    yaml.safe_dump(data, stream, default_flow_style=False, indent=2, sort_keys=False)


def _write_json(data: Dict[str, Any], stream: IO[str]) -> None:
    json.dump(data, stream, indent=2)


READERS: Dict[str, Callable[[IO[str], str], Any]] = {
    '.yaml': _read_yaml,
    '.yml': _read_yaml,
    '.json': _read_json,
}

WRITERS: Dict[str, Callable[[Dict[str, Any], IO[str]], None]] = {
    'yaml': _write_yaml,
    'json': _write_json,
}


class ConfigLoader:
    """Builds an ApplicationConfig from a file plus environment overrides."""

    def __init__(self, env_prefix: str = "STRAV_") -> None:
        self._env_prefix = env_prefix

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration from file and environment variables.

        Args:
            config_file: Path to configuration file (optional)

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file or an override is malformed
        """
        data = self._read_file(config_file) if config_file else {}
        data = self._apply_environment(data)

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "yaml") -> None:
        """Write ``config`` as YAML or JSON."""
        writer = WRITERS.get(format.lower())
        if writer is None:
            raise ValueError(f"Unsupported format: {format}")

        with open(file_path, 'w', encoding='utf-8') as f:
            writer(config.to_dict(), f)

    def _read_file(self, file_path: str) -> Dict[str, Any]:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        reader = READERS.get(path.suffix.lower())
        if reader is None:
            raise ValueError(f"Unsupported configuration file format: {path.suffix}")

        with open(path, 'r', encoding='utf-8') as f:
            data = reader(f, file_path)

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {file_path} must be a mapping")
        return data

    def _apply_environment(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with every set override applied."""
        result = dict(data)
        logging_section = result.get(LOGGING_SECTION)
        logging_overrides: Dict[str, Any] = {}

        for override in ENV_OVERRIDES:
            env_var = f"{self._env_prefix}{override.suffix}"
            raw = os.getenv(env_var)
            if raw is None:
                continue

            try:
                value = override.convert(raw)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {env_var}: {raw} ({e})") from e

            if override.section is None:
                result[override.key] = value
            else:
                logging_overrides[override.key] = value

        if logging_overrides:
            if logging_section is None:
                logging_section = {}
            # A non-mapping section is left for from_dict to reject
            if isinstance(logging_section, dict):
                result[LOGGING_SECTION] = {**logging_section, **logging_overrides}

        return result
