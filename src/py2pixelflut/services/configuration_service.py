"""
Configuration service for client settings.

Settings are read from a YAML file of the form::

    connection:
      ip: 127.0.0.1
      port: 1234
      timeout: null        # connect timeout in seconds
    buffering:
      buffer_size: 65536   # bytes, at least 32
      batch_limit: 1000    # 0 = unlimited pipelining
    logging:
      level: INFO

Every key is optional; missing keys fall back to the defaults above.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from py2pixelflut.core.errors import ConfigurationError
from py2pixelflut.core.protocol import MIN_BUFFER_SIZE
from py2pixelflut.models.connection import ConnectionConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ClientSettings:
    """
    Immutable client settings.

    Attributes:
        ip_address: Server IPv4 address
        port: Server port
        timeout: Connect timeout in seconds, None to block
        buffer_size: Size of the bulk operation buffer in bytes
        batch_limit: Maximum pipelined read requests in flight (0 = no limit)
        log_level: Logging level name
    """

    ip_address: str = "127.0.0.1"
    port: int = 1234
    timeout: Optional[float] = None
    buffer_size: int = 65536
    batch_limit: int = 1000
    log_level: str = "INFO"

    @property
    def connection(self) -> ConnectionConfig:
        return ConnectionConfig(self.ip_address, self.port, self.timeout)

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the settings.

        Returns:
            Tuple of (is_valid, list_of_error_messages)
        """
        _, errors = self.connection.validate()

        if not isinstance(self.buffer_size, int) or self.buffer_size < MIN_BUFFER_SIZE:
            errors.append(f"buffer_size must be an integer >= {MIN_BUFFER_SIZE}: {self.buffer_size}")

        if isinstance(self.batch_limit, bool) or not isinstance(self.batch_limit, int) or self.batch_limit < 0:
            errors.append(f"batch_limit must be a non-negative integer: {self.batch_limit}")

        if str(self.log_level).upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        return (len(errors) == 0, errors)


# YAML section -> {yaml key: ClientSettings field}
_SCHEMA = {
    'connection': {'ip': 'ip_address', 'port': 'port', 'timeout': 'timeout'},
    'buffering': {'buffer_size': 'buffer_size', 'batch_limit': 'batch_limit'},
    'logging': {'level': 'log_level'},
}


class ConfigurationService:
    """
    Loads ClientSettings from YAML files and plain dictionaries.

    Example:
        >>> service = ConfigurationService()
        >>> settings = service.load("pixelflut.yaml")
        >>> settings.batch_limit
        1000
    """

    def __init__(self, defaults: Optional[ClientSettings] = None):
        self.logger = logging.getLogger(__name__)
        self.defaults = defaults or ClientSettings()

    def load(self, path: Optional[Union[str, Path]]) -> ClientSettings:
        """
        Load settings from a YAML file.

        A missing file (or path None) yields the defaults.

        Raises:
            ConfigurationError: If the file cannot be read or parsed, or the
                                resulting settings are invalid
        """
        if path is None:
            return self.defaults

        path = Path(path)
        if not path.exists():
            self.logger.info(f"No configuration file at {path}, using defaults")
            return self.defaults

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to read configuration from {path}: {e}",
                cause=e,
                context={'file_path': str(path)}
            )

        self.logger.info(f"Loaded configuration from {path}")
        return self.from_dict(data or {})

    def from_dict(self, data: Dict[str, Any]) -> ClientSettings:
        """
        Build settings from a parsed configuration mapping.

        Raises:
            ConfigurationError: On unknown sections/keys or invalid values
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        updates: Dict[str, Any] = {}
        for section, values in data.items():
            if section not in _SCHEMA:
                raise ConfigurationError(f"Unknown configuration section: {section}", setting_name=section)
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigurationError(f"Section '{section}' must be a mapping", setting_name=section)
            for key, value in values.items():
                field_name = _SCHEMA[section].get(key)
                if field_name is None:
                    raise ConfigurationError(
                        f"Unknown setting: {section}.{key}",
                        setting_name=f"{section}.{key}"
                    )
                updates[field_name] = value

        settings = replace(self.defaults, **updates)
        return self.validate(settings)

    def apply_overrides(self, settings: ClientSettings, **overrides: Any) -> ClientSettings:
        """Return settings with every non-None override applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return settings
        return self.validate(replace(settings, **updates))

    def validate(self, settings: ClientSettings) -> ClientSettings:
        valid, errors = settings.validate()
        if not valid:
            for error in errors:
                self.logger.error(f"Invalid setting: {error}")
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(errors),
                context={'errors': errors}
            )
        return settings
