"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
All settings are validated and have sensible defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any, Dict
import yaml
import logging

from dirsorter.utils.exceptions import ConfigurationError
from dirsorter.utils.logging_config import LoggingConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _as_float(data: Dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for '{key}': {value!r}",
            config_key=key,
            expected_type="float",
            cause=e
        )


def _as_int(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(
            f"Invalid value for '{key}': {value!r}",
            config_key=key,
            expected_type="int"
        )
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for '{key}': {value!r}",
            config_key=key,
            expected_type="int",
            cause=e
        )


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(
            f"Section '{key}' must be a mapping",
            config_key=key,
            expected_type="mapping"
        )
    return value


@dataclass
class WatcherConfig:
    """Filesystem watcher configuration.

    Attributes:
        target_directory: Directory to organize. Absolute, or relative to
                          the user's home directory.
        backload: Whether to sort files already present at startup.
        poll_interval: Seconds the event loop waits before checking that
                       the observer is still alive.
    """
    target_directory: str = "Downloads"
    backload: bool = True
    poll_interval: float = 1.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatcherConfig":
        """Create WatcherConfig from dictionary."""
        if not data:
            return cls()

        poll_interval = _as_float(data, "poll_interval", cls.poll_interval)
        if poll_interval <= 0:
            raise ConfigurationError(
                "poll_interval must be positive",
                config_key="poll_interval"
            )

        return cls(
            target_directory=str(data.get("target_directory", cls.target_directory)),
            backload=bool(data.get("backload", cls.backload)),
            poll_interval=poll_interval
        )


@dataclass
class RetryConfig:
    """Retry settings for transient filesystem failures.

    Attributes:
        max_retries: Extra attempts after a failed create/move. 0 disables.
        retry_delay: Delay in seconds between attempts.
    """
    max_retries: int = 0
    retry_delay: float = 0.5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryConfig":
        """Create RetryConfig from dictionary."""
        if not data:
            return cls()

        max_retries = _as_int(data, "max_retries", cls.max_retries)
        retry_delay = _as_float(data, "retry_delay", cls.retry_delay)
        if max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative", config_key="max_retries")
        if retry_delay < 0:
            raise ConfigurationError("retry_delay cannot be negative", config_key="retry_delay")

        return cls(max_retries=max_retries, retry_delay=retry_delay)


def logging_config_from_dict(data: Dict[str, Any]) -> LoggingConfig:
    """Create LoggingConfig from the ``logging`` section."""
    if not data:
        return LoggingConfig()

    level = str(data.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level: {level}",
            config_key="level",
            expected_type=" | ".join(LOG_LEVELS)
        )

    defaults = LoggingConfig()
    log_dir = data.get("log_dir")
    return LoggingConfig(
        level=level,
        log_dir=Path(log_dir).expanduser() if log_dir else defaults.log_dir,
        console_output=bool(data.get("console_output", defaults.console_output)),
        file_output=bool(data.get("file_output", defaults.file_output)),
        json_format=bool(data.get("json_format", defaults.json_format)),
        max_file_size=_as_int(data, "max_file_size", defaults.max_file_size),
        backup_count=_as_int(data, "backup_count", defaults.backup_count)
    )


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        config.yaml in the current directory.

        Returns:
            Config instance with loaded settings.

        Raises:
            ConfigurationError: If the file is not valid YAML or holds
                                invalid values.
        """
        if config_path is None:
            config_path = Path("config.yaml")

        if not config_path.exists():
            logger.warning(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise ConfigurationError(
                f"Failed to parse config file {config_path}",
                cause=e
            )
        except OSError as e:
            logger.error(f"Failed to load config file: {e}")
            raise ConfigurationError(
                f"Failed to read config file {config_path}",
                cause=e
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping",
                expected_type="mapping"
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            watcher=WatcherConfig.from_dict(_section(data, "watcher")),
            retry=RetryConfig.from_dict(_section(data, "retry")),
            logging=logging_config_from_dict(_section(data, "logging"))
        )
