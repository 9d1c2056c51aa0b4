"""Configuration loading for the ski run recorder."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("default.yaml")


@dataclass(frozen=True)
class PollingConfig:
    active_interval_ms: int = 500  # while recording or paused
    idle_interval_ms: int = 2000

    @property
    def active_interval_s(self) -> float:
        return self.active_interval_ms / 1000.0

    @property
    def idle_interval_s(self) -> float:
        return self.idle_interval_ms / 1000.0


@dataclass(frozen=True)
class RecorderConfig:
    max_accuracy_m: float = 50.0  # reject fixes with worse horizontal accuracy
    max_speed_kmh: float = 150.0  # faster segments are GPS jumps
    stale_fix_sec: float = 5.0  # speed reads 0 after this long without a fix


@dataclass(frozen=True)
class StorageConfig:
    sessions_dir: str = "sessions"
    max_sessions: int = 100
    min_free_mb: float = 10.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    dir: str = "logs"
    file_logging: bool = False


@dataclass(frozen=True)
class AppConfig:
    polling: PollingConfig = field(default_factory=PollingConfig)
    recorder: RecorderConfig = field(default_factory=RecorderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_from_dict(data: Optional[Dict[str, Any]]) -> AppConfig:
    """Validate a raw mapping and build an AppConfig from it.

    Raises:
        ConfigError: If the mapping fails validation or cannot be converted
    """
    data = {} if data is None else data
    if not isinstance(data, dict):
        raise InvalidConfigError(f"Configuration root must be a mapping, got {type(data).__name__}")

    # Validate against JSON Schema (fills in defaults)
    validate_config(data)

    try:
        return AppConfig(
            polling=PollingConfig(**data["polling"]),
            recorder=RecorderConfig(**data["recorder"]),
            storage=StorageConfig(**data["storage"]),
            logging=LoggingConfig(**data["logging"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file (defaults to the bundled default.yaml)

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    logger.info(f"Loading configuration from {path}")
    if not path.exists():
        raise InvalidConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    config = config_from_dict(data)
    logger.info(
        f"Configuration loaded: polling {config.polling.active_interval_ms}/"
        f"{config.polling.idle_interval_ms}ms, keeping {config.storage.max_sessions} sessions"
    )
    return config


__all__ = [
    "AppConfig",
    "ConfigError",
    "LoggingConfig",
    "PollingConfig",
    "RecorderConfig",
    "StorageConfig",
    "config_from_dict",
    "load_config",
]
