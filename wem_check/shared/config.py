"""Configuration loader for the WEM debug mode check."""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.yaml"


class RegistryConfig(BaseModel):
    """Location of the debug mode flag."""

    hive: str = "HKLM"
    key_path: str = r"SYSTEM\CurrentControlSet\Control\Norskale\Infrastructure Services"
    value_name: str = "BrokerServiceDebugMode"


class EventLogConfig(BaseModel):
    """Event log query settings."""

    log_name: str = "WEM Infrastructure Service"
    # PowerShell -like wildcard, matched against the whole message
    message_pattern: str = "LICENSING: LS indicates WEM is LAS Activated.*"
    limit: int = Field(default=5, ge=1)


class LoggingConfig(BaseModel):
    """Diagnostic logging (stderr)."""

    level: str = "WARNING"


class AppConfig(BaseModel):
    """Root application configuration."""

    registry: RegistryConfig = RegistryConfig()
    event_log: EventLogConfig = EventLogConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml. Defaults to the repository root.

    Returns:
        Parsed AppConfig object. Missing file or empty file gives the defaults.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return AppConfig()

    with open(config_path, encoding="utf-8") as f:
        data: Optional[dict[str, Any]] = yaml.safe_load(f)

    return AppConfig(**(data or {}))


# Singleton config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or load the application configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
