"""Logger configuration loaded from environment variables."""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_FALSE_VALUES = ("false", "0", "no", "off")


def _parse_bool(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _parse_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class LoggerConfig:
    folder: str = "./logs"
    level: str = "INFO"
    console_enabled: bool = True
    file_enabled: bool = True
    max_size: int = 10 * 1024 * 1024  # 10 MiB
    retention_days: int = 7
    app_name: str = "studio"
    sweep_chance: float = 0.01


@dataclass(frozen=True)
class RetentionPolicy:
    max_age_days: int = 7


def load_config() -> LoggerConfig:
    """Build LoggerConfig from environment variables with sensible defaults."""
    # LOG_FOLDER takes precedence over LOGS_PATH
    folder = os.environ.get("LOG_FOLDER") or os.environ.get("LOGS_PATH") or LoggerConfig.folder

    level = os.environ.get("LOG_LEVEL", LoggerConfig.level).strip().upper()
    if level not in ("DEBUG", "INFO", "WARN", "ERROR"):
        logger.warning("Unknown LOG_LEVEL %r, using INFO", level)
        level = "INFO"

    return LoggerConfig(
        folder=folder,
        level=level,
        console_enabled=_parse_bool(os.environ.get("LOG_CONSOLE")),
        file_enabled=_parse_bool(os.environ.get("LOG_FILE")),
        max_size=_parse_int("LOG_MAX_SIZE", LoggerConfig.max_size),
        retention_days=_parse_int("LOG_RETENTION", LoggerConfig.retention_days),
        app_name=os.environ.get("LOG_APP_NAME", LoggerConfig.app_name),
    )
