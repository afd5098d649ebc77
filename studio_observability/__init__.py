"""Durable rotating log sink and outbound traffic capture."""

from studio_observability.config import LoggerConfig, RetentionPolicy, load_config
from studio_observability.formatter import LogLevel, LogRecord
from studio_observability.logger import ServerLogger
from studio_observability.writer import LogWriter

__all__ = [
    "LogLevel",
    "LogRecord",
    "LogWriter",
    "LoggerConfig",
    "RetentionPolicy",
    "ServerLogger",
    "load_config",
]
