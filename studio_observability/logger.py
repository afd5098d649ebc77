"""Leveled logger: terminal output first, then the durable file sink."""

import logging
import sys
from datetime import datetime, timezone

from studio_observability.config import LoggerConfig, load_config
from studio_observability.formatter import (
    LogLevel,
    LogRecord,
    format_entry,
    format_message,
    parse_level,
    should_emit,
)
from studio_observability.writer import LogWriter

logger = logging.getLogger(__name__)


class ServerLogger:
    """Process-wide logging handle.

    Holds the mutable threshold and the file sink. Build one explicitly at
    startup and pass it to whatever needs to log.
    """

    def __init__(self, config: LoggerConfig | None = None, writer: LogWriter | None = None,
                 stdout=None, stderr=None, time_func=None):
        self._config = config or load_config()
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._threshold = parse_level(self._config.level) or LogLevel.INFO
        self._writer = writer or LogWriter(self._config, time_func=self._time_func)
        self._stdout = stdout
        self._stderr = stderr

    def _record(self, level: LogLevel, parts) -> LogRecord | None:
        if not should_emit(level, self._threshold):
            return None
        return LogRecord(self._time_func(), level, format_message(parts))

    def _write_console(self, record: LogRecord) -> None:
        if not self._config.console_enabled:
            return
        if record.level >= LogLevel.WARN:
            stream = self._stderr or sys.stderr
        else:
            stream = self._stdout or sys.stdout
        line = format_entry(record.level, record.message, for_terminal=True,
                            timestamp=record.timestamp)
        try:
            print(line, file=stream, flush=True)
        except (OSError, ValueError) as e:
            logger.error("Failed to write to terminal: %s", e)

    async def log(self, level: LogLevel, *parts) -> None:
        record = self._record(level, parts)
        if record is None:
            return
        self._write_console(record)
        await self._writer.write(record.level, record.message, record.timestamp)

    def log_sync(self, level: LogLevel, *parts) -> None:
        """Print now and hand the file write off without waiting for it.

        Meant for shutdown paths: the terminal line is out even if the process
        exits before the file write lands.
        """
        record = self._record(level, parts)
        if record is None:
            return
        self._write_console(record)
        self._writer.write_nowait(record.level, record.message, record.timestamp)

    async def debug(self, *parts) -> None:
        await self.log(LogLevel.DEBUG, *parts)

    async def info(self, *parts) -> None:
        await self.log(LogLevel.INFO, *parts)

    async def warn(self, *parts) -> None:
        await self.log(LogLevel.WARN, *parts)

    async def error(self, *parts) -> None:
        await self.log(LogLevel.ERROR, *parts)

    def debug_sync(self, *parts) -> None:
        self.log_sync(LogLevel.DEBUG, *parts)

    def info_sync(self, *parts) -> None:
        self.log_sync(LogLevel.INFO, *parts)

    def warn_sync(self, *parts) -> None:
        self.log_sync(LogLevel.WARN, *parts)

    def error_sync(self, *parts) -> None:
        self.log_sync(LogLevel.ERROR, *parts)

    def set_level(self, name: str) -> bool:
        """Change the threshold. Unknown names leave it untouched."""
        level = parse_level(name)
        if level is None:
            logger.warning("Ignoring unknown log level %r", name)
            return False
        self._threshold = level
        self.info_sync(f"Log level set to {level.name}")
        return True

    def get_level(self) -> str:
        return self._threshold.name

    def get_stats(self) -> dict:
        return {
            "level": self.get_level(),
            "folder": self._config.folder,
            "folder_created": self._writer.folder_created,
            "folder_error": self._writer.folder_error,
            "console_enabled": self._config.console_enabled,
            "file_enabled": self._config.file_enabled,
            "max_size": self._config.max_size,
            "retention_days": self._config.retention_days,
        }

    async def flush(self) -> None:
        await self._writer.flush()
