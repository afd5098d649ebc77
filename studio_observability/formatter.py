"""Level filtering and line formatting, plain for files and ANSI-colored for terminals."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3


# ANSI color codes
COLORS = {
    LogLevel.DEBUG: "\033[36m",  # cyan
    LogLevel.INFO: "\033[32m",   # green
    LogLevel.WARN: "\033[33m",   # yellow
    LogLevel.ERROR: "\033[31m",  # red
}
TIMESTAMP_COLOR = "\033[90m"  # gray
BOLD = "\033[1m"
RESET = "\033[0m"


@dataclass(frozen=True)
class LogRecord:
    timestamp: datetime
    level: LogLevel
    message: str


def parse_level(name) -> LogLevel | None:
    """Return the LogLevel for a case-insensitive name, or None if unknown."""
    if isinstance(name, LogLevel):
        return name
    try:
        return LogLevel[str(name).strip().upper()]
    except KeyError:
        return None


def should_emit(level: LogLevel, threshold: LogLevel) -> bool:
    return level >= threshold


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    ts = ts.astimezone(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _format_part(part) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, BaseException):
        return f"{type(part).__name__}: {part}"
    try:
        return json.dumps(part, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(part)


def format_message(parts) -> str:
    """Join message parts with single spaces, serializing non-strings."""
    return " ".join(_format_part(p) for p in parts)


def format_entry(level: LogLevel, message: str, for_terminal: bool = False,
                 timestamp: datetime | None = None) -> str:
    """Render ``<timestamp> [<LEVEL>] <message>``.

    The terminal variant wraps the timestamp in gray and the level tag in the
    level's color. Files always get the plain variant.
    """
    ts = format_timestamp(timestamp or datetime.now(timezone.utc))
    tag = f"[{level.name.ljust(5)}]"
    if not for_terminal:
        return f"{ts} {tag} {message}"
    color = COLORS.get(level, RESET)
    return f"{TIMESTAMP_COLOR}{ts}{RESET} {color}{BOLD}{tag}{RESET} {message}"
