"""Thread-safe in-memory store for captured traffic entries."""

import dataclasses
import json
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from studio_observability.formatter import format_timestamp
from studio_observability.traffic.models import ERROR, REQUEST, RESPONSE, TrafficEntry


@dataclass(frozen=True)
class StoreSettings:
    enabled: bool = True
    log_requests: bool = True
    log_responses: bool = True
    log_errors: bool = True
    log_headers: bool = True
    log_body: bool = True
    max_log_entries: int = 1000
    retention_days: int = 7


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TrafficLogStore:
    """Newest-first list of entries, capped by count and age."""

    def __init__(self, settings: StoreSettings | None = None, dedup_window_ms: int = 100, time_func=None):
        self._settings = settings or StoreSettings()
        self._dedup_window = timedelta(milliseconds=dedup_window_ms)
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))
        self._logs: list[TrafficEntry] = []
        self._lock = threading.Lock()

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    def update_settings(self, **changes) -> StoreSettings:
        with self._lock:
            self._settings = dataclasses.replace(self._settings, **changes)
            return self._settings

    def _accepts(self, kind: str) -> bool:
        s = self._settings
        if not s.enabled:
            return False
        return {REQUEST: s.log_requests, RESPONSE: s.log_responses, ERROR: s.log_errors}.get(kind, True)

    def _is_duplicate(self, entry: TrafficEntry, at: datetime) -> bool:
        for existing in self._logs:
            if (existing.correlation_id == entry.correlation_id
                    and existing.kind == entry.kind
                    and existing.operation_name == entry.operation_name
                    and existing.method == entry.method
                    and existing.url == entry.url
                    and abs(_parse_ts(existing.timestamp) - at) < self._dedup_window):
                return True
        return False

    def add_log(self, entry: TrafficEntry) -> bool:
        """Store an entry. Returns False if it was filtered out or a duplicate."""
        with self._lock:
            if not self._accepts(entry.kind):
                return False

            s = self._settings
            if not s.log_headers:
                entry = dataclasses.replace(entry, request_headers=None, response_headers=None)
            if not s.log_body:
                entry = dataclasses.replace(entry, request_body=None, response_body=None)

            at = _parse_ts(entry.timestamp)
            if self._is_duplicate(entry, at):
                return False

            cutoff = self._time_func() - timedelta(days=s.retention_days)
            logs = [entry] + self._logs[: s.max_log_entries - 1]
            self._logs = [e for e in logs if _parse_ts(e.timestamp) > cutoff]
            return True

    def get_logs(self) -> list[TrafficEntry]:
        with self._lock:
            return list(self._logs)

    def get_filtered_logs(self, kind: str | None = None, operation: str | None = None,
                          start: datetime | None = None, end: datetime | None = None) -> list[TrafficEntry]:
        """Filter by kind, case-insensitive operation substring and time range."""
        with self._lock:
            logs = list(self._logs)
        result = []
        for entry in logs:
            if kind and entry.kind != kind:
                continue
            if operation and operation.lower() not in entry.operation_name.lower():
                continue
            ts = _parse_ts(entry.timestamp)
            if start and ts < start:
                continue
            if end and ts > end:
                continue
            result.append(entry)
        return result

    def clear_logs(self) -> None:
        with self._lock:
            self._logs.clear()

    def export_logs(self, path: str) -> str:
        """Write all entries as a JSON array. ``path`` may be a directory."""
        if os.path.isdir(path):
            stamp = format_timestamp(self._time_func()).replace(":", "-").replace(".", "-")
            path = os.path.join(path, f"traffic-logs-{stamp}.json")
        with self._lock:
            data = [e.to_dict() for e in self._logs]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        return path
