"""Normalized traffic entries and the sink they are handed to."""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from studio_observability.formatter import format_timestamp

REQUEST = "request"
RESPONSE = "response"
ERROR = "error"


def _new_id() -> str:
    return f"log_{uuid.uuid4().hex}"


def _now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


@dataclass(frozen=True)
class TrafficEntry:
    kind: str
    operation_name: str
    method: str
    url: str
    correlation_id: str
    status: int | None = None
    duration_ms: int | None = None
    request_body: Any = None
    request_headers: dict[str, str] | None = None
    response_body: Any = None
    response_headers: dict[str, str] | None = None
    error_message: str | None = None
    id: str = field(default_factory=_new_id)
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ErrorDetails:
    message: str | None = None
    code: str | int | None = None
    errors: list | None = None


class TrafficSink(Protocol):
    """Append-only consumer of traffic entries."""

    def add_log(self, entry: TrafficEntry) -> None:
        ...
