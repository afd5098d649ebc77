"""Builds normalized traffic entries for REST and GraphQL calls."""

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass

import httpx

from studio_observability.operation_names import resolve_from_path, resolve_from_query
from studio_observability.traffic.models import (
    ERROR,
    REQUEST,
    RESPONSE,
    ErrorDetails,
    TrafficEntry,
    TrafficSink,
)

logger = logging.getLogger(__name__)

GRAPHQL_OPERATION = "GraphQL Operation"
DEFAULT_GRAPHQL_URL = "/api/graphql"
JSON_HEADERS = {"Content-Type": "application/json"}


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def normalize_body(body):
    """Structured value when the body parses to an object/array, raw text otherwise."""
    if body is None or isinstance(body, (dict, list)):
        return body
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return body
    if not body:
        return None
    try:
        parsed = json.loads(body)
    except ValueError:
        return body
    return parsed if isinstance(parsed, (dict, list)) else body


def normalize_headers(headers) -> dict[str, str]:
    """Flatten httpx.Headers, a mapping or a sequence of pairs into a plain dict.

    Header names keep their original case.
    """
    if headers is None:
        return {}
    if isinstance(headers, httpx.Headers):
        enc = headers.encoding
        return {k.decode(enc): v.decode(enc) for k, v in headers.raw}
    if isinstance(headers, Mapping):
        return {str(k): str(v) for k, v in headers.items()}
    return {str(k): str(v) for k, v in headers}


def is_graphql_request(url: str, body) -> bool:
    return "/graphql" in url or (isinstance(body, dict) and "query" in body)


def extract_error_message(data) -> str | None:
    """Pull a message out of ``{"message": ...}`` or ``{"errors": [{"message": ...}]}``."""
    if not isinstance(data, dict):
        return None
    if "message" in data:
        return str(data["message"])
    errors = data.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and "message" in first:
            return str(first["message"])
    return None


def _error_payload(error):
    if isinstance(error, ErrorDetails) or is_dataclass(error):
        return {k: v for k, v in asdict(error).items() if v is not None}
    if isinstance(error, BaseException):
        return {"message": str(error), "type": type(error).__name__}
    return error


def describe_error(error, status: int) -> str:
    """``[<code>] <message>`` for an exception, ErrorDetails or mapping."""
    if isinstance(error, ErrorDetails):
        message = error.message or extract_error_message({"errors": error.errors})
        code = error.code
    elif isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        code = getattr(error, "code", None)
    elif isinstance(error, Mapping):
        message = extract_error_message(error)
        code = error.get("code")
    else:
        message, code = None, None

    if not message:
        try:
            message = json.dumps(_error_payload(error), default=str) if error is not None else None
        except (TypeError, ValueError):
            message = str(error)
    return f"[{code or status}] {message or 'Unknown error'}"


class ApiLogger:
    """Entry points for recording traffic. Every method hands one entry to the sink."""

    def __init__(self, sink: TrafficSink):
        self._sink = sink

    def _emit(self, entry: TrafficEntry) -> TrafficEntry:
        try:
            self._sink.add_log(entry)
        except Exception:
            logger.exception("Traffic sink rejected %s entry for %s", entry.kind, entry.operation_name)
        return entry

    # GraphQL

    def log_graphql_request(self, query: str, variables: dict | None = None, url: str | None = None,
                            correlation_id: str | None = None) -> TrafficEntry:
        return self._emit(TrafficEntry(
            kind=REQUEST,
            operation_name=resolve_from_query(query, GRAPHQL_OPERATION),
            method="POST",
            url=url or DEFAULT_GRAPHQL_URL,
            correlation_id=correlation_id or new_correlation_id(),
            request_body={"query": query, "variables": variables},
            request_headers=dict(JSON_HEADERS),
        ))

    def log_graphql_response(self, query: str, response_data, duration_ms: int, status: int = 200,
                             url: str | None = None, correlation_id: str | None = None) -> TrafficEntry:
        return self._emit(TrafficEntry(
            kind=RESPONSE,
            operation_name=resolve_from_query(query, GRAPHQL_OPERATION),
            method="POST",
            url=url or DEFAULT_GRAPHQL_URL,
            correlation_id=correlation_id or new_correlation_id(),
            status=status,
            duration_ms=duration_ms,
            response_body=normalize_body(response_data),
            response_headers=dict(JSON_HEADERS),
        ))

    def log_graphql_error(self, query: str, error, duration_ms: int, status: int = 500,
                          url: str | None = None, correlation_id: str | None = None) -> TrafficEntry:
        errors = getattr(error, "errors", None)
        if not isinstance(errors, list):
            errors = [_error_payload(error)]
        return self._emit(TrafficEntry(
            kind=ERROR,
            operation_name=resolve_from_query(query, GRAPHQL_OPERATION),
            method="POST",
            url=url or DEFAULT_GRAPHQL_URL,
            correlation_id=correlation_id or new_correlation_id(),
            status=status,
            duration_ms=duration_ms,
            error_message=describe_error(error, status),
            request_body={"query": query[:500]},
            response_body={"errors": errors},
        ))

    # REST

    def log_rest_request(self, method: str, url: str, body=None, headers=None,
                         correlation_id: str | None = None) -> TrafficEntry:
        return self._emit(TrafficEntry(
            kind=REQUEST,
            operation_name=resolve_from_path(url, method),
            method=method,
            url=url,
            correlation_id=correlation_id or new_correlation_id(),
            request_body=normalize_body(body),
            request_headers=normalize_headers(headers),
        ))

    def log_rest_response(self, method: str, url: str, response_data, status: int, duration_ms: int,
                          headers=None, correlation_id: str | None = None) -> TrafficEntry:
        return self._emit(TrafficEntry(
            kind=RESPONSE,
            operation_name=resolve_from_path(url, method),
            method=method,
            url=url,
            correlation_id=correlation_id or new_correlation_id(),
            status=status,
            duration_ms=duration_ms,
            response_body=normalize_body(response_data),
            response_headers=normalize_headers(headers),
        ))

    def log_rest_error(self, method: str, url: str, error, status: int, duration_ms: int,
                       response_data=None, correlation_id: str | None = None) -> TrafficEntry:
        error_message = describe_error(error, status)
        body = normalize_body(response_data)
        return self._emit(TrafficEntry(
            kind=ERROR,
            operation_name=resolve_from_path(url, method),
            method=method,
            url=url,
            correlation_id=correlation_id or new_correlation_id(),
            status=status,
            duration_ms=duration_ms,
            error_message=error_message,
            response_body=body if body is not None else {"error": error_message},
        ))
