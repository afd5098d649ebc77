"""Generic-call interception: httpx transports that record every request they carry."""

import logging
import time
from dataclasses import dataclass, field

import httpx

from studio_observability.traffic.api_logger import (
    ApiLogger,
    extract_error_message,
    is_graphql_request,
    new_correlation_id,
    normalize_body,
    normalize_headers,
)
from studio_observability.traffic.models import ErrorDetails, TrafficSink

logger = logging.getLogger(__name__)


@dataclass
class _Call:
    """Per-call context captured before dispatch."""

    method: str
    url: str
    correlation_id: str = field(default_factory=new_correlation_id)
    started: float = field(default_factory=time.perf_counter)

    def elapsed_ms(self) -> int:
        return round((time.perf_counter() - self.started) * 1000)


class _Capture:
    def __init__(self, api_logger: ApiLogger):
        self._api = api_logger

    def _begin(self, request: httpx.Request) -> _Call | None:
        """Record the request entry. Returns None for GraphQL calls, which are left alone."""
        url = str(request.url)
        try:
            body = normalize_body(request.content)
        except httpx.RequestNotRead:
            body = None
        if is_graphql_request(url, body):
            return None

        call = _Call(request.method, url)
        self._api.log_rest_request(call.method, url, body, normalize_headers(request.headers),
                                   correlation_id=call.correlation_id)
        return call

    def _settle(self, call: _Call, response: httpx.Response) -> None:
        duration = call.elapsed_ms()
        try:
            data = normalize_body(response.text)
            status = response.status_code

            if response.is_success:
                errors = data.get("errors") if isinstance(data, dict) else None
                if isinstance(errors, list) and errors:
                    # Transport succeeded, application did not
                    details = ErrorDetails(
                        message=extract_error_message(data) or "Unknown error",
                        code=status,
                        errors=errors,
                    )
                    self._api.log_rest_error(call.method, call.url, details, status, duration,
                                             data, correlation_id=call.correlation_id)
                else:
                    self._api.log_rest_response(call.method, call.url, data, status, duration,
                                                response.headers, correlation_id=call.correlation_id)
                return

            message = extract_error_message(data) or response.reason_phrase or f"HTTP {status}"
            logger.warning("HTTP error (%d) from %s %s: %s", status, call.method, call.url, message)
            if isinstance(data, dict) and isinstance(data.get("errors"), list):
                errors = data["errors"]
            else:
                errors = [data]
            details = ErrorDetails(message=message, code=status, errors=errors)
            self._api.log_rest_error(call.method, call.url, details, status, duration,
                                     data, correlation_id=call.correlation_id)
        except Exception:
            logger.exception("Failed to record response for %s %s", call.method, call.url)

    def _fail(self, call: _Call, exc: Exception) -> None:
        duration = call.elapsed_ms()
        details = ErrorDetails(message=str(exc) or type(exc).__name__, code=getattr(exc, "code", None))
        self._api.log_rest_error(call.method, call.url, details, 0, duration,
                                 correlation_id=call.correlation_id)


class CapturingAsyncTransport(_Capture, httpx.AsyncBaseTransport):
    """Wraps an async transport; the wrapped call's outcome is passed through unchanged."""

    def __init__(self, api_logger: ApiLogger, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(api_logger)
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        call = self._begin(request)
        if call is None:
            return await self._transport.handle_async_request(request)

        try:
            response = await self._transport.handle_async_request(request)
            # Buffer the body so it can be recorded and still read by the caller
            await response.aread()
        except Exception as exc:
            self._fail(call, exc)
            raise

        self._settle(call, response)
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


class CapturingTransport(_Capture, httpx.BaseTransport):
    """Blocking counterpart of CapturingAsyncTransport for ``httpx.Client``."""

    def __init__(self, api_logger: ApiLogger, transport: httpx.BaseTransport | None = None):
        super().__init__(api_logger)
        self._transport = transport or httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        call = self._begin(request)
        if call is None:
            return self._transport.handle_request(request)

        try:
            response = self._transport.handle_request(request)
            response.read()
        except Exception as exc:
            self._fail(call, exc)
            raise

        self._settle(call, response)
        return response

    def close(self) -> None:
        self._transport.close()


class TrafficCapture:
    """Handle for generic-call capture.

    Application code builds its HTTP clients through this object instead of
    constructing ``httpx`` clients directly, so every call is observed.
    """

    def __init__(self, api_logger: ApiLogger):
        self.api_logger = api_logger

    def wrap(self, transport: httpx.AsyncBaseTransport | None = None) -> CapturingAsyncTransport:
        if isinstance(transport, CapturingAsyncTransport):
            return transport
        return CapturingAsyncTransport(self.api_logger, transport)

    def wrap_sync(self, transport: httpx.BaseTransport | None = None) -> CapturingTransport:
        if isinstance(transport, CapturingTransport):
            return transport
        return CapturingTransport(self.api_logger, transport)

    def async_client(self, transport: httpx.AsyncBaseTransport | None = None, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.wrap(transport), **kwargs)

    def client(self, transport: httpx.BaseTransport | None = None, **kwargs) -> httpx.Client:
        return httpx.Client(transport=self.wrap_sync(transport), **kwargs)


def install_interceptor(sink: TrafficSink) -> TrafficCapture:
    """Create the capture handle that feeds ``sink``."""
    return TrafficCapture(ApiLogger(sink))
