from studio_observability.traffic.api_logger import ApiLogger
from studio_observability.traffic.graphql import (
    GraphQLClient,
    GraphQLLink,
    GraphQLLoggingLink,
    GraphQLResult,
    GraphQLTransportError,
)
from studio_observability.traffic.models import ErrorDetails, TrafficEntry, TrafficSink
from studio_observability.traffic.store import StoreSettings, TrafficLogStore
from studio_observability.traffic.transport import (
    CapturingAsyncTransport,
    CapturingTransport,
    TrafficCapture,
    install_interceptor,
)

__all__ = [
    "ApiLogger",
    "CapturingAsyncTransport",
    "CapturingTransport",
    "ErrorDetails",
    "GraphQLClient",
    "GraphQLLink",
    "GraphQLLoggingLink",
    "GraphQLResult",
    "GraphQLTransportError",
    "StoreSettings",
    "TrafficCapture",
    "TrafficEntry",
    "TrafficLogStore",
    "TrafficSink",
    "install_interceptor",
]
