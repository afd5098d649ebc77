"""Minimal GraphQL client whose requests run through a chain of links.

Links see every operation before it reaches the HTTP link at the end of the
chain, which is where GraphQLLoggingLink records request/response/error
entries for GraphQL traffic.
"""

import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable

import httpx

from studio_observability.traffic.api_logger import ApiLogger, new_correlation_id
from studio_observability.traffic.models import ErrorDetails


class GraphQLTransportError(Exception):
    """The operation never produced a GraphQL result (network failure, non-2xx, bad JSON)."""

    def __init__(self, message: str, status: int | None = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass
class GraphQLOperation:
    query: str
    variables: dict | None = None
    operation_name: str | None = None
    context: dict = field(default_factory=dict)


@dataclass
class GraphQLResult:
    data: Any = None
    errors: list | None = None
    status: int = 200
    extensions: dict | None = None


Forward = Callable[[GraphQLOperation], Awaitable[GraphQLResult]]


class GraphQLLink:
    """Pipeline stage. Subclasses override ``request`` and call ``forward``."""

    async def request(self, operation: GraphQLOperation, forward: Forward) -> GraphQLResult:
        return await forward(operation)


class HttpLink:
    """Terminal link: POSTs the operation as JSON."""

    def __init__(self, url: str, client: httpx.AsyncClient):
        self.url = url
        self._client = client

    async def request(self, operation: GraphQLOperation) -> GraphQLResult:
        payload = {"query": operation.query, "variables": operation.variables or {}}
        if operation.operation_name:
            payload["operationName"] = operation.operation_name

        try:
            response = await self._client.post(self.url, json=payload,
                                               headers=operation.context.get("headers"))
        except httpx.HTTPError as e:
            raise GraphQLTransportError(f"Network error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = f"Response not successful: Received status code {response.status_code}"
            raise GraphQLTransportError(message, status=response.status_code,
                                        body=body if body is not None else response.text)
        if not isinstance(body, dict):
            raise GraphQLTransportError("Response is not a GraphQL result object",
                                        status=response.status_code, body=response.text)

        return GraphQLResult(
            data=body.get("data"),
            errors=body.get("errors") or None,
            status=response.status_code,
            extensions=body.get("extensions"),
        )


class GraphQLLoggingLink(GraphQLLink):
    """Records one request entry and one response/error entry per operation."""

    def __init__(self, api_logger: ApiLogger):
        self._api = api_logger

    async def request(self, operation: GraphQLOperation, forward: Forward) -> GraphQLResult:
        query = operation.query
        url = operation.context.get("url")
        correlation_id = new_correlation_id()
        self._api.log_graphql_request(query, operation.variables, url, correlation_id=correlation_id)
        started = time.perf_counter()

        try:
            result = await forward(operation)
        except Exception as exc:
            duration = round((time.perf_counter() - started) * 1000)
            status = getattr(exc, "status", None) or getattr(exc, "status_code", None) or 500
            self._api.log_graphql_error(query, exc, duration, status, url, correlation_id=correlation_id)
            raise

        duration = round((time.perf_counter() - started) * 1000)
        if result.errors:
            self._api.log_graphql_error(query, ErrorDetails(errors=list(result.errors)), duration,
                                        result.status, url, correlation_id=correlation_id)
        else:
            self._api.log_graphql_response(query, result.data, duration, result.status, url,
                                           correlation_id=correlation_id)
        return result


class GraphQLClient:
    def __init__(self, url: str, http_client: httpx.AsyncClient, links=()):
        self.url = url
        self._links = list(links)
        self._terminal = HttpLink(url, http_client)

    async def execute(self, query: str, variables: dict | None = None,
                      operation_name: str | None = None, headers: dict | None = None) -> GraphQLResult:
        """Run one operation through the link chain.

        Results carrying GraphQL ``errors`` are returned, not raised; transport
        failures raise GraphQLTransportError.
        """
        operation = GraphQLOperation(
            query=query,
            variables=variables,
            operation_name=operation_name,
            context={"url": self.url, "headers": dict(headers or {})},
        )
        return await self._dispatch(operation, index=0)

    async def _dispatch(self, operation: GraphQLOperation, index: int) -> GraphQLResult:
        if index == len(self._links):
            return await self._terminal.request(operation)
        forward = partial(self._dispatch, index=index + 1)
        return await self._links[index].request(operation, forward)
