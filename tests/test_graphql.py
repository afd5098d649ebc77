"""Tests for the GraphQL client pipeline and its logging link."""

import json

import httpx
import pytest

from studio_observability.traffic.api_logger import ApiLogger
from studio_observability.traffic.graphql import (
    GraphQLClient,
    GraphQLLink,
    GraphQLLoggingLink,
    GraphQLTransportError,
)
from studio_observability.traffic.transport import install_interceptor

URL = "http://studio.test/api/graphql"
QUERY = "query GetWorkflows { workflows { name } }"


class ListSink:
    def __init__(self):
        self.entries = []

    def add_log(self, entry):
        self.entries.append(entry)


@pytest.fixture
def sink():
    return ListSink()


def _graphql_client(sink, handler):
    capture = install_interceptor(sink)
    http_client = capture.async_client(transport=httpx.MockTransport(handler))
    client = GraphQLClient(URL, http_client, links=[GraphQLLoggingLink(capture.api_logger)])
    return client, http_client


@pytest.mark.asyncio
async def test_successful_operation_logged_once(sink):
    def handler(request):
        payload = json.loads(request.content)
        assert payload["query"] == QUERY
        assert payload["variables"] == {"limit": 10}
        return httpx.Response(200, json={"data": {"workflows": [{"name": "wf1"}]}})

    client, http_client = _graphql_client(sink, handler)
    async with http_client:
        result = await client.execute(QUERY, {"limit": 10})

    assert result.data == {"workflows": [{"name": "wf1"}]}
    assert result.errors is None
    # The generic interceptor defers to the logging link: no duplicates
    assert [e.kind for e in sink.entries] == ["request", "response"]
    request, response = sink.entries
    assert request.operation_name == "GetWorkflows"
    assert request.url == URL
    assert request.request_body == {"query": QUERY, "variables": {"limit": 10}}
    assert response.status == 200
    assert response.response_body == {"workflows": [{"name": "wf1"}]}
    assert request.correlation_id == response.correlation_id


@pytest.mark.asyncio
async def test_result_errors_logged_as_error(sink):
    def handler(request):
        return httpx.Response(200, json={"data": None, "errors": [{"message": "x"}]})

    client, http_client = _graphql_client(sink, handler)
    async with http_client:
        result = await client.execute("query Broken { nope }")

    assert result.errors == [{"message": "x"}]
    assert [e.kind for e in sink.entries] == ["request", "error"]
    error = sink.entries[1]
    assert error.status == 200
    assert error.operation_name == "Broken"
    assert error.error_message == "[200] x"
    assert error.response_body == {"errors": [{"message": "x"}]}


@pytest.mark.asyncio
async def test_http_failure_logged_and_raised(sink):
    def handler(request):
        return httpx.Response(503, text="unavailable")

    client, http_client = _graphql_client(sink, handler)
    async with http_client:
        with pytest.raises(GraphQLTransportError) as exc_info:
            await client.execute(QUERY)

    assert exc_info.value.status == 503
    assert exc_info.value.body == "unavailable"
    assert [e.kind for e in sink.entries] == ["request", "error"]
    assert sink.entries[1].status == 503


@pytest.mark.asyncio
async def test_network_failure_defaults_to_500(sink):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client, http_client = _graphql_client(sink, handler)
    async with http_client:
        with pytest.raises(GraphQLTransportError) as exc_info:
            await client.execute(QUERY)

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert [e.kind for e in sink.entries] == ["request", "error"]
    assert sink.entries[1].status == 500
    assert "refused" in sink.entries[1].error_message


@pytest.mark.asyncio
async def test_links_run_in_order(sink):
    seen = []

    class HeaderLink(GraphQLLink):
        async def request(self, operation, forward):
            seen.append("header")
            operation.context["headers"]["Authorization"] = "Bearer token"
            return await forward(operation)

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"data": {"ok": True}})

    api = ApiLogger(sink)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        client = GraphQLClient(URL, http_client, links=[HeaderLink(), GraphQLLoggingLink(api)])
        result = await client.execute("mutation Ping { ping }", operation_name="Ping")

    assert result.data == {"ok": True}
    assert seen == ["header", "Bearer token"]
    assert sink.entries[0].operation_name == "Ping"


@pytest.mark.asyncio
async def test_non_object_body_is_transport_error(sink):
    def handler(request):
        return httpx.Response(200, text="<html>proxy page</html>")

    client, http_client = _graphql_client(sink, handler)
    async with http_client:
        with pytest.raises(GraphQLTransportError):
            await client.execute(QUERY)

    assert [e.kind for e in sink.entries] == ["request", "error"]
