from __future__ import annotations

from typing import Any

import pytest
from frappe_mcp.app.mcp_server import McpServer
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.resources import SchemaResources
from frappe_mcp.app.static_hints import HintStore
from frappe_mcp.app.tools.defaults import build_default_tool_registry

from libs.common.errors import RemoteCallError
from tests.conftest import StubFrappeClient


def _server(client: StubFrappeClient) -> McpServer:
    return McpServer(
        registry=build_default_tool_registry(client=client, hints=HintStore()),
        resources=SchemaResources(client),
        server_name="frappe-mcp-server",
        server_version="0.3.0",
    )


def _request(method: str, params: dict[str, Any] | None = None, request_id: Any = 1) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


@pytest.mark.asyncio
async def test_initialize_negotiates_protocol(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("initialize", {"protocolVersion": "2025-03-26"}), ctx)

    assert reply.status_code == 200
    result = reply.body["result"]
    assert result["protocolVersion"] == "2025-03-26"
    assert result["capabilities"]["tools"] == {"listChanged": False}
    assert result["serverInfo"] == {"name": "frappe-mcp-server", "version": "0.3.0"}


@pytest.mark.asyncio
async def test_initialize_falls_back_to_latest_protocol(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("initialize", {"protocolVersion": "1999-01-01"}), ctx)

    assert reply.body["result"]["protocolVersion"] == "2025-06-18"


@pytest.mark.asyncio
async def test_tools_list_uses_wire_field_names(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("tools/list"), ctx)

    tools = reply.body["result"]["tools"]
    assert tools[-1]["name"] == "ping"
    assert set(tools[0]) == {"name", "description", "inputSchema"}
    assert stub_client.calls == []


@pytest.mark.asyncio
async def test_tools_call_wraps_tool_response(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_count": {"message": 3}})
    server = _server(client)

    reply = await server.handle_payload(
        _request("tools/call", {"name": "get_document_count", "arguments": {"doctype": "Item"}}, request_id="abc"),
        ctx,
    )

    assert reply.body["id"] == "abc"
    assert reply.body["result"] == {"content": [{"type": "text", "text": '{\n  "count": 3\n}'}], "isError": False}


@pytest.mark.asyncio
async def test_tool_failure_stays_inside_result(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_count": RemoteCallError("frappe.client.get_count failed.")})
    server = _server(client)

    reply = await server.handle_payload(
        _request("tools/call", {"name": "get_document_count", "arguments": {"doctype": "Item"}}),
        ctx,
    )

    assert reply.status_code == 200
    assert "error" not in reply.body
    assert reply.body["result"]["isError"] is True


@pytest.mark.asyncio
async def test_tools_call_requires_name(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("tools/call", {"arguments": {}}), ctx)

    assert reply.body["error"]["code"] == -32602


@pytest.mark.asyncio
async def test_unknown_method_is_method_not_found(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("prompts/list"), ctx)

    assert reply.status_code == 200
    assert reply.body["error"]["code"] == -32601
    assert reply.body["id"] == 1


@pytest.mark.asyncio
async def test_notification_only_gets_accepted(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload({"jsonrpc": "2.0", "method": "notifications/initialized"}, ctx)

    assert reply.status_code == 202
    assert reply.body is None


@pytest.mark.asyncio
async def test_invalid_envelope_is_bad_request(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload({"jsonrpc": "1.0", "id": 7, "method": "ping"}, ctx)

    assert reply.status_code == 400
    assert reply.body["error"]["code"] == -32600
    assert reply.body["id"] == 7


@pytest.mark.asyncio
async def test_batch_returns_responses_for_requests_only(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(
        [
            _request("ping", request_id=1),
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            _request("tools/call", {"name": "ping"}, request_id=2),
            "garbage",
        ],
        ctx,
    )

    assert reply.status_code == 200
    assert [item["id"] for item in reply.body] == [1, 2, None]
    assert reply.body[0]["result"] == {}
    assert reply.body[1]["result"]["content"][0]["text"] == "pong"
    assert reply.body[2]["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_empty_batch_is_bad_request(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload([], ctx)

    assert reply.status_code == 400


@pytest.mark.asyncio
async def test_resources_read_unknown_uri_is_invalid_params(
    stub_client: StubFrappeClient,
    ctx: RequestContext,
) -> None:
    server = _server(stub_client)

    reply = await server.handle_payload(_request("resources/read", {"uri": "http://nope"}), ctx)

    assert reply.body["error"]["code"] == -32602


@pytest.mark.asyncio
async def test_resources_read_remote_failure_is_internal_error(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_list": RemoteCallError("frappe.client.get_list failed.")})
    server = _server(client)

    reply = await server.handle_payload(_request("resources/read", {"uri": "schema://modules"}), ctx)

    assert reply.body["error"] == {"code": -32603, "message": "frappe.client.get_list failed."}
