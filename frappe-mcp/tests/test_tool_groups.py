from __future__ import annotations

import json
from typing import Any

import pytest
from frappe_mcp.app.mcp_protocol import ToolCallRequest, ToolCallResponse
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.static_hints import HintStore
from frappe_mcp.app.tools.base import required_keys
from frappe_mcp.app.tools.defaults import build_default_tool_registry
from frappe_mcp.app.tools.doctype_structure import DATA_TOOLS_MODULE
from frappe_mcp.app.tools.helpers import WHATSAPP_SEND_METHOD
from frappe_mcp.app.tools.registry import ToolRegistry
from frappe_mcp.app.tools.workflow import WORKFLOW_TOOLS_MODULE

from libs.common.errors import RemoteCallError
from tests.conftest import StubFrappeClient


def _registry(client: StubFrappeClient, hints: HintStore | None = None) -> ToolRegistry:
    return build_default_tool_registry(client=client, hints=hints or HintStore())


async def _call(
    registry: ToolRegistry,
    ctx: RequestContext,
    tool_name: str,
    arguments: dict[str, Any] | None,
) -> ToolCallResponse:
    return await registry.dispatch(ToolCallRequest(tool_name=tool_name, arguments=arguments), ctx)


def _tools_with_required(client: StubFrappeClient) -> list[tuple[str, list[str]]]:
    registry = _registry(client)
    pairs: list[tuple[str, list[str]]] = []
    for tool in registry.list_tools():
        required = required_keys(tool)
        if required:
            pairs.append((tool.name, required))
    return pairs


# ─── 인자 검증 테스트 ───


@pytest.mark.asyncio
async def test_every_required_field_is_checked_before_remote_call(ctx: RequestContext) -> None:
    client = StubFrappeClient()
    registry = _registry(client)

    for tool_name, required in _tools_with_required(client):
        response = await _call(registry, ctx, tool_name, {})
        assert response.is_error is True, tool_name
        text = response.content[0].text
        assert text.startswith("Missing required parameter"), tool_name
        for key in required:
            assert key in text, (tool_name, key)

    assert client.calls == []


@pytest.mark.asyncio
async def test_absent_arguments_reports_missing_arguments(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)
    response = await _call(registry, ctx, "get_document", None)

    assert response.is_error is True
    assert response.content[0].text == "Missing arguments for tool call"
    assert stub_client.calls == []


@pytest.mark.asyncio
async def test_blank_string_counts_as_missing(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)
    response = await _call(registry, ctx, "get_document", {"doctype": "Customer", "name": "  "})

    assert response.is_error is True
    assert response.content[0].text == "Missing required parameter: name"
    assert stub_client.calls == []


@pytest.mark.asyncio
async def test_tool_without_required_fields_accepts_absent_arguments(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_list": {"message": [{"name": "Core"}, {"module_name": "Selling"}]}})
    registry = _registry(client)

    response = await _call(registry, ctx, "get_module_list", None)

    assert response.is_error is False
    assert json.loads(response.content[0].text) == ["Core", "Selling"]
    assert client.calls[0][1]["doctype"] == "Module Def"


# ─── 문서 도구 테스트 ───


@pytest.mark.asyncio
async def test_get_document_filters_requested_fields(ctx: RequestContext) -> None:
    client = StubFrappeClient(
        {"frappe.client.get": {"message": {"name": "CUST-1", "customer_name": "Ada", "territory": "KR"}}}
    )
    registry = _registry(client)

    response = await _call(
        registry,
        ctx,
        "get_document",
        {"doctype": "Customer", "name": "CUST-1", "fields": ["customer_name"]},
    )

    assert response.is_error is False
    assert json.loads(response.content[0].text) == {"customer_name": "Ada"}
    assert client.calls == [("frappe.client.get", {"doctype": "Customer", "name": "CUST-1"})]


@pytest.mark.asyncio
async def test_create_document_sends_doc_with_doctype(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.insert": {"message": {"name": "CUST-9", "doctype": "Customer"}}})
    registry = _registry(client)

    response = await _call(
        registry,
        ctx,
        "create_document",
        {"doctype": "Customer", "values": {"customer_name": "Grace"}},
    )

    assert response.is_error is False
    assert json.loads(response.content[0].text)["name"] == "CUST-9"
    assert client.calls == [
        ("frappe.client.insert", {"doc": {"customer_name": "Grace", "doctype": "Customer"}}),
    ]


@pytest.mark.asyncio
async def test_get_document_keeps_message_field(ctx: RequestContext) -> None:
    document = {"name": "WAM-1", "to": "+15550001", "message": "Hello"}
    client = StubFrappeClient({"frappe.client.get": {"message": document}})
    registry = _registry(client)

    response = await _call(registry, ctx, "get_document", {"doctype": "WhatsApp Message", "name": "WAM-1"})

    assert response.is_error is False
    assert json.loads(response.content[0].text) == document


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("tool_name", "method", "arguments"),
    [
        (
            "create_document",
            "frappe.client.insert",
            {"doctype": "Communication", "values": {"content": "Body text"}},
        ),
        (
            "update_document",
            "frappe.client.set_value",
            {"doctype": "Communication", "name": "COMM-1", "values": {"content": "Body text"}},
        ),
    ],
)
async def test_write_tools_keep_message_field(
    ctx: RequestContext,
    tool_name: str,
    method: str,
    arguments: dict[str, Any],
) -> None:
    document = {"name": "COMM-1", "doctype": "Communication", "message": "Body text"}
    client = StubFrappeClient({method: {"message": document}})
    registry = _registry(client)

    response = await _call(registry, ctx, tool_name, arguments)

    assert response.is_error is False
    assert json.loads(response.content[0].text) == document


@pytest.mark.asyncio
async def test_call_method_unwraps_envelope_once(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_value": {"message": {"message": "inner"}}})
    registry = _registry(client)

    response = await _call(registry, ctx, "call_method", {"method": "frappe.client.get_value"})

    assert json.loads(response.content[0].text) == {"message": "inner"}


@pytest.mark.asyncio
async def test_list_documents_uses_default_limit(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_list": [{"name": "A"}]})
    registry = _registry(client)

    response = await _call(registry, ctx, "list_documents", {"doctype": "Item", "filters": {"disabled": 0}})

    assert response.is_error is False
    _, params = client.calls[0]
    assert params["limit_page_length"] == 20
    assert params["filters"] == {"disabled": 0}


@pytest.mark.asyncio
async def test_delete_document_reports_success(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.delete": None})
    registry = _registry(client)

    response = await _call(registry, ctx, "delete_document", {"doctype": "Item", "name": "ITEM-1"})

    assert response.is_error is False
    assert json.loads(response.content[0].text) == {"success": True, "doctype": "Item", "name": "ITEM-1"}


@pytest.mark.asyncio
async def test_remote_failure_becomes_error_text(ctx: RequestContext) -> None:
    client = StubFrappeClient(
        {"frappe.client.get": RemoteCallError("frappe.client.get failed with HTTP 404.", status_code=404)}
    )
    registry = _registry(client)

    response = await _call(registry, ctx, "get_document", {"doctype": "Item", "name": "missing"})

    assert response.is_error is True
    assert response.content[0].text == "Error: frappe.client.get failed with HTTP 404."
    assert "Stack:" not in response.content[0].text


@pytest.mark.asyncio
async def test_call_method_rejects_non_object_params(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)
    response = await _call(registry, ctx, "call_method", {"method": "frappe.ping", "params": ["x"]})

    assert response.is_error is True
    assert stub_client.calls == []


# ─── 블루프린트/메시지 도구 테스트 ───


@pytest.mark.asyncio
async def test_list_blueprints_defaults_to_active_filter(ctx: RequestContext) -> None:
    client = StubFrappeClient({"frappe.client.get_list": {"message": [{"name": "welcome"}]}})
    registry = _registry(client)

    response = await _call(registry, ctx, "list_blueprints", {})

    assert response.is_error is False
    assert json.loads(response.content[0].text) == [{"name": "welcome"}]
    assert client.calls == [
        (
            "frappe.client.get_list",
            {
                "doctype": "BL Blueprint",
                "filters": {"is_active": 1},
                "fields": ["name", "blueprint_description"],
            },
        )
    ]


@pytest.mark.asyncio
async def test_success_flag_decides_error_state(ctx: RequestContext) -> None:
    client = StubFrappeClient(
        {
            "sentra_core.bl_engine.core.blueprint_executor.execute_blueprint_manually": {
                "message": {"success": False, "error": "condition failed"},
            }
        }
    )
    registry = _registry(client)

    response = await _call(
        registry,
        ctx,
        "execute_blueprint",
        {"blueprint_name": "welcome", "doc_data": {"doctype": "Customer", "name": "CUST-1"}},
    )

    assert response.is_error is True
    assert json.loads(response.content[0].text) == {"success": False, "error": "condition failed"}


@pytest.mark.asyncio
async def test_whatsapp_message_defaults_content_type(ctx: RequestContext) -> None:
    client = StubFrappeClient({WHATSAPP_SEND_METHOD: {"message": {"status": "success", "message_id": "wa-1"}}})
    registry = _registry(client)

    response = await _call(registry, ctx, "send_whatsapp_message", {"to": "+821012345678", "message": "hi"})

    assert response.is_error is False
    _, params = client.calls[0]
    assert params["content_type"] == "text"
    assert params["attachment"] is None


@pytest.mark.asyncio
async def test_whatsapp_message_failure_status_is_error(ctx: RequestContext) -> None:
    client = StubFrappeClient({WHATSAPP_SEND_METHOD: {"message": {"status": "error", "error": "no session"}}})
    registry = _registry(client)

    response = await _call(registry, ctx, "send_whatsapp_message", {"to": "+821012345678", "message": "hi"})

    assert response.is_error is True
    assert "no session" in response.content[0].text


# ─── DocType 구조/워크플로우 도구 테스트 ───


@pytest.mark.asyncio
async def test_structure_tool_failure_includes_stack(ctx: RequestContext) -> None:
    client = StubFrappeClient(
        {f"{DATA_TOOLS_MODULE}.delete_doctype": RemoteCallError("delete_doctype failed with HTTP 417.")}
    )
    registry = _registry(client)

    response = await _call(registry, ctx, "delete_doctype", {"doctype_name": "Old Thing"})

    assert response.is_error is True
    assert response.content[0].text.startswith("Error: delete_doctype failed with HTTP 417.")
    assert "Stack:" in response.content[0].text


@pytest.mark.asyncio
async def test_create_blueprint_sends_structured_values(ctx: RequestContext) -> None:
    client = StubFrappeClient(
        {f"{WORKFLOW_TOOLS_MODULE}.create_blueprint_util": {"message": {"success": True, "blueprint_id": "welcome"}}}
    )
    registry = _registry(client)

    response = await _call(
        registry,
        ctx,
        "create_blueprint",
        {
            "name": "welcome",
            "triggers": [{"doctype": "Customer", "event": "after_insert"}],
            "actions": [{"action_type": "send_email", "execution_order": 1, "parameters": {"to": "{{doc.email}}"}}],
        },
    )

    assert response.is_error is False
    method, params = client.calls[0]
    assert method == f"{WORKFLOW_TOOLS_MODULE}.create_blueprint_util"
    assert params["triggers"] == [{"doctype": "Customer", "event": "after_insert"}]
    assert params["actions"] == [
        {"action_type": "send_email", "execution_order": 1, "parameters": {"to": "{{doc.email}}"}},
    ]
    assert params["parameters"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "triggers",
    [
        "[{\"doctype\": \"Customer\", \"event\": \"after_insert\"}]",
        [{"doctype": "Customer"}],
    ],
)
async def test_create_blueprint_rejects_malformed_triggers(ctx: RequestContext, triggers: Any) -> None:
    client = StubFrappeClient()
    registry = _registry(client)

    response = await _call(
        registry,
        ctx,
        "create_blueprint",
        {"name": "welcome", "triggers": triggers, "actions": [{"action_type": "send_email"}]},
    )

    assert response.is_error is True
    assert response.content[0].text.startswith("Invalid blueprint definition:")
    assert client.calls == []


@pytest.mark.asyncio
async def test_validate_blueprint_reports_local_errors(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)

    response = await _call(registry, ctx, "validate_blueprint", {"blueprint": {"name": "welcome", "triggers": []}})

    body = json.loads(response.content[0].text)
    assert response.is_error is True
    assert body["valid"] is False
    assert any(error.startswith("triggers") for error in body["errors"])
    assert any(error.startswith("actions") for error in body["errors"])
    assert stub_client.calls == []


# ─── 사용 정보 도구 테스트 ───


@pytest.mark.asyncio
async def test_usage_info_requires_doctype_or_workflow(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)
    response = await _call(registry, ctx, "get_frappe_usage_info", {})

    assert response.is_error is True
    assert response.content[0].text == "Missing required parameters: doctype or workflow"
    assert stub_client.calls == []


@pytest.mark.asyncio
async def test_usage_info_keeps_hints_when_schema_fails(tmp_path: Any, ctx: RequestContext) -> None:
    (tmp_path / "hints.json").write_text(
        json.dumps(
            [
                {"type": "doctype", "target": "Customer", "hint": "Use customer_name for display."},
                {
                    "type": "workflow",
                    "target": "Onboard customer",
                    "steps": ["Create Customer", "Send welcome"],
                    "related_doctypes": ["Customer"],
                },
            ]
        ),
        encoding="utf-8",
    )
    hints = HintStore()
    hints.load(tmp_path)
    client = StubFrappeClient({"frappe.client.get": RemoteCallError("frappe.client.get failed with HTTP 403.")})
    registry = _registry(client, hints)

    response = await _call(registry, ctx, "get_frappe_usage_info", {"doctype": "Customer"})

    assert response.is_error is False
    info = json.loads(response.content[0].text)["doctype"]
    assert info["hints"][0]["hint"] == "Use customer_name for display."
    assert info["related_workflows"][0]["target"] == "Onboard customer"
    assert "HTTP 403" in info["schema_error"]


# ─── API 안내 도구 테스트 ───


@pytest.mark.asyncio
async def test_api_instructions_are_case_insensitive(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)

    response = await _call(
        registry,
        ctx,
        "get_api_instructions",
        {"category": "document_operations", "operation": "create"},
    )

    assert response.is_error is False
    assert not response.content[0].text.startswith("No instructions found")
    assert stub_client.calls == []


@pytest.mark.asyncio
async def test_api_instructions_list_available_operations(stub_client: StubFrappeClient, ctx: RequestContext) -> None:
    registry = _registry(stub_client)

    response = await _call(
        registry,
        ctx,
        "get_api_instructions",
        {"category": "DOCUMENT_OPERATIONS", "operation": "TELEPORT"},
    )

    assert "Available operations: CREATE, GET, UPDATE, DELETE, LIST" in response.content[0].text
