from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, optional_value, remote_response

EXECUTE_BLUEPRINT_METHOD = "sentra_core.bl_engine.core.blueprint_executor.execute_blueprint_manually"
BLUEPRINT_DOCTYPE = "BL Blueprint"
DEFAULT_BLUEPRINT_FILTERS: dict[str, Any] = {"is_active": 1}

BLUEPRINT_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="execute_blueprint",
        description="Execute a Frappe blueprint/workflow with document data. "
        "Returns execution result with status and context variables.",
        input_schema={
            "type": "object",
            "properties": {
                "blueprint_name": {"type": "string", "description": "Name of the blueprint to execute"},
                "doc_data": {
                    "type": "object",
                    "description": "Document data to pass to the blueprint (with doctype field)",
                    "additionalProperties": True,
                },
            },
            "required": ["blueprint_name", "doc_data"],
        },
    ),
    ToolDescriptor(
        name="list_blueprints",
        description="Get list of active blueprints available in the system",
        input_schema={
            "type": "object",
            "properties": {
                "filters": {
                    "type": "object",
                    "description": "Optional filters (default: is_active=1)",
                    "additionalProperties": True,
                },
            },
        },
    ),
    ToolDescriptor(
        name="get_blueprint_info",
        description="Get detailed information about a specific blueprint including actions and conditions",
        input_schema={
            "type": "object",
            "properties": {
                "blueprint_name": {"type": "string", "description": "Name of the blueprint"},
            },
            "required": ["blueprint_name"],
        },
    ),
)


class BlueprintToolGroup(ToolGroup):
    name = "blueprint"

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return BLUEPRINT_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "execute_blueprint": self._execute_blueprint,
            "list_blueprints": self._list_blueprints,
            "get_blueprint_info": self._get_blueprint_info,
        }

    async def _execute_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        doc_data = args["doc_data"]
        if not isinstance(doc_data, dict):
            return ToolCallResponse.error("doc_data must be an object")
        result = await self._client.call_method(
            EXECUTE_BLUEPRINT_METHOD,
            {"blueprint_name": args["blueprint_name"], "doc": doc_data},
        )
        return remote_response(result)

    async def _list_blueprints(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            "frappe.client.get_list",
            {
                "doctype": BLUEPRINT_DOCTYPE,
                "filters": optional_value(args, "filters", DEFAULT_BLUEPRINT_FILTERS),
                "fields": ["name", "blueprint_description"],
            },
        )
        return remote_response(result)

    async def _get_blueprint_info(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            "frappe.client.get",
            {"doctype": BLUEPRINT_DOCTYPE, "name": args["blueprint_name"]},
        )
        return remote_response(result)
