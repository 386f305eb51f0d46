"""DocType 스키마 조회 도구예요."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frappe_mcp.app.frappe_client import FrappeClient
from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.schema_api import field_options_to_dicts, get_doctype_schema, get_field_options
from frappe_mcp.app.static_hints import HintStore
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, json_response, optional_value
from libs.common.errors import RemoteCallError

SCHEMA_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="get_doctype_schema",
        description="Get the complete schema for a DocType including field definitions, validations, and linked DocTypes",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
            },
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="get_field_options",
        description="Get available options for a Link or Select field",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "fieldname": {"type": "string", "description": "Field name"},
                "filters": {
                    "type": "object",
                    "description": "Filters to apply to the linked DocType (optional)",
                    "additionalProperties": True,
                },
            },
            "required": ["doctype", "fieldname"],
        },
    ),
    ToolDescriptor(
        name="get_frappe_usage_info",
        description="Get combined information about a DocType or workflow, including schema metadata "
        "and usage guidance from static hints",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name (optional if workflow is provided)"},
                "workflow": {"type": "string", "description": "Workflow name (optional if doctype is provided)"},
            },
        },
    ),
)


class SchemaToolGroup(ToolGroup):
    name = "schema"

    def __init__(self, client: FrappeClient, hints: HintStore) -> None:
        super().__init__(client)
        self._hints = hints

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return SCHEMA_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "get_doctype_schema": self._get_doctype_schema,
            "get_field_options": self._get_field_options,
            "get_frappe_usage_info": self._get_usage_info,
        }

    async def _get_doctype_schema(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return json_response(await get_doctype_schema(self._client, args["doctype"]))

    async def _get_field_options(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        filters = optional_value(args, "filters")
        options = await get_field_options(
            self._client,
            args["doctype"],
            args["fieldname"],
            filters if isinstance(filters, dict) else None,
        )
        return json_response(field_options_to_dicts(options))

    async def _get_usage_info(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        doctype = optional_value(args, "doctype")
        workflow = optional_value(args, "workflow")
        if not doctype and not workflow:
            return ToolCallResponse.error("Missing required parameters: doctype or workflow")

        info: dict[str, Any] = {}
        if doctype:
            doctype_info: dict[str, Any] = {
                "hints": [hint.to_dict() for hint in self._hints.doctype_hints(doctype)],
                "related_workflows": [hint.to_dict() for hint in self._hints.workflows_for_doctype(doctype)],
            }
            # 스키마를 못 가져와도 힌트는 그대로 돌려줘요.
            try:
                schema = await get_doctype_schema(self._client, doctype)
            except RemoteCallError as exc:
                ctx.logger.warning("usage_info_schema_unavailable", doctype=doctype, error=exc.message)
                doctype_info["schema_error"] = exc.message
            else:
                doctype_info["schema"] = {
                    "name": schema["name"],
                    "description": schema["description"],
                    "module": schema["module"],
                    "issingle": schema["issingle"],
                    "istable": schema["istable"],
                    "custom": schema["custom"],
                    "field_count": len(schema["fields"]),
                    "required_fields": [
                        field.get("fieldname")
                        for field in schema["fields"]
                        if isinstance(field, dict) and field.get("reqd") == 1
                    ],
                }
            info["doctype"] = {"name": doctype, **doctype_info}

        if workflow:
            info["workflow"] = {
                "name": workflow,
                "hints": [hint.to_dict() for hint in self._hints.workflow_hints(workflow)],
            }
        return json_response(info)
