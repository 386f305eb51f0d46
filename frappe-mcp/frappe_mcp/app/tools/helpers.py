"""DocType 탐색, 진단 조회, 메시지 전송 도구예요."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frappe_mcp.app.frappe_client import unwrap_message
from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.schema_api import get_all_modules
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, format_json, json_response, optional_value
from frappe_mcp.app.tools.instructions import INSTRUCTIONS, get_instructions

WHATSAPP_SEND_METHOD = (
    "senaerp_integrations.whatsapp.doctype.whatsapp_message.whatsapp_message.send_whatsapp_message"
)
INSTAGRAM_SEND_METHOD = (
    "senaerp_integrations.instagram.doctype.instagram_message.instagram_message.send_instagram_message"
)

DEFAULT_FIND_LIMIT = 20
DOCTYPES_IN_MODULE_LIMIT = 500


def _message_tool(name: str, channel: str, recipient: str) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=f"Send a {channel} message through the senaERP {channel} integration",
        input_schema={
            "type": "object",
            "properties": {
                "to": {"type": "string", "description": recipient},
                "message": {"type": "string", "description": "Message text"},
                "content_type": {
                    "type": "string",
                    "description": "Content type: text, image, document, video or audio (default: text)",
                },
                "attachment": {"type": "string", "description": "Attachment URL for media messages (optional)"},
                "reference_doctype": {"type": "string", "description": "DocType to link the message to (optional)"},
                "reference_name": {"type": "string", "description": "Document to link the message to (optional)"},
            },
            "required": ["to", "message"],
        },
    )


HELPER_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="find_doctypes",
        description="Find DocTypes in the system matching a search term",
        input_schema={
            "type": "object",
            "properties": {
                "search_term": {"type": "string", "description": "Search term to look for in DocType names"},
                "module": {"type": "string", "description": "Filter by module name (optional)"},
                "is_table": {"type": "boolean", "description": "Filter by table DocTypes (optional)"},
                "is_single": {"type": "boolean", "description": "Filter by single DocTypes (optional)"},
                "is_custom": {"type": "boolean", "description": "Filter by custom DocTypes (optional)"},
                "limit": {"type": "number", "description": "Maximum number of results (default: 20)"},
            },
        },
    ),
    ToolDescriptor(
        name="get_module_list",
        description="Get a list of all modules in the system",
        input_schema={"type": "object", "properties": {}},
    ),
    ToolDescriptor(
        name="get_doctypes_in_module",
        description="Get a list of DocTypes in a specific module",
        input_schema={
            "type": "object",
            "properties": {"module": {"type": "string", "description": "Module name"}},
            "required": ["module"],
        },
    ),
    ToolDescriptor(
        name="check_doctype_exists",
        description="Check if a DocType exists in the system",
        input_schema={
            "type": "object",
            "properties": {"doctype": {"type": "string", "description": "DocType name to check"}},
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="check_document_exists",
        description="Check if a document exists",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "name": {"type": "string", "description": "Document name to check"},
            },
            "required": ["doctype", "name"],
        },
    ),
    ToolDescriptor(
        name="get_document_count",
        description="Get a count of documents matching criteria",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "filters": {
                    "type": "object",
                    "description": "Filters to apply (optional)",
                    "additionalProperties": True,
                },
            },
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="get_naming_info",
        description="Get information about how documents of a DocType are named",
        input_schema={
            "type": "object",
            "properties": {"doctype": {"type": "string", "description": "DocType name"}},
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="get_required_fields",
        description="Get a list of required fields for a DocType",
        input_schema={
            "type": "object",
            "properties": {"doctype": {"type": "string", "description": "DocType name"}},
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="get_api_instructions",
        description="Get detailed instructions for using the Frappe API through this server",
        input_schema={
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Instruction category",
                    "enum": list(INSTRUCTIONS),
                },
                "operation": {"type": "string", "description": "Operation name, e.g. CREATE or GET_SCHEMA"},
            },
            "required": ["category", "operation"],
        },
    ),
    _message_tool("send_whatsapp_message", "WhatsApp", "Recipient phone number with country code"),
    _message_tool("send_instagram_message", "Instagram", "Recipient Instagram user ID"),
)


class HelperToolGroup(ToolGroup):
    name = "helper"

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return HELPER_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "find_doctypes": self._find_doctypes,
            "get_module_list": self._get_module_list,
            "get_doctypes_in_module": self._get_doctypes_in_module,
            "check_doctype_exists": self._check_doctype_exists,
            "check_document_exists": self._check_document_exists,
            "get_document_count": self._get_document_count,
            "get_naming_info": self._get_naming_info,
            "get_required_fields": self._get_required_fields,
            "get_api_instructions": self._get_api_instructions,
            "send_whatsapp_message": self._send_whatsapp_message,
            "send_instagram_message": self._send_instagram_message,
        }

    async def _find_doctypes(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        filters: dict[str, Any] = {}
        search_term = optional_value(args, "search_term", "")
        if search_term:
            filters["name"] = ["like", f"%{search_term}%"]
        module = optional_value(args, "module")
        if module:
            filters["module"] = module
        for arg_name, field_name in (("is_table", "istable"), ("is_single", "issingle"), ("is_custom", "custom")):
            value = args.get(arg_name)
            if isinstance(value, bool):
                filters[field_name] = 1 if value else 0

        limit = args.get("limit")
        rows = await self._client.get_list(
            "DocType",
            fields=["name", "module", "description", "istable", "issingle", "custom"],
            filters=filters,
            limit=int(limit) if isinstance(limit, (int, float)) and not isinstance(limit, bool) else DEFAULT_FIND_LIMIT,
        )
        return json_response(rows)

    async def _get_module_list(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return json_response(await get_all_modules(self._client))

    async def _get_doctypes_in_module(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        rows = await self._client.get_list(
            "DocType",
            fields=["name", "description", "istable", "issingle", "custom"],
            filters={"module": args["module"]},
            limit=DOCTYPES_IN_MODULE_LIMIT,
        )
        return json_response(rows)

    async def _check_doctype_exists(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        count = await self._client.get_count("DocType", {"name": args["doctype"]})
        return json_response({"exists": count > 0})

    async def _check_document_exists(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        count = await self._client.get_count(args["doctype"], {"name": args["name"]})
        return json_response({"exists": count > 0})

    async def _get_document_count(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        filters = optional_value(args, "filters", {})
        count = await self._client.get_count(args["doctype"], filters if isinstance(filters, dict) else {})
        return json_response({"count": count})

    async def _get_naming_info(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        doctype_doc = await self._client.get_document("DocType", args["doctype"])
        fields = doctype_doc.get("fields") if isinstance(doctype_doc.get("fields"), list) else []
        series_field = next(
            (field for field in fields if isinstance(field, dict) and field.get("fieldname") == "naming_series"),
            None,
        )
        series_options: list[str] = []
        if series_field and isinstance(series_field.get("options"), str):
            series_options = [line.strip() for line in series_field["options"].split("\n") if line.strip()]

        autoname = doctype_doc.get("autoname")
        return json_response(
            {
                "doctype": args["doctype"],
                "autoname": autoname,
                "naming_rule": doctype_doc.get("naming_rule"),
                "name_case": doctype_doc.get("name_case"),
                "is_naming_series": bool(series_options)
                or (isinstance(autoname, str) and autoname.startswith("naming_series:")),
                "naming_series_options": series_options,
                "allow_rename": doctype_doc.get("allow_rename") == 1,
            }
        )

    async def _get_required_fields(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        doctype_doc = await self._client.get_document("DocType", args["doctype"])
        fields = doctype_doc.get("fields") if isinstance(doctype_doc.get("fields"), list) else []
        required = [
            {
                "fieldname": field.get("fieldname"),
                "label": field.get("label"),
                "fieldtype": field.get("fieldtype"),
                "options": field.get("options"),
            }
            for field in fields
            if isinstance(field, dict) and field.get("reqd") == 1
        ]
        return json_response(required)

    async def _get_api_instructions(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return ToolCallResponse.text(get_instructions(str(args["category"]), str(args["operation"])))

    async def _send_whatsapp_message(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._send_message(WHATSAPP_SEND_METHOD, args, ctx, channel="whatsapp")

    async def _send_instagram_message(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._send_message(INSTAGRAM_SEND_METHOD, args, ctx, channel="instagram")

    async def _send_message(
        self,
        method: str,
        args: dict[str, Any],
        ctx: RequestContext,
        *,
        channel: str,
    ) -> ToolCallResponse:
        result = await self._client.call_method(
            method,
            {
                "to": args["to"],
                "message": args["message"],
                "content_type": optional_value(args, "content_type", "text"),
                "attachment": optional_value(args, "attachment"),
                "reference_doctype": optional_value(args, "reference_doctype"),
                "reference_name": optional_value(args, "reference_name"),
            },
        )
        data = unwrap_message(result)
        ctx.logger.info("message_sent", channel=channel, status=data.get("status") if isinstance(data, dict) else None)
        # 전송 API는 success 플래그 대신 status 필드로 결과를 알려줘요.
        is_error = not (isinstance(data, dict) and data.get("status") == "success")
        return ToolCallResponse.text(format_json(data), is_error=is_error)
