"""문서 CRUD와 범용 메서드 호출 도구예요."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, json_response, optional_value, remote_response

DEFAULT_LIST_LIMIT = 20

DOCUMENT_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="create_document",
        description="Create a new document in Frappe",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "values": {
                    "type": "object",
                    "description": "Document field values. Required fields must be included. "
                    "For Link fields, provide the exact document name. "
                    "For Table fields, provide an array of row objects.",
                    "additionalProperties": True,
                },
            },
            "required": ["doctype", "values"],
        },
    ),
    ToolDescriptor(
        name="get_document",
        description="Retrieve a document from Frappe",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "name": {"type": "string", "description": "Document name (case-sensitive)"},
                "fields": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Fields to return (optional, all fields when omitted)",
                },
            },
            "required": ["doctype", "name"],
        },
    ),
    ToolDescriptor(
        name="update_document",
        description="Update an existing document in Frappe",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "name": {"type": "string", "description": "Document name (case-sensitive)"},
                "values": {
                    "type": "object",
                    "description": "Field values to update",
                    "additionalProperties": True,
                },
            },
            "required": ["doctype", "name", "values"],
        },
    ),
    ToolDescriptor(
        name="delete_document",
        description="Delete a document from Frappe",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "name": {"type": "string", "description": "Document name (case-sensitive)"},
            },
            "required": ["doctype", "name"],
        },
    ),
    ToolDescriptor(
        name="list_documents",
        description="List documents from Frappe with filters",
        input_schema={
            "type": "object",
            "properties": {
                "doctype": {"type": "string", "description": "DocType name"},
                "filters": {
                    "type": "object",
                    "description": "Filters to apply, e.g. {\"status\": \"Open\"} or {\"amount\": [\">\", 100]}",
                    "additionalProperties": True,
                },
                "fields": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Fields to include (default: name)",
                },
                "limit": {"type": "number", "description": "Maximum number of documents (default: 20)"},
                "limit_start": {"type": "number", "description": "Offset for pagination"},
                "order_by": {"type": "string", "description": "Order clause, e.g. 'modified desc'"},
            },
            "required": ["doctype"],
        },
    ),
    ToolDescriptor(
        name="call_method",
        description="Execute a whitelisted Frappe method",
        input_schema={
            "type": "object",
            "properties": {
                "method": {
                    "type": "string",
                    "description": "Fully qualified method name, e.g. 'frappe.client.get_list'",
                },
                "params": {
                    "type": "object",
                    "description": "Parameters to pass to the method",
                    "additionalProperties": True,
                },
            },
            "required": ["method"],
        },
    ),
)


class DocumentToolGroup(ToolGroup):
    name = "document"

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return DOCUMENT_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "create_document": self._create_document,
            "get_document": self._get_document,
            "update_document": self._update_document,
            "delete_document": self._delete_document,
            "list_documents": self._list_documents,
            "call_method": self._call_method,
        }

    async def _create_document(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        values = args["values"]
        if not isinstance(values, dict):
            return ToolCallResponse.error("values must be an object")
        return json_response(await self._client.insert(args["doctype"], values))

    async def _get_document(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        document = await self._client.get_document(args["doctype"], args["name"])
        fields = args.get("fields")
        if isinstance(fields, list) and fields:
            document = {key: document.get(key) for key in fields if isinstance(key, str)}
        return json_response(document)

    async def _update_document(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        values = args["values"]
        if not isinstance(values, dict):
            return ToolCallResponse.error("values must be an object")
        return json_response(await self._client.set_value(args["doctype"], args["name"], values))

    async def _delete_document(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        await self._client.delete(args["doctype"], args["name"])
        return json_response({"success": True, "doctype": args["doctype"], "name": args["name"]})

    async def _list_documents(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        fields = optional_value(args, "fields")
        documents = await self._client.get_list(
            args["doctype"],
            fields=fields if isinstance(fields, list) else None,
            filters=optional_value(args, "filters"),
            order_by=optional_value(args, "order_by"),
            limit=_as_int(args.get("limit"), DEFAULT_LIST_LIMIT),
            limit_start=_as_int(args.get("limit_start"), None),
        )
        return json_response(documents)

    async def _call_method(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        params = optional_value(args, "params", {})
        if not isinstance(params, dict):
            return ToolCallResponse.error("params must be an object")
        return remote_response(await self._client.call_method(args["method"], params))


def _as_int(value: object, default: int | None) -> int | None:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default
