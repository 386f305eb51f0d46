"""DocType 구조(스키마) 자체를 만들고 바꾸는 도구예요.

문서 CRUD가 아니라 테이블 정의를 다뤄요. CRUD 설정(DoctypeCrudConfig)은
그 자체가 DocType이므로 일반 문서 도구로 관리하면 돼요.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, optional_value, remote_response

DATA_TOOLS_MODULE = "sentra_core.builder.tools.data_tools"
DEFAULT_MODULE = "Sentra Core"
DEFAULT_NAMING_RULE = "By fieldname"

RESERVED_FIELDNAMES_NOTE = (
    "NEVER use reserved fieldnames: name, owner, creation, modified, docstatus, idx, parent, "
    "parenttype, parentfield. Use descriptive names like product_name, customer_name instead."
)


def _field_schema(*, with_unique: bool, described: bool) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "fieldname": {"type": "string"},
        "fieldtype": {"type": "string"},
        "label": {"type": "string"},
        "reqd": {"type": "number", "default": 0},
        "options": {"type": "string", "default": ""},
    }
    if with_unique:
        properties["unique"] = {"type": "number", "default": 0}
    if described:
        properties["fieldname"]["description"] = f"Field name in snake_case. {RESERVED_FIELDNAMES_NOTE}"
        properties["fieldtype"]["description"] = "Frappe field type (Data, Select, Link, Text, Int, etc.)"
        properties["label"]["description"] = "Human-readable label"
        properties["reqd"]["description"] = "Required field (0 or 1)"
        properties["options"]["description"] = "Options for Select/Link fields"
        if with_unique:
            properties["unique"]["description"] = "Unique field (0 or 1)"
    return {
        "type": "object",
        "properties": properties,
        "required": ["fieldname", "fieldtype", "label"],
    }


DOCTYPE_STRUCTURE_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="create_doctype",
        description="Create a new custom DocType with specified fields. "
        "Use this to create new database tables/entities programmatically.",
        input_schema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "DocType name in PascalCase (e.g., 'Customer', 'SalesOrder', 'WorkoutLog')",
                },
                "fields": {
                    "type": "array",
                    "description": "Array of field definitions. Each field must have fieldname (snake_case), "
                    f"fieldtype (Data, Select, Link, etc.), and label. {RESERVED_FIELDNAMES_NOTE}",
                    "items": _field_schema(with_unique=True, described=True),
                },
                "module": {
                    "type": "string",
                    "description": f"Frappe module name (default: '{DEFAULT_MODULE}')",
                    "default": DEFAULT_MODULE,
                },
                "naming_rule": {
                    "type": "string",
                    "description": f"How to name documents (default: '{DEFAULT_NAMING_RULE}')",
                    "default": DEFAULT_NAMING_RULE,
                },
                "autoname": {
                    "type": "string",
                    "description": "Field to use for naming (e.g., 'field:customer_name'). If not provided, uses "
                    "first field. Must reference a Data or Int field with unique=1, or use a pattern like "
                    "'PROD-.####' for auto-increment.",
                },
            },
            "required": ["name", "fields"],
        },
    ),
    ToolDescriptor(
        name="create_child_table",
        description="Create a child table DocType and link it to a parent DocType. Child tables are used for "
        "one-to-many relationships (e.g., Order Items in Sales Order).",
        input_schema={
            "type": "object",
            "properties": {
                "parent_doctype": {
                    "type": "string",
                    "description": "Name of the parent DocType to link the child table to",
                },
                "child_doctype_name": {
                    "type": "string",
                    "description": "Name for the new child table DocType (e.g., 'Order Item')",
                },
                "child_fields": {
                    "type": "array",
                    "description": "Array of field definitions for the child table",
                    "items": _field_schema(with_unique=False, described=False),
                },
                "parent_field_label": {
                    "type": "string",
                    "description": "Label for the field in parent DocType (optional, auto-generated if not provided)",
                },
            },
            "required": ["parent_doctype", "child_doctype_name", "child_fields"],
        },
    ),
    ToolDescriptor(
        name="add_fields_to_doctype",
        description="Add new fields to an existing DocType. Use this to extend existing DocTypes with additional fields.",
        input_schema={
            "type": "object",
            "properties": {
                "doctype_name": {"type": "string", "description": "Name of the DocType to modify"},
                "fields": {
                    "type": "array",
                    "description": "Array of field definitions to add",
                    "items": _field_schema(with_unique=True, described=False),
                },
            },
            "required": ["doctype_name", "fields"],
        },
    ),
    ToolDescriptor(
        name="delete_doctype",
        description="Delete a custom DocType from the database. Only custom DocTypes (custom=1) can be deleted; "
        "system DocTypes are refused by the server.",
        input_schema={
            "type": "object",
            "properties": {
                "doctype_name": {"type": "string", "description": "Name of the DocType to delete"},
            },
            "required": ["doctype_name"],
        },
    ),
)


class DoctypeStructureToolGroup(ToolGroup):
    name = "doctype_structure"
    include_traceback = True

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return DOCTYPE_STRUCTURE_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "create_doctype": self._create_doctype,
            "create_child_table": self._create_child_table,
            "add_fields_to_doctype": self._add_fields_to_doctype,
            "delete_doctype": self._delete_doctype,
        }

    async def _create_doctype(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            f"{DATA_TOOLS_MODULE}.create_doctype_util",
            {
                "name": args["name"],
                "fields": args["fields"],
                "module": optional_value(args, "module", DEFAULT_MODULE),
                "naming_rule": optional_value(args, "naming_rule", DEFAULT_NAMING_RULE),
                "autoname": optional_value(args, "autoname"),
            },
        )
        return remote_response(result)

    async def _create_child_table(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            f"{DATA_TOOLS_MODULE}.create_child_table_util",
            {
                "parent_doctype": args["parent_doctype"],
                "child_doctype_name": args["child_doctype_name"],
                "child_fields": args["child_fields"],
                "parent_field_label": optional_value(args, "parent_field_label"),
            },
        )
        return remote_response(result)

    async def _add_fields_to_doctype(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            f"{DATA_TOOLS_MODULE}.add_fields_to_doctype_util",
            {"doctype_name": args["doctype_name"], "fields": args["fields"]},
        )
        return remote_response(result)

    async def _delete_doctype(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        result = await self._client.call_method(
            f"{DATA_TOOLS_MODULE}.delete_doctype",
            {"doctype_name": args["doctype_name"]},
        )
        return remote_response(result)
