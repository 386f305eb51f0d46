"""``schema://`` URI로 DocType 스키마를 읽게 해 주는 MCP 리소스예요."""

from __future__ import annotations

from typing import Any
from urllib.parse import unquote

from frappe_mcp.app.frappe_client import FrappeClient
from frappe_mcp.app.mcp_protocol import McpResource, McpResourceTemplate
from frappe_mcp.app.schema_api import (
    field_options_to_dicts,
    get_all_doctypes,
    get_all_modules,
    get_doctype_schema,
    get_field_options,
)
from frappe_mcp.app.tools.base import format_json

SCHEMA_SCHEME = "schema://"

STATIC_RESOURCES: tuple[McpResource, ...] = (
    McpResource(
        uri="schema://modules",
        name="Module list",
        description="All modules defined in the Frappe site",
    ),
    McpResource(
        uri="schema://doctypes",
        name="DocType list",
        description="All DocTypes defined in the Frappe site",
    ),
)

RESOURCE_TEMPLATES: tuple[McpResourceTemplate, ...] = (
    McpResourceTemplate(
        uri_template="schema://{doctype}",
        name="DocType schema",
        description="Schema of a DocType including fields and permissions",
    ),
    McpResourceTemplate(
        uri_template="schema://{doctype}/{fieldname}/options",
        name="Field options",
        description="Available values for a Link or Select field",
    ),
)


class UnknownResourceError(Exception):
    def __init__(self, uri: str) -> None:
        super().__init__(f"Unknown resource: {uri}")
        self.uri = uri


class SchemaResources:
    def __init__(self, client: FrappeClient) -> None:
        self._client = client

    def list_resources(self) -> list[McpResource]:
        return list(STATIC_RESOURCES)

    def list_templates(self) -> list[McpResourceTemplate]:
        return list(RESOURCE_TEMPLATES)

    async def read(self, uri: str) -> dict[str, Any]:
        if not uri.startswith(SCHEMA_SCHEME):
            raise UnknownResourceError(uri)

        parts = [unquote(part) for part in uri[len(SCHEMA_SCHEME) :].split("/")]
        value: Any
        if parts == ["modules"]:
            value = await get_all_modules(self._client)
        elif parts == ["doctypes"]:
            value = await get_all_doctypes(self._client)
        elif len(parts) == 3 and parts[2] == "options" and parts[0] and parts[1]:
            value = field_options_to_dicts(await get_field_options(self._client, parts[0], parts[1]))
        elif len(parts) == 1 and parts[0]:
            value = await get_doctype_schema(self._client, parts[0])
        else:
            raise UnknownResourceError(uri)

        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": "application/json",
                    "text": format_json(value),
                }
            ]
        }
