from __future__ import annotations

from dataclasses import dataclass

from frappe_mcp.app.frappe_client import FrappeClient
from frappe_mcp.app.mcp_server import McpServer
from frappe_mcp.app.resources import SchemaResources
from frappe_mcp.app.settings import Settings
from frappe_mcp.app.static_hints import HintStore
from frappe_mcp.app.tools.defaults import build_default_tool_registry
from frappe_mcp.app.tools.registry import ToolRegistry


@dataclass(slots=True)
class RuntimeComponents:
    client: FrappeClient
    hints: HintStore
    registry: ToolRegistry
    mcp_server: McpServer


def build_runtime_components(
    settings: Settings,
    *,
    client: FrappeClient | None = None,
    hints: HintStore | None = None,
) -> RuntimeComponents:
    if client is None:
        client = FrappeClient(
            base_url=settings.frappe_url,
            api_key=settings.frappe_api_key,
            api_secret=settings.frappe_api_secret,
            timeout_seconds=settings.frappe_request_timeout_seconds,
        )
    if hints is None:
        hints = HintStore()
        hints.load(settings.static_hints_dir)

    registry = build_default_tool_registry(client=client, hints=hints)
    mcp_server = McpServer(
        registry=registry,
        resources=SchemaResources(client),
        server_name=settings.service_name,
        server_version=settings.service_version,
    )
    return RuntimeComponents(
        client=client,
        hints=hints,
        registry=registry,
        mcp_server=mcp_server,
    )
