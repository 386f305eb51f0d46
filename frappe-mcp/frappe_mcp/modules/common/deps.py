from __future__ import annotations

from fastapi import HTTPException, Request, status

from frappe_mcp.app.mcp_server import McpServer
from frappe_mcp.app.settings import Settings, settings


def get_settings(request: Request) -> Settings:
    configured = getattr(request.app.state, "settings", None)
    if isinstance(configured, Settings):
        return configured
    return settings


def get_mcp_server(request: Request) -> McpServer:
    server = getattr(request.app.state, "mcp_server", None)
    if not isinstance(server, McpServer):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="MCP server is not ready.")
    return server
