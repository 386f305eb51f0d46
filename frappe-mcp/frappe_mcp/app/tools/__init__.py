from frappe_mcp.app.tools.base import ToolGroup
from frappe_mcp.app.tools.registry import PING_TOOL, ToolRegistry

__all__ = [
    "PING_TOOL",
    "ToolGroup",
    "ToolRegistry",
]
