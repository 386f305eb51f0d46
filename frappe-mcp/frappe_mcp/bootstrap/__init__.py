from __future__ import annotations

from frappe_mcp.bootstrap.container import RuntimeComponents, build_runtime_components
from frappe_mcp.bootstrap.lifespan import create_lifespan, install_runtime

__all__ = [
    "RuntimeComponents",
    "build_runtime_components",
    "create_lifespan",
    "install_runtime",
]
