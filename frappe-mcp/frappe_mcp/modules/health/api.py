from __future__ import annotations

from fastapi import APIRouter, Request

from frappe_mcp.modules.common.deps import get_mcp_server

router = APIRouter()


@router.get("/health/live")
async def health_live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(request: Request) -> dict[str, object]:
    server = get_mcp_server(request)
    return {"status": "ok", "tool_count": len(server.registry)}
