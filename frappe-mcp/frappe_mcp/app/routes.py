from __future__ import annotations

import json

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from frappe_mcp.app.cancellation import ClientDisconnected, run_until_disconnect
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.modules.common.deps import get_mcp_server, get_settings
from libs.common.jsonrpc import INTERNAL_ERROR, SERVER_ERROR, jsonrpc_error

MCP_PATH = "/mcp"

router = APIRouter()


@router.post(MCP_PATH)
async def handle_mcp_post(request: Request) -> Response:
    ctx = RequestContext.create(path=request.url.path)
    # 준비되지 않은 서버는 503으로 그대로 응답해요.
    server = get_mcp_server(request)
    try:
        payload = json.loads(await request.body())
        reply = await run_until_disconnect(
            request,
            server.handle_payload(payload, ctx),
            poll_seconds=get_settings(request).disconnect_poll_seconds,
        )
    except ClientDisconnected:
        # 응답을 받을 상대가 없어요. 진행 중이던 원격 호출은 이미 취소됐어요.
        ctx.logger.info("mcp_request_abandoned")
        return Response(status_code=499)
    except Exception as exc:
        ctx.logger.exception("mcp_request_failed", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=jsonrpc_error(None, INTERNAL_ERROR, "Internal server error"),
        )

    if reply.body is None:
        return Response(status_code=reply.status_code)
    return JSONResponse(status_code=reply.status_code, content=reply.body)


@router.get(MCP_PATH)
async def handle_mcp_get() -> JSONResponse:
    return _method_not_allowed()


@router.delete(MCP_PATH)
async def handle_mcp_delete() -> JSONResponse:
    return _method_not_allowed()


def _method_not_allowed() -> JSONResponse:
    # 무상태 모드라 SSE 스트림(GET)과 세션 종료(DELETE)를 지원하지 않아요.
    return JSONResponse(
        status_code=405,
        content=jsonrpc_error(None, SERVER_ERROR, "Method not allowed."),
    )
