"""MCP JSON-RPC 메시지를 처리하는 무상태 서버예요.

서버 객체는 기동 시 한 번만 만들고 모든 요청이 공유해요. 요청별 상태는
`RequestContext`로만 전달되므로 동시에 여러 호출이 들어와도 ID가 섞이지 않아요.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from frappe_mcp.app.mcp_protocol import (
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    ToolCallRequest,
)
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.resources import SchemaResources, UnknownResourceError
from frappe_mcp.app.tools.registry import ToolRegistry
from libs.common.errors import DomainError
from libs.common.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    jsonrpc_error,
    jsonrpc_result,
)

MethodHandler = Callable[[dict[str, Any], RequestContext], Awaitable[Any]]


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(slots=True)
class McpReply:
    status_code: int
    body: Any | None


class McpServer:
    def __init__(
        self,
        *,
        registry: ToolRegistry,
        resources: SchemaResources,
        server_name: str,
        server_version: str,
    ) -> None:
        self._registry = registry
        self._resources = resources
        self._server_name = server_name
        self._server_version = server_version
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "resources/read": self._read_resource,
        }

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def handle_payload(self, payload: Any, ctx: RequestContext) -> McpReply:
        """POST 본문 하나(단일 메시지 또는 배치)를 처리해요.

        알림만 담긴 본문은 202와 빈 본문, 형식이 잘못된 단일 메시지는 400이에요.
        """
        if isinstance(payload, list):
            if not payload:
                return McpReply(400, jsonrpc_error(None, INVALID_REQUEST, "Invalid Request: empty batch"))
            responses = []
            for message in payload:
                response = await self.handle_message(message, ctx)
                if response is not None:
                    responses.append(response)
            return McpReply(200, responses) if responses else McpReply(202, None)

        envelope_error = _envelope_error(payload)
        if envelope_error is not None:
            request_id = payload.get("id") if isinstance(payload, dict) else None
            return McpReply(400, jsonrpc_error(request_id, INVALID_REQUEST, envelope_error))

        response = await self.handle_message(payload, ctx)
        if response is None:
            return McpReply(202, None)
        return McpReply(200, response)

    async def handle_message(self, message: Any, ctx: RequestContext) -> dict[str, Any] | None:
        envelope_error = _envelope_error(message)
        if envelope_error is not None:
            request_id = message.get("id") if isinstance(message, dict) else None
            return jsonrpc_error(request_id, INVALID_REQUEST, envelope_error)

        method = message.get("method")
        if method is None:
            # 클라이언트가 보낸 응답 메시지예요. 서버가 먼저 요청한 적이 없으므로 버려요.
            return None

        is_notification = "id" not in message
        request_id = message.get("id")
        params = message.get("params")
        if params is None:
            params = {}

        if is_notification:
            ctx.logger.debug("mcp_notification", method=method)
            return None

        ctx.logger.info("mcp_request", method=method, request_id=request_id)
        handler = self._methods.get(method)
        if handler is None:
            return jsonrpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        if not isinstance(params, dict):
            return jsonrpc_error(request_id, INVALID_PARAMS, "params must be an object")

        try:
            result = await handler(params, ctx)
        except JsonRpcError as exc:
            return jsonrpc_error(request_id, exc.code, exc.message)
        except DomainError as exc:
            ctx.logger.warning("mcp_method_failed", method=method, error_code=exc.error_code, message=exc.message)
            return jsonrpc_error(request_id, INTERNAL_ERROR, exc.message)
        return jsonrpc_result(request_id, result)

    async def _initialize(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        protocol_version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else MCP_PROTOCOL_VERSION
        return {
            "protocolVersion": protocol_version,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {},
            },
            "serverInfo": {
                "name": self._server_name,
                "version": self._server_version,
            },
        }

    async def _ping(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        return {"tools": [tool.to_wire() for tool in self._registry.list_tools()]}

    async def _call_tool(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise JsonRpcError(INVALID_PARAMS, "tools/call requires a tool name")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise JsonRpcError(INVALID_PARAMS, "tools/call arguments must be an object")

        response = await self._registry.dispatch(ToolCallRequest(tool_name=name, arguments=arguments), ctx)
        return response.to_wire()

    async def _list_resources(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        return {"resources": [resource.to_wire() for resource in self._resources.list_resources()]}

    async def _list_resource_templates(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        return {"resourceTemplates": [template.to_wire() for template in self._resources.list_templates()]}

    async def _read_resource(self, params: dict[str, Any], ctx: RequestContext) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise JsonRpcError(INVALID_PARAMS, "resources/read requires a uri")
        try:
            return await self._resources.read(uri)
        except UnknownResourceError as exc:
            raise JsonRpcError(INVALID_PARAMS, str(exc)) from exc


def _envelope_error(message: Any) -> str | None:
    if not isinstance(message, dict):
        return "Invalid Request: message must be an object"
    if message.get("jsonrpc") != JSONRPC_VERSION:
        return "Invalid Request: jsonrpc must be '2.0'"
    method = message.get("method")
    if method is None:
        if "result" in message or "error" in message:
            return None
        return "Invalid Request: method is required"
    if not isinstance(method, str):
        return "Invalid Request: method must be a string"
    return None
