"""도구 그룹을 등록하고 도구 호출을 소유 그룹으로 보내는 레지스트리예요."""

from __future__ import annotations

from frappe_mcp.app.mcp_protocol import ToolCallRequest, ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.tools.base import ToolGroup
from libs.common.errors import ConfigurationError

PING_TOOL = ToolDescriptor(
    name="ping",
    description="A simple tool to check if the server is responding.",
    input_schema={"type": "object", "properties": {}},
)


class ToolRegistry:
    """도구 이름 → 소유 그룹 매핑을 하나의 딕셔너리로 관리해요.

    같은 이름을 두 그룹이 선언하면 등록 시점에 `ConfigurationError`를 던져요.
    기동이 끝난 뒤에는 읽기 전용이라 요청 간 동기화가 필요 없어요.

    사용법::

        registry = ToolRegistry()
        registry.register(DocumentToolGroup(client))
        registry.register(SchemaToolGroup(client, hints))

        # tools/list 응답에 실을 설명자 목록 (ping은 항상 마지막)
        descriptors = registry.list_tools()

        # 이름으로 도구 실행
        response = await registry.dispatch(ToolCallRequest(tool_name="ping"), ctx)
    """

    def __init__(self) -> None:
        self._groups: list[ToolGroup] = []
        self._owners: dict[str, ToolGroup] = {}

    def register(self, group: ToolGroup) -> None:
        """그룹을 등록해요. 이미 등록된 도구 이름이 있으면 아무것도 바꾸지 않고 실패해요."""
        seen: set[str] = set()
        for name in group.tool_names():
            if name == PING_TOOL.name:
                raise ConfigurationError(f"Tool name '{name}' is reserved (declared by group '{group.name}').")
            if name in seen:
                raise ConfigurationError(f"Tool '{name}' is declared twice in group '{group.name}'.")
            owner = self._owners.get(name)
            if owner is not None:
                raise ConfigurationError(
                    f"Tool '{name}' is declared by both '{owner.name}' and '{group.name}' groups."
                )
            seen.add(name)

        self._groups.append(group)
        for name in seen:
            self._owners[name] = group

    def get_group(self, tool_name: str) -> ToolGroup | None:
        return self._owners.get(tool_name)

    def list_tools(self) -> list[ToolDescriptor]:
        descriptors = [tool for group in self._groups for tool in group.tools]
        descriptors.append(PING_TOOL)
        return descriptors

    def list_names(self) -> list[str]:
        return [tool.name for tool in self.list_tools()]

    async def dispatch(self, request: ToolCallRequest, ctx: RequestContext) -> ToolCallResponse:
        """소유 그룹에 호출을 넘겨요. 인자 검증은 그룹이 맡아요."""
        if request.tool_name == PING_TOOL.name:
            return ToolCallResponse.text("pong")

        group = self._owners.get(request.tool_name)
        if group is None:
            ctx.logger.warning("unknown_tool", tool=request.tool_name)
            return ToolCallResponse.error(f"Unknown tool: {request.tool_name}")
        return await group.handle(request, ctx)

    def __len__(self) -> int:
        return len(self._owners) + 1

    def __contains__(self, name: str) -> bool:
        return name == PING_TOOL.name or name in self._owners
