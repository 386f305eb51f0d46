"""도구 그룹의 추상 기반 클래스예요.

새 그룹을 추가하려면 `ToolGroup`을 상속하고 `tools`와 `handlers`를 구현하면 돼요.
인자 검증과 예외 변환은 기반 클래스가 맡으므로, 각 핸들러는 원격 호출과
결과 변환에만 집중하면 돼요.
"""

from __future__ import annotations

import abc
import json
import traceback
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from frappe_mcp.app.frappe_client import FrappeClient, unwrap_message
from frappe_mcp.app.mcp_protocol import ToolCallRequest, ToolCallResponse, ToolDescriptor
from frappe_mcp.app.request_context import RequestContext

ToolHandler = Callable[[dict[str, Any], RequestContext], Awaitable[ToolCallResponse]]

MISSING_ARGUMENTS_MESSAGE = "Missing arguments for tool call"


class ToolGroup(abc.ABC):
    """같은 원격 영역을 다루는 도구 묶음이에요.

    확장 방법:
        1. `ToolGroup`을 상속하는 클래스를 만들어요.
        2. `name`과 `tools`(도구 설명자 목록)를 정의해요.
        3. `handlers`에서 도구 이름 → 핸들러 코루틴 매핑을 반환해요.
        4. `ToolRegistry.register()`로 등록하면 끝이에요.
    """

    name: str = "tool"
    include_traceback: bool = False

    def __init__(self, client: FrappeClient) -> None:
        self._client = client

    @property
    @abc.abstractmethod
    def tools(self) -> tuple[ToolDescriptor, ...]:
        """그룹이 소유한 도구 설명자 목록이에요. 순서가 곧 목록 노출 순서예요."""

    @property
    @abc.abstractmethod
    def handlers(self) -> Mapping[str, ToolHandler]:
        """도구 이름별 핸들러예요."""

    def tool_names(self) -> list[str]:
        return [tool.name for tool in self.tools]

    async def handle(self, request: ToolCallRequest, ctx: RequestContext) -> ToolCallResponse:
        """도구 호출 하나를 처리해요. 어떤 경우에도 예외를 밖으로 던지지 않아요."""
        descriptor = next((tool for tool in self.tools if tool.name == request.tool_name), None)
        handler = self.handlers.get(request.tool_name)
        if descriptor is None or handler is None:
            return ToolCallResponse.error(f"{self.name} group doesn't handle tool: {request.tool_name}")

        required = required_keys(descriptor)
        arguments = request.arguments
        if arguments is None:
            if required:
                return ToolCallResponse.error(MISSING_ARGUMENTS_MESSAGE)
            arguments = {}

        missing = missing_required(arguments, required)
        if missing:
            return ToolCallResponse.error(missing_parameters_message(missing))

        ctx.logger.info("tool_call", group=self.name, tool=request.tool_name)
        try:
            return await handler(arguments, ctx)
        except Exception as exc:
            ctx.logger.exception("tool_call_failed", group=self.name, tool=request.tool_name, error=str(exc))
            return ToolCallResponse.error(self._format_error(exc))

    def _format_error(self, exc: Exception) -> str:
        text = f"Error: {_error_message(exc)}"
        if self.include_traceback:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
            text = f"{text}\n\nStack: {stack}"
        return text


def required_keys(descriptor: ToolDescriptor) -> list[str]:
    required = descriptor.input_schema.get("required", [])
    return [key for key in required if isinstance(key, str)]


def missing_required(arguments: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    missing: list[str] = []
    for key in required:
        value = arguments.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(key)
    return missing


def missing_parameters_message(missing: list[str]) -> str:
    label = "parameter" if len(missing) == 1 else "parameters"
    return f"Missing required {label}: {', '.join(missing)}"


def json_response(payload: Any) -> ToolCallResponse:
    """결과 값을 그대로 들여쓴 JSON 텍스트 블록으로 감싸요.

    결과에 ``success`` 플래그가 있으면 그 값으로 오류 여부를 정해요.
    """
    is_error = False
    if isinstance(payload, dict) and "success" in payload:
        is_error = not bool(payload["success"])
    return ToolCallResponse.text(format_json(payload), is_error=is_error)


def remote_response(result: Any) -> ToolCallResponse:
    """`call_method` 원본 결과의 ``message`` 봉투를 한 번만 벗기고 JSON 블록으로 감싸요.

    `FrappeClient` 래퍼 메서드의 결과는 이미 벗겨져 있으니 `json_response`를 써요.
    """
    return json_response(unwrap_message(result))


def format_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def optional_value(arguments: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """비어 있는 값(None, 빈 문자열)은 기본값으로 바꿔요."""
    value = arguments.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value


def _error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__
