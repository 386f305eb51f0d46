from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from libs.common.jsonrpc import JSONRPC_VERSION

MCP_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = (
    "2025-06-18",
    "2025-03-26",
    "2024-11-05",
)

__all__ = [
    "JSONRPC_VERSION",
    "MCP_PROTOCOL_VERSION",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "McpResource",
    "McpResourceTemplate",
    "TextContent",
    "ToolCallRequest",
    "ToolCallResponse",
    "ToolDescriptor",
]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(slots=True)
class ToolCallRequest:
    tool_name: str
    arguments: dict[str, Any] | None = None


@dataclass(slots=True)
class TextContent:
    text: str
    type: str = "text"


@dataclass(slots=True)
class ToolCallResponse:
    content: list[TextContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> ToolCallResponse:
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @classmethod
    def error(cls, text: str) -> ToolCallResponse:
        return cls(content=[TextContent(text=text)], is_error=True)

    def to_wire(self) -> dict[str, Any]:
        return {
            "content": [{"type": item.type, "text": item.text} for item in self.content],
            "isError": self.is_error,
        }


@dataclass(frozen=True, slots=True)
class McpResource:
    uri: str
    name: str
    description: str | None
    mime_type: str | None = "application/json"

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"uri": self.uri, "name": self.name}
        if self.description:
            wire["description"] = self.description
        if self.mime_type:
            wire["mimeType"] = self.mime_type
        return wire


@dataclass(frozen=True, slots=True)
class McpResourceTemplate:
    uri_template: str
    name: str
    description: str | None
    mime_type: str | None = "application/json"

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"uriTemplate": self.uri_template, "name": self.name}
        if self.description:
            wire["description"] = self.description
        if self.mime_type:
            wire["mimeType"] = self.mime_type
        return wire
