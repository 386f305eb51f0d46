"""BL Blueprint(비즈니스 로직 워크플로우)를 만들고 관리하는 도구예요.

실제 구현은 모두 원격 ``workflow_tools`` 모듈에 있어요. 여기서는 트리거와 액션을
구조화된 값으로 받아 pydantic으로 모양을 검증한 뒤 그대로 전달해요.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from frappe_mcp.app.mcp_protocol import ToolCallResponse, ToolDescriptor
from frappe_mcp.app.models import ACTION_LIST, TRIGGER_LIST, BlueprintDefinition
from frappe_mcp.app.request_context import RequestContext
from frappe_mcp.app.tools.base import ToolGroup, ToolHandler, json_response, optional_value, remote_response

WORKFLOW_TOOLS_MODULE = "sentra_core.builder.tools.workflow_tools"

_TRIGGERS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "description": "Trigger definitions. Each trigger needs doctype and event (e.g. 'after_insert', 'on_update').",
    "items": {
        "type": "object",
        "properties": {
            "doctype": {"type": "string"},
            "event": {"type": "string"},
        },
        "required": ["doctype", "event"],
        "additionalProperties": True,
    },
}

_ACTIONS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "description": "Action definitions. Each action needs action_type; execution_order and parameters are optional.",
    "items": {
        "type": "object",
        "properties": {
            "action_type": {"type": "string"},
            "execution_order": {"type": "number"},
            "parameters": {"type": "object", "additionalProperties": True},
        },
        "required": ["action_type"],
        "additionalProperties": True,
    },
}

_PARAMETERS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "description": "Blueprint-level variables (optional)",
    "additionalProperties": True,
}

_BLUEPRINT_ID_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"blueprint_id": {"type": "string", "description": "Name of the blueprint"}},
    "required": ["blueprint_id"],
}

WORKFLOW_TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="create_blueprint",
        description="Create a new BL Blueprint (business logic workflow) with triggers and actions",
        input_schema={
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Blueprint name (alphanumeric + underscores, e.g., 'welcome_customer')",
                },
                "triggers": _TRIGGERS_SCHEMA,
                "actions": _ACTIONS_SCHEMA,
                "description": {
                    "type": "string",
                    "description": "Human-readable description of what this workflow does (optional)",
                },
                "parameters": _PARAMETERS_SCHEMA,
            },
            "required": ["name", "triggers", "actions"],
        },
    ),
    ToolDescriptor(
        name="read_blueprint",
        description="Get an existing blueprint configuration",
        input_schema=_BLUEPRINT_ID_SCHEMA,
    ),
    ToolDescriptor(
        name="update_blueprint",
        description="Update an existing blueprint configuration. Omitted values keep their current setting.",
        input_schema={
            "type": "object",
            "properties": {
                "blueprint_id": {"type": "string", "description": "Name of the blueprint to update"},
                "triggers": _TRIGGERS_SCHEMA,
                "actions": _ACTIONS_SCHEMA,
                "description": {"type": "string", "description": "New description (optional)"},
                "parameters": _PARAMETERS_SCHEMA,
            },
            "required": ["blueprint_id"],
        },
    ),
    ToolDescriptor(
        name="delete_blueprint",
        description="Delete a blueprint from the system",
        input_schema=_BLUEPRINT_ID_SCHEMA,
    ),
    ToolDescriptor(
        name="list_workflow_blueprints",
        description="List blueprints with their workflow configuration summary (default filter: is_active=1)",
        input_schema={
            "type": "object",
            "properties": {
                "filters": {
                    "type": "object",
                    "description": "Optional filters for blueprint query (default: is_active=1)",
                    "additionalProperties": True,
                },
            },
        },
    ),
    ToolDescriptor(
        name="validate_blueprint",
        description="Validate a complete blueprint structure before creation",
        input_schema={
            "type": "object",
            "properties": {
                "blueprint": {
                    "type": "object",
                    "description": "Complete blueprint with name, triggers, actions, and optional description/parameters",
                    "additionalProperties": True,
                },
            },
            "required": ["blueprint"],
        },
    ),
    ToolDescriptor(
        name="get_available_events",
        description="Get list of valid Frappe event types for blueprint triggers "
        "(events like after_insert, on_update, before_save, etc.)",
        input_schema={"type": "object", "properties": {}},
    ),
    ToolDescriptor(
        name="get_available_actions",
        description="Get list of valid action types for blueprint actions "
        "(CRUD operations, conditionals, notifications, etc.)",
        input_schema={"type": "object", "properties": {}},
    ),
)


class WorkflowToolGroup(ToolGroup):
    name = "workflow"
    include_traceback = True

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return WORKFLOW_TOOLS

    @property
    def handlers(self) -> Mapping[str, ToolHandler]:
        return {
            "create_blueprint": self._create_blueprint,
            "read_blueprint": self._read_blueprint,
            "update_blueprint": self._update_blueprint,
            "delete_blueprint": self._delete_blueprint,
            "list_workflow_blueprints": self._list_blueprints,
            "validate_blueprint": self._validate_blueprint,
            "get_available_events": self._get_available_events,
            "get_available_actions": self._get_available_actions,
        }

    async def _remote(self, util_name: str, params: dict[str, Any]) -> ToolCallResponse:
        return remote_response(await self._client.call_method(f"{WORKFLOW_TOOLS_MODULE}.{util_name}", params))

    async def _create_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        try:
            triggers = _dump_list(TRIGGER_LIST, args["triggers"])
            actions = _dump_list(ACTION_LIST, args["actions"])
            parameters = _parameters(args)
        except PydanticValidationError as exc:
            return ToolCallResponse.error(f"Invalid blueprint definition: {_describe(exc)}")
        except ValueError as exc:
            return ToolCallResponse.error(f"Invalid blueprint definition: {exc}")

        return await self._remote(
            "create_blueprint_util",
            {
                "name": args["name"],
                "triggers": triggers,
                "actions": actions,
                "description": optional_value(args, "description"),
                "parameters": parameters,
            },
        )

    async def _read_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._remote("read_blueprint_util", {"blueprint_id": args["blueprint_id"]})

    async def _update_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        try:
            triggers = _dump_list(TRIGGER_LIST, args["triggers"]) if args.get("triggers") else None
            actions = _dump_list(ACTION_LIST, args["actions"]) if args.get("actions") else None
            parameters = _parameters(args)
        except PydanticValidationError as exc:
            return ToolCallResponse.error(f"Invalid blueprint definition: {_describe(exc)}")
        except ValueError as exc:
            return ToolCallResponse.error(f"Invalid blueprint definition: {exc}")

        return await self._remote(
            "update_blueprint_util",
            {
                "blueprint_id": args["blueprint_id"],
                "triggers": triggers,
                "actions": actions,
                "description": optional_value(args, "description"),
                "parameters": parameters,
            },
        )

    async def _delete_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._remote("delete_blueprint_util", {"blueprint_id": args["blueprint_id"]})

    async def _list_blueprints(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._remote("list_blueprints_util", {"filters": optional_value(args, "filters")})

    async def _validate_blueprint(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        try:
            definition = BlueprintDefinition.model_validate(args["blueprint"])
        except PydanticValidationError as exc:
            return json_response({"success": False, "valid": False, "errors": _error_list(exc)})
        return await self._remote(
            "validate_blueprint_util",
            {"blueprint_json": definition.model_dump(exclude_none=True)},
        )

    async def _get_available_events(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._remote("get_available_events_util", {})

    async def _get_available_actions(self, args: dict[str, Any], ctx: RequestContext) -> ToolCallResponse:
        return await self._remote("get_available_actions_util", {})


def _dump_list(adapter: TypeAdapter[Any], value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise ValueError("expected an array")
    return [item.model_dump(exclude_none=True) for item in adapter.validate_python(value)]


def _parameters(args: dict[str, Any]) -> dict[str, Any] | None:
    value = optional_value(args, "parameters")
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("parameters must be an object")
    return value


def _error_list(exc: PydanticValidationError) -> list[str]:
    errors: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "blueprint"
        errors.append(f"{location}: {error.get('msg', 'invalid value')}")
    return errors


def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(_error_list(exc))
