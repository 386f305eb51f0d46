from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class BlueprintTrigger(BaseModel):
    model_config = ConfigDict(extra="allow")

    doctype: str = Field(min_length=1)
    event: str = Field(min_length=1)


class BlueprintAction(BaseModel):
    model_config = ConfigDict(extra="allow")

    action_type: str = Field(min_length=1)
    execution_order: int | None = Field(default=None, ge=0)
    parameters: dict[str, Any] = Field(default_factory=dict)


class BlueprintDefinition(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    description: str | None = None
    triggers: list[BlueprintTrigger] = Field(min_length=1)
    actions: list[BlueprintAction] = Field(min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)


TRIGGER_LIST = TypeAdapter(list[BlueprintTrigger])
ACTION_LIST = TypeAdapter(list[BlueprintAction])
