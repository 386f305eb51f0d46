"""기본 도구 그룹을 정해진 순서로 등록한 ToolRegistry를 생성하는 팩토리예요."""

from __future__ import annotations

from frappe_mcp.app.frappe_client import FrappeClient
from frappe_mcp.app.static_hints import HintStore
from frappe_mcp.app.tools.blueprint import BlueprintToolGroup
from frappe_mcp.app.tools.doctype_structure import DoctypeStructureToolGroup
from frappe_mcp.app.tools.document import DocumentToolGroup
from frappe_mcp.app.tools.helpers import HelperToolGroup
from frappe_mcp.app.tools.registry import ToolRegistry
from frappe_mcp.app.tools.schema import SchemaToolGroup
from frappe_mcp.app.tools.workflow import WorkflowToolGroup


def build_default_tool_registry(*, client: FrappeClient, hints: HintStore) -> ToolRegistry:
    """모든 기본 그룹이 등록된 `ToolRegistry`를 생성해요.

    등록 순서가 곧 tools/list 노출 순서예요:
    document → schema → helper → blueprint → doctype_structure → workflow → ping.

    Args:
        client: 모든 그룹이 공유하는 원격 호출 어댑터예요.
        hints: 스키마 그룹이 사용하는 정적 힌트 저장소예요.

    Raises:
        ConfigurationError: 두 그룹이 같은 도구 이름을 선언한 경우예요.
    """
    registry = ToolRegistry()
    registry.register(DocumentToolGroup(client))
    registry.register(SchemaToolGroup(client, hints))
    registry.register(HelperToolGroup(client))
    registry.register(BlueprintToolGroup(client))
    registry.register(DoctypeStructureToolGroup(client))
    registry.register(WorkflowToolGroup(client))
    return registry
