"""DocType/워크플로우 사용 힌트를 JSON 파일에서 읽어 두는 저장소예요."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from libs.common.logging import get_logger

logger = get_logger("frappe_mcp.static_hints")

HINT_TYPE_DOCTYPE = "doctype"
HINT_TYPE_WORKFLOW = "workflow"


@dataclass(frozen=True, slots=True)
class Hint:
    type: str
    target: str
    hint: str | None = None
    id: str | None = None
    description: str | None = None
    steps: list[str] = field(default_factory=list)
    related_doctypes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "target": self.target}
        for key in ("hint", "id", "description"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.steps:
            data["steps"] = list(self.steps)
        if self.related_doctypes:
            data["related_doctypes"] = list(self.related_doctypes)
        return data


@dataclass(frozen=True, slots=True)
class HintSnapshot:
    doctype: dict[str, list[Hint]] = field(default_factory=dict)
    workflow: dict[str, list[Hint]] = field(default_factory=dict)


class HintStore:
    """힌트를 DocType 이름과 워크플로우 이름으로 조회할 수 있게 보관해요.

    `load`는 새 스냅샷을 끝까지 만든 뒤 한 번에 교체하므로,
    조회하는 쪽에서 절반만 채워진 상태를 볼 일이 없어요.
    """

    def __init__(self) -> None:
        self._snapshot = HintSnapshot()

    def load(self, directory: str | Path) -> HintSnapshot:
        hints_dir = Path(directory)
        doctype_map: dict[str, list[Hint]] = {}
        workflow_map: dict[str, list[Hint]] = {}

        if not hints_dir.is_dir():
            logger.warning("static_hints_dir_missing", path=str(hints_dir))
            self._snapshot = HintSnapshot()
            return self._snapshot

        files = sorted(hints_dir.glob("*.json"))
        for file_path in files:
            try:
                raw = json.loads(file_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                logger.warning("static_hint_file_skipped", file=file_path.name, error=str(exc))
                continue
            if not isinstance(raw, list):
                logger.warning("static_hint_file_skipped", file=file_path.name, error="top-level value is not a list")
                continue

            for item in raw:
                hint = _parse_hint(item)
                if hint is None:
                    continue
                target_map = doctype_map if hint.type == HINT_TYPE_DOCTYPE else workflow_map
                target_map.setdefault(hint.target, []).append(hint)

        snapshot = HintSnapshot(doctype=doctype_map, workflow=workflow_map)
        self._snapshot = snapshot
        logger.info(
            "static_hints_loaded",
            path=str(hints_dir),
            file_count=len(files),
            doctype_count=len(doctype_map),
            workflow_count=len(workflow_map),
        )
        return snapshot

    def doctype_hints(self, doctype: str) -> list[Hint]:
        return list(self._snapshot.doctype.get(doctype, []))

    def workflow_hints(self, workflow: str) -> list[Hint]:
        return list(self._snapshot.workflow.get(workflow, []))

    def workflows_for_doctype(self, doctype: str) -> list[Hint]:
        results: list[Hint] = []
        for hints in self._snapshot.workflow.values():
            for hint in hints:
                if doctype in hint.related_doctypes:
                    results.append(hint)
        return results

    @property
    def doctype_count(self) -> int:
        return len(self._snapshot.doctype)

    @property
    def workflow_count(self) -> int:
        return len(self._snapshot.workflow)


def _parse_hint(item: object) -> Hint | None:
    if not isinstance(item, dict):
        return None
    hint_type = item.get("type")
    target = item.get("target")
    if hint_type not in (HINT_TYPE_DOCTYPE, HINT_TYPE_WORKFLOW):
        return None
    if not isinstance(target, str) or not target:
        return None

    hint_text = item.get("hint")
    steps = item.get("steps")
    if hint_type == HINT_TYPE_DOCTYPE and not (isinstance(hint_text, str) and hint_text):
        return None
    if hint_type == HINT_TYPE_WORKFLOW and not isinstance(steps, list):
        return None

    related = item.get("related_doctypes")
    return Hint(
        type=hint_type,
        target=target,
        hint=hint_text if isinstance(hint_text, str) else None,
        id=_optional_str(item.get("id")),
        description=_optional_str(item.get("description")),
        steps=[step for step in steps if isinstance(step, str)] if isinstance(steps, list) else [],
        related_doctypes=[name for name in related if isinstance(name, str)] if isinstance(related, list) else [],
    )


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
