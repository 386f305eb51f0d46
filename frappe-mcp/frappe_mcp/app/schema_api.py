from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from frappe_mcp.app.frappe_client import FrappeClient
from libs.common.errors import RemoteCallError, ValidationError
from libs.common.logging import get_logger

logger = get_logger("frappe_mcp.schema_api")

LINK_OPTIONS_LIMIT = 50
ALL_DOCTYPES_LIMIT = 1000
ALL_MODULES_LIMIT = 100


@dataclass(slots=True)
class FieldOption:
    value: str
    label: str


async def get_doctype_schema(client: FrappeClient, doctype: str) -> dict[str, Any]:
    if not doctype:
        raise ValidationError("DocType name is required")

    try:
        doctype_doc = await client.get_document("DocType", doctype)
    except RemoteCallError as exc:
        raise RemoteCallError(
            f"Could not retrieve schema for DocType {doctype}: {exc.message}",
            method=exc.method,
            status_code=exc.status_code,
        ) from exc

    fields = doctype_doc.get("fields")
    permissions = doctype_doc.get("permissions")
    return {
        "name": doctype,
        "label": doctype_doc.get("name") or doctype,
        "description": doctype_doc.get("description"),
        "module": doctype_doc.get("module"),
        "issingle": doctype_doc.get("issingle") == 1,
        "istable": doctype_doc.get("istable") == 1,
        "custom": doctype_doc.get("custom") == 1,
        "fields": fields if isinstance(fields, list) else [],
        "permissions": permissions if isinstance(permissions, list) else [],
        "autoname": doctype_doc.get("autoname"),
        "name_case": doctype_doc.get("name_case"),
    }


async def get_field_options(
    client: FrappeClient,
    doctype: str,
    fieldname: str,
    filters: dict[str, Any] | None = None,
) -> list[FieldOption]:
    """Link/Select 필드에서 고를 수 있는 값 목록을 반환해요.

    Link 필드는 연결된 DocType 문서를 최대 50개까지 조회하고, 제목 필드가 있으면
    라벨에 함께 붙여요. 제목 필드 조회가 실패하면 이름만으로 다시 조회해요.
    Select 필드는 옵션 문자열을 줄 단위로 나눠요. 그 외 타입은 빈 목록이에요.
    """
    if not doctype:
        raise ValidationError("DocType name is required")
    if not fieldname:
        raise ValidationError("Field name is required")

    schema = await get_doctype_schema(client, doctype)
    field = next((item for item in schema["fields"] if isinstance(item, dict) and item.get("fieldname") == fieldname), None)
    if field is None:
        raise ValidationError(f"Field {fieldname} not found in DocType {doctype}")

    fieldtype = field.get("fieldtype")
    options = field.get("options")

    if fieldtype == "Link":
        if not isinstance(options, str) or not options:
            raise ValidationError(f"Link field {fieldname} has no options (linked DocType) specified")
        return await _link_options(client, options, filters)

    if fieldtype == "Select":
        if not isinstance(options, str) or not options:
            return []
        return [
            FieldOption(value=option.strip(), label=option.strip())
            for option in options.split("\n")
            if option.strip()
        ]

    logger.debug("field_options_unsupported_type", doctype=doctype, fieldname=fieldname, fieldtype=fieldtype)
    return []


async def _link_options(
    client: FrappeClient,
    linked_doctype: str,
    filters: dict[str, Any] | None,
) -> list[FieldOption]:
    try:
        linked_schema = await get_doctype_schema(client, linked_doctype)
        title_field = next(
            (
                item
                for item in linked_schema["fields"]
                if isinstance(item, dict) and (item.get("fieldname") == "title" or item.get("bold") == 1)
            ),
            None,
        )
        title_fieldname = title_field.get("fieldname") if title_field else None
        display_fields = ["name", title_fieldname] if title_fieldname else ["name"]
        rows = await client.get_list(
            linked_doctype,
            fields=display_fields,
            filters=filters,
            limit=LINK_OPTIONS_LIMIT,
        )
    except RemoteCallError as exc:
        logger.warning("link_options_fallback", doctype=linked_doctype, error=exc.message)
        rows = await client.get_list(linked_doctype, fields=["name"], filters=filters, limit=LINK_OPTIONS_LIMIT)
        title_fieldname = None

    options: list[FieldOption] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = str(row.get("name", ""))
        title = row.get(title_fieldname) if title_fieldname else None
        label = f"{name} - {title}" if title else name
        options.append(FieldOption(value=name, label=label))
    return options


async def get_all_doctypes(client: FrappeClient) -> list[str]:
    rows = await client.get_list("DocType", fields=["name"], limit=ALL_DOCTYPES_LIMIT)
    return [str(row["name"]) for row in rows if isinstance(row, dict) and row.get("name")]


async def get_all_modules(client: FrappeClient) -> list[str]:
    rows = await client.get_list("Module Def", fields=["name", "module_name"], limit=ALL_MODULES_LIMIT)
    modules: list[str] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        name = row.get("name") or row.get("module_name")
        if name:
            modules.append(str(name))
    return modules


def field_options_to_dicts(options: list[FieldOption]) -> list[dict[str, str]]:
    return [asdict(option) for option in options]
