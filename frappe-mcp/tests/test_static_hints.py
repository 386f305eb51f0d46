from __future__ import annotations

import json
from pathlib import Path

from frappe_mcp.app.settings import DEFAULT_HINTS_DIR
from frappe_mcp.app.static_hints import HintStore


def _write(directory: Path, name: str, content: str) -> None:
    (directory / name).write_text(content, encoding="utf-8")


def test_malformed_file_is_skipped_and_valid_file_loads(tmp_path: Path) -> None:
    _write(tmp_path, "broken.json", "[{not json")
    _write(
        tmp_path,
        "good.json",
        json.dumps(
            [
                {"type": "doctype", "target": "Sales Order", "hint": "Submit after adding items."},
                {"type": "doctype", "target": "Sales Order", "hint": "Set delivery_date on every row."},
                {
                    "type": "workflow",
                    "target": "Quote to order",
                    "id": "quote-to-order",
                    "steps": ["Create Quotation", "Make Sales Order"],
                    "related_doctypes": ["Quotation", "Sales Order"],
                },
            ]
        ),
    )

    store = HintStore()
    snapshot = store.load(tmp_path)

    assert store.doctype_count == 1
    assert store.workflow_count == 1
    assert [hint.hint for hint in store.doctype_hints("Sales Order")] == [
        "Submit after adding items.",
        "Set delivery_date on every row.",
    ]
    assert snapshot.workflow["Quote to order"][0].steps == ["Create Quotation", "Make Sales Order"]
    assert [hint.target for hint in store.workflows_for_doctype("Quotation")] == ["Quote to order"]


def test_non_list_file_and_invalid_records_are_ignored(tmp_path: Path) -> None:
    _write(tmp_path, "object.json", json.dumps({"type": "doctype", "target": "Item", "hint": "ignored"}))
    _write(
        tmp_path,
        "mixed.json",
        json.dumps(
            [
                "not a record",
                {"type": "doctype", "target": "Item"},
                {"type": "workflow", "target": "No steps"},
                {"type": "unknown", "target": "Item", "hint": "x"},
                {"type": "doctype", "target": "Item", "hint": "Keep item_code stable."},
            ]
        ),
    )

    store = HintStore()
    store.load(tmp_path)

    assert [hint.to_dict() for hint in store.doctype_hints("Item")] == [
        {"type": "doctype", "target": "Item", "hint": "Keep item_code stable."},
    ]
    assert store.workflow_count == 0


def test_missing_directory_yields_empty_store(tmp_path: Path) -> None:
    store = HintStore()
    store.load(tmp_path / "does-not-exist")

    assert store.doctype_count == 0
    assert store.doctype_hints("Customer") == []


def test_reload_replaces_previous_snapshot(tmp_path: Path) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    _write(first, "a.json", json.dumps([{"type": "doctype", "target": "Customer", "hint": "old"}]))
    _write(second, "b.json", json.dumps([{"type": "doctype", "target": "Supplier", "hint": "new"}]))

    store = HintStore()
    store.load(first)
    store.load(second)

    assert store.doctype_hints("Customer") == []
    assert store.doctype_hints("Supplier")[0].hint == "new"


def test_bundled_hints_load() -> None:
    store = HintStore()
    store.load(DEFAULT_HINTS_DIR)

    assert store.doctype_hints("DocType")
    assert [hint.target for hint in store.workflows_for_doctype("WhatsApp Message")] == ["Notify a customer"]
