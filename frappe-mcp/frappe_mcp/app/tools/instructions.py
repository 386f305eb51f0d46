"""`get_api_instructions`가 돌려주는 정적 사용 안내문이에요."""

from __future__ import annotations

INSTRUCTIONS: dict[str, dict[str, str]] = {
    "DOCUMENT_OPERATIONS": {
        "CREATE": (
            "Create a document with create_document.\n"
            "- Call get_required_fields first and include every required field in values.\n"
            "- Link fields take the exact name of the linked document.\n"
            "- Table fields take an array of row objects, each with the child table's fields."
        ),
        "GET": (
            "Read a document with get_document.\n"
            "- Document names are case-sensitive.\n"
            "- Pass fields to limit the returned keys."
        ),
        "UPDATE": (
            "Update a document with update_document.\n"
            "- Only the keys in values are changed.\n"
            "- Submitted documents (docstatus=1) usually cannot be edited."
        ),
        "DELETE": (
            "Delete a document with delete_document.\n"
            "- Deletion fails when other documents link to it.\n"
            "- Submitted documents must be cancelled first."
        ),
        "LIST": (
            "List documents with list_documents.\n"
            "- filters accept {\"field\": value} or {\"field\": [\"operator\", value]}.\n"
            "- Use limit and limit_start for pagination, order_by for sorting."
        ),
    },
    "SCHEMA_OPERATIONS": {
        "GET_SCHEMA": (
            "Inspect a DocType with get_doctype_schema.\n"
            "- The result lists fields with fieldname, fieldtype, reqd and options."
        ),
        "GET_FIELD_OPTIONS": (
            "Resolve valid values with get_field_options.\n"
            "- Link fields return documents of the linked DocType (up to 50).\n"
            "- Select fields return the configured option list."
        ),
        "FIND_DOCTYPES": (
            "Discover DocTypes with find_doctypes, get_module_list and get_doctypes_in_module.\n"
            "- Use check_doctype_exists before creating documents of an unfamiliar DocType."
        ),
    },
    "ADVANCED_OPERATIONS": {
        "CALL_METHOD": (
            "Call any whitelisted server method with call_method.\n"
            "- method is the dotted Python path, e.g. frappe.client.get_count.\n"
            "- params is passed as the JSON request body."
        ),
        "DOCTYPE_STRUCTURE": (
            "Change schemas with create_doctype, create_child_table, add_fields_to_doctype and delete_doctype.\n"
            "- Fieldnames are snake_case and must not use reserved names "
            "(name, owner, creation, modified, docstatus, idx, parent).\n"
            "- Only custom DocTypes can be deleted."
        ),
        "BLUEPRINTS": (
            "Manage business-logic workflows with the blueprint tools.\n"
            "- Call get_available_events and get_available_actions first.\n"
            "- Run validate_blueprint before create_blueprint."
        ),
    },
    "BEST_PRACTICES": {
        "ERROR_HANDLING": (
            "When a tool returns an error, read the remote message before retrying.\n"
            "- Missing required fields and invalid links are the most common causes."
        ),
        "NAMING": (
            "Use get_naming_info to learn how documents of a DocType are named.\n"
            "- Naming series documents get their name on insert; do not pass name yourself."
        ),
    },
}


def get_instructions(category: str, operation: str) -> str:
    category_key = category.strip().upper()
    operation_key = operation.strip().upper()
    operations = INSTRUCTIONS.get(category_key)
    if operations is None:
        return f"No instructions found for category {category}. Available categories: {', '.join(INSTRUCTIONS)}"
    text = operations.get(operation_key)
    if text is None:
        return (
            f"No instructions found for operation {operation} in category {category_key}. "
            f"Available operations: {', '.join(operations)}"
        )
    return text
