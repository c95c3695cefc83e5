"""Validates a raw validation API body and builds an ApiResponse."""

from typing import Any

from bulk_editor.validation.exceptions import LookupResponseError
from bulk_editor.validation.models import ApiResponse, DocumentRecord

_RECORD_FIELDS = {
    "document_id": "Document_ID",
    "content_id": "Content_ID",
    "title": "Title",
    "status": "Status",
    "lookup_id": "Lookup_ID",
}


def validate_and_build(data: Any) -> ApiResponse:
    """Validate a parsed JSON body and build an ApiResponse.

    Field names are accepted exactly as the API sends them (``Version``,
    ``Results[].Document_ID`` ...) and fall back to a case-insensitive match.

    Raises:
        LookupResponseError: on any shape violation.
    """
    if not isinstance(data, dict):
        raise LookupResponseError("Response body must be a JSON object")
    results = _get(data, "Results")
    if results is None:
        results = []
    if not isinstance(results, list):
        raise LookupResponseError("'Results' must be a list")
    return ApiResponse(
        version=_as_text(_get(data, "Version"), "Version"),
        changes=_as_text(_get(data, "Changes"), "Changes"),
        results=[_build_record(item, i) for i, item in enumerate(results)],
    )


def _build_record(raw: Any, index: int) -> DocumentRecord:
    if not isinstance(raw, dict):
        raise LookupResponseError(f"Result at index {index} must be an object")
    values = {
        attr: _as_text(_get(raw, name), f"Results[{index}].{name}")
        for attr, name in _RECORD_FIELDS.items()
    }
    return DocumentRecord(**values)


def _get(data: dict[str, Any], name: str) -> Any:
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def _as_text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise LookupResponseError(f"'{name}' must be a string")
    return str(value)
