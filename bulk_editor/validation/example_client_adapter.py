"""Example lookup client adapter.

Answers every lookup with a canned active record and makes no network calls.
Useful for local runs and tests, and as a template for new API adapters:
implement BaseLookupClient and register the provider in LookupClientFactory.
"""

import re
from typing import ClassVar

from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.models import ApiResponse, DocumentRecord

_TRAILING_DIGITS = re.compile(r"([0-9]{5,6})$")


class ExampleLookupClient(BaseLookupClient):
    """Example adapter that resolves every id to an active document."""

    VERSION: ClassVar[str] = "example"

    def lookup(self, lookup_ids: list[str]) -> ApiResponse:
        records = [self._record_for(lookup_id) for lookup_id in lookup_ids]
        return ApiResponse(
            version=self.VERSION,
            changes="Example mode - canned data",
            results=records,
        )

    @staticmethod
    def _record_for(lookup_id: str) -> DocumentRecord:
        match = _TRAILING_DIGITS.search(lookup_id)
        content_id = match.group(1) if match else ""
        return DocumentRecord(
            document_id=lookup_id,
            content_id=content_id,
            title=f"Document {lookup_id}",
            status="Active",
            lookup_id=lookup_id,
        )
