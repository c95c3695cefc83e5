import threading

from bulk_editor.validation.models import DocumentRecord


class LookupCache:
    """Thread-safe memo of lookup id -> record for one batch run.

    A stored ``None`` records an id the API answered without a match. Ids the
    API could not answer at all are kept apart with their error message, so a
    failed id costs one retry schedule per batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, DocumentRecord | None] = {}
        self._failures: dict[str, str] = {}

    def get_many(self, lookup_ids: list[str]) -> tuple[dict[str, DocumentRecord | None], list[str]]:
        """Split ids into cached answers and ids still to be fetched.

        Failed ids are in neither part; read them with ``get_failures``.
        """
        found: dict[str, DocumentRecord | None] = {}
        missing: list[str] = []
        with self._lock:
            for lookup_id in lookup_ids:
                if lookup_id in self._entries:
                    found[lookup_id] = self._entries[lookup_id]
                elif lookup_id not in self._failures:
                    missing.append(lookup_id)
        return found, missing

    def get_failures(self, lookup_ids: list[str]) -> dict[str, str]:
        with self._lock:
            return {i: self._failures[i] for i in lookup_ids if i in self._failures}

    def put_many(self, entries: dict[str, DocumentRecord | None]) -> None:
        with self._lock:
            self._entries.update(entries)

    def put_failures(self, lookup_ids: list[str], message: str) -> None:
        with self._lock:
            for lookup_id in lookup_ids:
                self._failures[lookup_id] = message

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._failures.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
