from dataclasses import dataclass, field


@dataclass(frozen=True)
class DocumentRecord:
    """One result row returned by the validation API."""

    document_id: str = ""
    content_id: str = ""
    title: str = ""
    status: str = ""
    lookup_id: str = ""

    @property
    def is_expired(self) -> bool:
        return self.status.strip().lower() == "expired"

    @property
    def is_not_found(self) -> bool:
        return self.status.strip().lower().replace(" ", "") in {"notfound", "missing"}


@dataclass(frozen=True)
class ApiResponse:
    """Output of one validation call."""

    version: str = ""
    changes: str = ""
    results: list[DocumentRecord] = field(default_factory=list)

    def find(self, lookup_id: str) -> DocumentRecord | None:
        """Return the record answering lookup_id.

        Records are matched on their lookup id first, then on document id and
        content id, all case-insensitively.
        """
        key = lookup_id.upper()
        for attr in ("lookup_id", "document_id", "content_id"):
            for record in self.results:
                if getattr(record, attr).upper() == key:
                    return record
        return None
