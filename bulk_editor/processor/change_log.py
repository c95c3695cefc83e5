from collections import Counter

from bulk_editor.processor.models import (
    ChangeEntry,
    ChangeLog,
    ChangeType,
    Document,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
)

NON_MUTATING_TYPES = frozenset(
    {
        ChangeType.INFORMATION,
        ChangeType.POSSIBLE_TITLE_CHANGE,
        ChangeType.ERROR,
        ChangeType.WARNING,
    }
)


class ChangeLogRecorder:
    """Append-only writer for one document's change log.

    Every hyperlink action goes through ``record_hyperlink_action`` so that the
    action on the hyperlink and its audit entry are always set together.
    """

    def __init__(self, document: Document) -> None:
        self._document = document

    @property
    def change_log(self) -> ChangeLog:
        return self._document.change_log

    def record(
        self,
        change_type: ChangeType,
        description: str,
        *,
        old_value: str = "",
        new_value: str = "",
        element_id: str = "",
        details: str = "",
        action: HyperlinkAction | None = None,
    ) -> ChangeEntry:
        entry = ChangeEntry(
            type=change_type,
            description=description,
            old_value=old_value,
            new_value=new_value,
            element_id=element_id,
            details=details,
            action=action,
        )
        self._document.change_log.changes.append(entry)
        return entry

    def record_hyperlink_action(
        self,
        hyperlink: Hyperlink,
        action: HyperlinkAction,
        change_type: ChangeType,
        description: str,
        *,
        old_value: str = "",
        new_value: str = "",
        details: str = "",
    ) -> ChangeEntry:
        if action == HyperlinkAction.NONE:
            raise ValueError("A recorded hyperlink action cannot be NONE")
        if hyperlink.status == HyperlinkStatus.PENDING:
            raise ValueError(
                f"Hyperlink {hyperlink.id} must be resolved before an action is taken"
            )
        hyperlink.action_taken = action
        return self.record(
            change_type,
            description,
            old_value=old_value,
            new_value=new_value,
            element_id=hyperlink.id,
            details=details,
            action=action,
        )

    def has_mutations(self) -> bool:
        return any(e.type not in NON_MUTATING_TYPES for e in self._document.change_log.changes)

    def finalize(self) -> str:
        """Compute and store the human-readable summary."""
        summary = summarize(self._document.file_name, self._document.change_log.changes)
        self._document.change_log.summary = summary
        return summary

    def detach(self) -> list[ChangeEntry]:
        """Remove all entries from the final log and return them for diagnostics."""
        entries = list(self._document.change_log.changes)
        self._document.change_log = ChangeLog(created_at=self._document.change_log.created_at)
        return entries


def summarize(file_name: str, changes: list[ChangeEntry]) -> str:
    """Aggregate entries into "Processed <file>: N <type>, ..." in enum order."""
    if not changes:
        return f"Processed {file_name}: no changes required"
    counts = Counter(entry.type for entry in changes)
    parts = [f"{counts[t]} {t.value}" for t in ChangeType if counts[t]]
    return f"Processed {file_name}: " + ", ".join(parts)
