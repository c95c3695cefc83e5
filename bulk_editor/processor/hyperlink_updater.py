from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.lookup_id import (
    canonical_url,
    content_id_suffix,
    find_content_id_suffix,
)
from bulk_editor.processor.models import (
    ChangeType,
    Document,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
)
from bulk_editor.processor.title_reconciler import (
    EXPIRED_SUFFIX,
    NOT_FOUND_SUFFIX,
    split_display_text,
)

_RESOLVED = frozenset({HyperlinkStatus.VALID, HyperlinkStatus.EXPIRED})


class HyperlinkUpdater:
    """Applies the mutations that follow from validation results."""

    def __init__(
        self,
        *,
        update_urls: bool,
        add_content_ids: bool,
        mark_status: bool,
        log: Log | None = None,
    ) -> None:
        self._update_urls = update_urls
        self._add_content_ids = add_content_ids
        self._mark_status = mark_status
        self._log = log or Log()

    def remove_invisible(self, document: Document, recorder: ChangeLogRecorder) -> int:
        """Remove hyperlinks that have no visible display text."""
        removed = 0
        for hyperlink in document.hyperlinks:
            if hyperlink.display_text.strip() or hyperlink.action_taken != HyperlinkAction.NONE:
                continue
            hyperlink.status = HyperlinkStatus.INVALID
            hyperlink.error_message = "Hyperlink has no display text"
            recorder.record_hyperlink_action(
                hyperlink,
                HyperlinkAction.REMOVED,
                ChangeType.HYPERLINK_REMOVED,
                "Removed invisible hyperlink",
                old_value=hyperlink.original_url,
            )
            removed += 1
        if removed:
            self._log.info(f"Removed {removed} invisible hyperlink(s) from {document.file_name}")
        return removed

    def update(self, document: Document, recorder: ChangeLogRecorder) -> int:
        """Correct URLs, add content ids and mark dead links. Returns the edit count."""
        edits = 0
        for hyperlink in document.hyperlinks:
            if hyperlink.action_taken == HyperlinkAction.REMOVED:
                continue
            if hyperlink.status in _RESOLVED:
                if self._update_urls and hyperlink.requires_update:
                    edits += self._correct_url(hyperlink, recorder)
                if self._add_content_ids and hyperlink.content_id:
                    edits += self._add_content_id(hyperlink, recorder)
            if self._mark_status:
                edits += self._mark_dead_link(hyperlink, recorder)
        if edits:
            self._log.info(f"Applied {edits} hyperlink update(s) to {document.file_name}")
        return edits

    @staticmethod
    def _correct_url(hyperlink: Hyperlink, recorder: ChangeLogRecorder) -> int:
        old_url = hyperlink.current_url
        hyperlink.updated_url = canonical_url(hyperlink.document_id, hyperlink.content_id)
        hyperlink.requires_update = False
        recorder.record_hyperlink_action(
            hyperlink,
            HyperlinkAction.URL_CORRECTED,
            ChangeType.HYPERLINK_UPDATED,
            f"URL updated for {hyperlink.lookup_id or 'hyperlink'}",
            old_value=old_url,
            new_value=hyperlink.updated_url,
        )
        return 1

    @staticmethod
    def _add_content_id(hyperlink: Hyperlink, recorder: ChangeLogRecorder) -> int:
        title, id_suffix, status_suffix = split_display_text(hyperlink.display_text)
        existing = find_content_id_suffix(id_suffix)
        wanted = hyperlink.content_id[-6:]
        if existing == wanted:
            return 0
        old_text = hyperlink.display_text
        hyperlink.display_text = (
            title.rstrip() + content_id_suffix(hyperlink.content_id) + status_suffix
        )
        description = (
            f"Content ID {existing} upgraded to {wanted}" if existing else f"Content ID {wanted} added"
        )
        recorder.record_hyperlink_action(
            hyperlink,
            HyperlinkAction.CONTENT_ID_ADDED,
            ChangeType.CONTENT_ID_ADDED,
            description,
            old_value=old_text,
            new_value=hyperlink.display_text,
        )
        return 1

    @staticmethod
    def _mark_dead_link(hyperlink: Hyperlink, recorder: ChangeLogRecorder) -> int:
        if hyperlink.status == HyperlinkStatus.EXPIRED:
            marker = EXPIRED_SUFFIX
            already_marked = (EXPIRED_SUFFIX,)
        elif hyperlink.status == HyperlinkStatus.NOT_FOUND:
            marker = NOT_FOUND_SUFFIX
            # An expired marker is never followed by a not-found one.
            already_marked = (NOT_FOUND_SUFFIX, EXPIRED_SUFFIX)
        else:
            return 0
        text = hyperlink.display_text.rstrip()
        if any(text.endswith(m.strip()) for m in already_marked):
            return 0
        old_text = hyperlink.display_text
        hyperlink.display_text = old_text.rstrip() + marker
        recorder.record(
            ChangeType.TITLE_CHANGED,
            f"Marked hyperlink as {marker.split(' - ')[1]}",
            old_value=old_text,
            new_value=hyperlink.display_text,
            element_id=hyperlink.id,
        )
        return 1
