import re

from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.lookup_id import strip_content_id_suffix
from bulk_editor.processor.models import (
    ChangeType,
    Document,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
    TitleComparisonResult,
)

EXPIRED_SUFFIX = " - Expired"
NOT_FOUND_SUFFIX = " - Not Found"
_STATUS_SUFFIX = re.compile(r"\s+-\s+(Expired|Not Found)\s*$")

_RECONCILABLE = frozenset({HyperlinkStatus.VALID, HyperlinkStatus.EXPIRED})


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def split_display_text(text: str) -> tuple[str, str, str]:
    """Split display text into title, content-id suffix and status marker."""
    status = _STATUS_SUFFIX.search(text)
    body = text[: status.start()] if status else text
    title = strip_content_id_suffix(body)
    return title, body[len(title):], text[len(body):]


class TitleReconciler:
    """Compares hyperlink display text with the title returned by the API."""

    def __init__(
        self,
        *,
        auto_replace_titles: bool,
        report_title_differences: bool,
        log: Log | None = None,
    ) -> None:
        self._auto_replace = auto_replace_titles
        self._report = report_title_differences
        self._log = log or Log()

    def reconcile(
        self,
        document: Document,
        recorder: ChangeLogRecorder,
    ) -> list[TitleComparisonResult]:
        results: list[TitleComparisonResult] = []
        for hyperlink in document.hyperlinks:
            if hyperlink.status not in _RECONCILABLE or not hyperlink.title.strip():
                continue
            if hyperlink.action_taken == HyperlinkAction.REMOVED:
                continue
            results.append(self._reconcile_one(hyperlink, recorder))

        differing = sum(1 for r in results if r.titles_differ)
        if differing:
            self._log.info(
                f"{differing} title difference(s) in {document.file_name} "
                f"({sum(1 for r in results if r.was_replaced)} replaced)"
            )
        return results

    def _reconcile_one(
        self,
        hyperlink: Hyperlink,
        recorder: ChangeLogRecorder,
    ) -> TitleComparisonResult:
        current_title, id_suffix, status_suffix = split_display_text(hyperlink.display_text)
        current = normalize_whitespace(current_title)
        api_title = normalize_whitespace(hyperlink.title)
        if current == api_title:
            return TitleComparisonResult(
                hyperlink_id=hyperlink.id,
                current_title=current,
                api_title=api_title,
                titles_differ=False,
            )

        if self._auto_replace:
            old_text = hyperlink.display_text
            hyperlink.display_text = api_title + id_suffix + status_suffix
            recorder.record_hyperlink_action(
                hyperlink,
                HyperlinkAction.UPDATED,
                ChangeType.TITLE_REPLACED,
                f"Title replaced for {hyperlink.lookup_id or 'hyperlink'}",
                old_value=old_text,
                new_value=hyperlink.display_text,
                details=f"Content ID: {hyperlink.content_id}" if hyperlink.content_id else "",
            )
            description = "Title replaced with API title"
            replaced = True
        elif self._report:
            recorder.record(
                ChangeType.POSSIBLE_TITLE_CHANGE,
                f"Possible title change for {hyperlink.lookup_id or 'hyperlink'}",
                old_value=current,
                new_value=api_title,
                element_id=hyperlink.id,
                details=f"Current: '{current}', API: '{api_title}'",
            )
            description = "Title difference reported"
            replaced = False
        else:
            description = "Title difference ignored"
            replaced = False

        return TitleComparisonResult(
            hyperlink_id=hyperlink.id,
            current_title=current,
            api_title=api_title,
            titles_differ=True,
            was_replaced=replaced,
            action_description=description,
        )

