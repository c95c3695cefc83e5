import re

from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.models import ChangeType, Document
from bulk_editor.word.models import DocumentContent

_REPEATED_SPACES = re.compile(r" {2,}")


class TextOptimizer:
    """Collapses repeated spaces in body text outside hyperlinks."""

    def __init__(self, log: Log | None = None) -> None:
        self._log = log or Log()

    def optimize(
        self,
        document: Document,
        content: DocumentContent,
        recorder: ChangeLogRecorder,
    ) -> int:
        improvements = 0
        for paragraph in content.paragraphs:
            for i, run in enumerate(paragraph.runs):
                paragraph.runs[i], count = _REPEATED_SPACES.subn(" ", run)
                improvements += count
        if improvements:
            recorder.record(
                ChangeType.TEXT_OPTIMIZED,
                f"Text optimization completed: {improvements} improvements made",
                details="Collapsed repeated spaces",
            )
            self._log.info(
                f"Text optimization for {document.file_name}: {improvements} improvements made"
            )
        else:
            self._log.debug(f"No text optimization needed for {document.file_name}")
        return improvements
