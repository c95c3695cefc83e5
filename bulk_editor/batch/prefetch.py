import threading
from pathlib import Path

from bulk_editor.logging.logger import Log
from bulk_editor.processor.hyperlink_extractor import HyperlinkExtractor
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.word.base import BaseDocumentFileService
from bulk_editor.word.exceptions import DocumentFileError


class LookupPrefetcher:
    """Resolves the lookup ids of a whole batch up front, in chunked requests.

    Results land in the validator's shared cache, so per-document validation
    never goes to the network for an id the prefetch already tried.
    """

    def __init__(
        self,
        *,
        file_service: BaseDocumentFileService,
        extractor: HyperlinkExtractor,
        validator: HyperlinkValidator,
        chunk_size: int,
        log: Log | None = None,
    ) -> None:
        self._file_service = file_service
        self._extractor = extractor
        self._validator = validator
        self._chunk_size = chunk_size
        self._log = log or Log()

    def prefetch(self, file_paths: list[str], cancel_event: threading.Event | None = None) -> int:
        """Return the number of ids requested; 0 when cancelled."""
        lookup_ids: list[str] = []
        for file_path in file_paths:
            if cancel_event is not None and cancel_event.is_set():
                return 0
            path = Path(file_path)
            if not self._file_service.is_valid_document(path):
                continue
            try:
                content = self._file_service.read(path)
            except DocumentFileError as exc:
                self._log.debug(f"Prefetch skipped {path.name}: {exc}")
                continue
            lookup_ids.extend(self._extractor.lookup_ids(content))

        if not lookup_ids:
            return 0
        fetched = self._validator.prefetch(lookup_ids, self._chunk_size)
        self._log.info(
            f"Prefetched {fetched} lookup id(s) for {len(file_paths)} document(s)"
        )
        return fetched
