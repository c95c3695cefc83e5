import math
import queue
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from bulk_editor.batch.prefetch import LookupPrefetcher
from bulk_editor.batch.statistics import ProcessingStatistics, compute_statistics
from bulk_editor.config.settings import Settings
from bulk_editor.logging.logger import Log
from bulk_editor.processor.hyperlink_extractor import HyperlinkExtractor
from bulk_editor.processor.models import Document, DocumentStatus
from bulk_editor.processor.processor import (
    DocumentProcessor,
    build_file_service,
    build_processor,
    build_validator,
)
from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.word.base import BaseDocumentFileService


@dataclass(frozen=True)
class BatchProgress:
    completed: int
    total: int
    current_file: str
    batch_number: int
    total_batches: int

    @property
    def percent(self) -> float:
        return self.completed / self.total * 100 if self.total else 100.0


@dataclass
class BatchResult:
    """Documents in input order, plus the statistics computed over them."""

    documents: list[Document] = field(default_factory=list)
    statistics: ProcessingStatistics = field(default_factory=ProcessingStatistics)
    cancelled: bool = False


ProgressCallback = Callable[[BatchProgress], None]

_Task = tuple[int, Document]


class BatchCoordinator:
    """Fans documents out to a fixed pool of worker threads.

    Work moves by message passing: each Document travels through the task
    queue to exactly one worker and comes back on the result queue, so no two
    threads ever hold the same Document. Progress is reported from the calling
    thread as results arrive.
    """

    def __init__(
        self,
        processor: DocumentProcessor,
        *,
        max_concurrent_documents: int,
        batch_size: int,
        lookup_cache: LookupCache | None = None,
        prefetcher: LookupPrefetcher | None = None,
        log: Log | None = None,
    ) -> None:
        self._processor = processor
        self._max_workers = max(1, max_concurrent_documents)
        self._batch_size = max(1, batch_size)
        self._lookup_cache = lookup_cache
        self._prefetcher = prefetcher
        self._log = log or Log()

    def run(
        self,
        file_paths: Sequence[str | Path],
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchResult:
        """Process every file and return the results in input order."""
        cancel_event = cancel_event or threading.Event()
        paths = [str(p) for p in file_paths]
        total = len(paths)
        if self._lookup_cache is not None:
            self._lookup_cache.clear()
        if total == 0:
            self._log.info("Batch is empty, nothing to process")
            return BatchResult(statistics=compute_statistics([]))

        started = time.monotonic()
        self._log.info(f"Starting batch of {total} document(s)")
        if self._prefetcher is not None and not cancel_event.is_set():
            self._prefetcher.prefetch(paths, cancel_event)

        tasks: queue.Queue[_Task | None] = queue.Queue()
        results: queue.Queue[_Task] = queue.Queue()
        for index, path in enumerate(paths):
            tasks.put((index, Document(file_path=path)))
        worker_count = min(self._max_workers, total)
        for _ in range(worker_count):
            tasks.put(None)

        workers = [
            threading.Thread(
                target=self._work,
                args=(tasks, results, cancel_event),
                name=f"bulk-editor-worker-{n}",
                daemon=True,
            )
            for n in range(worker_count)
        ]
        for worker in workers:
            worker.start()

        ordered: list[Document | None] = [None] * total
        total_batches = math.ceil(total / self._batch_size)
        for completed in range(1, total + 1):
            index, document = results.get()
            ordered[index] = document
            self._notify(
                progress,
                BatchProgress(
                    completed=completed,
                    total=total,
                    current_file=document.file_name,
                    batch_number=(completed - 1) // self._batch_size + 1,
                    total_batches=total_batches,
                ),
            )
        for worker in workers:
            worker.join()

        documents = [d for d in ordered if d is not None]
        statistics = compute_statistics(documents)
        self._log.info(
            f"Batch finished in {time.monotonic() - started:.1f}s: "
            f"{statistics.successful_documents}/{statistics.total_documents} successful, "
            f"{statistics.failed_documents} failed, {statistics.cancelled_documents} cancelled"
        )
        return BatchResult(
            documents=documents,
            statistics=statistics,
            cancelled=cancel_event.is_set(),
        )

    def _work(
        self,
        tasks: queue.Queue[_Task | None],
        results: queue.Queue[_Task],
        cancel_event: threading.Event,
    ) -> None:
        while True:
            task = tasks.get()
            if task is None:
                return
            index, document = task
            if not cancel_event.is_set():
                document = self._process(document, cancel_event)
            results.put((index, document))

    def _process(self, document: Document, cancel_event: threading.Event) -> Document:
        try:
            return self._processor.process_document(document, cancel_event)
        except Exception as exc:
            document.status = DocumentStatus.FAILED
            document.processed_at = datetime.now()
            document.add_error(f"Unexpected processor failure: {exc}")
            self._log.error(f"Unexpected failure processing {document.file_name}: {exc}")
            return document

    def _notify(self, progress: ProgressCallback | None, update: BatchProgress) -> None:
        self._log.debug(
            f"Progress {update.completed}/{update.total} "
            f"(batch {update.batch_number}/{update.total_batches}): {update.current_file}"
        )
        if progress is None:
            return
        try:
            progress(update)
        except Exception as exc:
            self._log.warning(f"Progress callback failed: {exc}")


def build_coordinator(
    settings: Settings,
    *,
    client: BaseLookupClient | None = None,
    file_service: BaseDocumentFileService | None = None,
    log: Log | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchCoordinator:
    """Wire a BatchCoordinator and all of its collaborators from settings."""
    log = log or Log()
    file_service = file_service or build_file_service(settings)
    cache = LookupCache()
    validator = build_validator(settings, client=client, cache=cache, log=log, sleep=sleep)
    processor = build_processor(
        settings,
        validator=validator,
        file_service=file_service,
        log=log,
    )
    prefetcher = None
    if settings.validate_hyperlinks and settings.batch_lookups_across_documents:
        prefetcher = LookupPrefetcher(
            file_service=file_service,
            extractor=HyperlinkExtractor(settings.lookup_id_pattern),
            validator=validator,
            chunk_size=settings.batch_size,
            log=log,
        )
    return BatchCoordinator(
        processor,
        max_concurrent_documents=settings.max_concurrent_documents,
        batch_size=settings.batch_size,
        lookup_cache=cache,
        prefetcher=prefetcher,
        log=log,
    )
