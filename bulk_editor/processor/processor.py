import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from bulk_editor.config.settings import Settings
from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.exceptions import DocumentCancelledError, DocumentTimeoutError
from bulk_editor.processor.hyperlink_extractor import HyperlinkExtractor
from bulk_editor.processor.hyperlink_updater import HyperlinkUpdater
from bulk_editor.processor.models import (
    ChangeType,
    Document,
    DocumentStatus,
    HyperlinkStatus,
)
from bulk_editor.processor.pipeline import PipelineContext, PipelineStep
from bulk_editor.processor.steps import (
    ApplyReplacementsStep,
    BackupStep,
    CheckAccessStep,
    ExtractHyperlinksStep,
    OptimizeTextStep,
    PersistStep,
    ReadContentStep,
    ReconcileTitlesStep,
    RemoveInvisibleHyperlinksStep,
    UpdateHyperlinksStep,
    ValidateHyperlinksStep,
)
from bulk_editor.processor.title_reconciler import TitleReconciler
from bulk_editor.replacement.engine import ReplacementEngine
from bulk_editor.replacement.text_optimizer import TextOptimizer
from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.factory import LookupClientFactory
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.validation.retry import RetryPolicy
from bulk_editor.word.base import BaseDocumentFileService
from bulk_editor.word.docx_adapter import DocxFileService


class DocumentProcessor:
    """Runs the processing pipeline for one document at a time.

    Pipeline: check access -> backup -> read -> extract -> validate ->
    reconcile titles -> update hyperlinks -> replace -> persist.

    Cancellation and the per-document deadline are checked between steps, so
    a step that has started always finishes. Any failure inside a step marks
    the document Failed and never propagates to the caller.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        *,
        timeout_seconds: float | None = None,
        log: Log | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._steps = steps
        self._timeout_seconds = timeout_seconds
        self._log = log or Log()
        self._clock = clock

    @property
    def steps(self) -> list[PipelineStep]:
        return list(self._steps)

    def process(
        self,
        file_path: str | Path,
        cancel_event: threading.Event | None = None,
    ) -> Document:
        """Process the file at file_path and return its finished Document."""
        return self.process_document(Document(file_path=str(file_path)), cancel_event)

    def process_document(
        self,
        document: Document,
        cancel_event: threading.Event | None = None,
    ) -> Document:
        if cancel_event is not None and cancel_event.is_set():
            self._log.debug(f"Batch cancelled, {document.file_name} not started")
            return document

        document.status = DocumentStatus.PROCESSING
        recorder = ChangeLogRecorder(document)
        context = PipelineContext(
            document=document,
            path=Path(document.file_path),
            recorder=recorder,
            log=self._log,
        )
        deadline = (
            self._clock() + self._timeout_seconds if self._timeout_seconds else None
        )
        self._log.info(f"Processing {document.file_name}")

        try:
            for step in self._steps:
                self._checkpoint(step, cancel_event, deadline)
                context = step.run(context)
        except DocumentCancelledError as exc:
            document.diagnostics = recorder.detach()
            document.status = DocumentStatus.CANCELLED
            document.processed_at = datetime.now()
            document.change_log.summary = f"Processing of {document.file_name} cancelled"
            self._log.info(f"{exc}; {len(document.diagnostics)} change(s) discarded")
            return document
        except Exception as exc:
            self._fail(document, recorder, exc)
            return document

        self._finalize_metadata(document)
        document.status = DocumentStatus.COMPLETED
        document.processed_at = datetime.now()
        summary = recorder.finalize()
        self._log.info(summary)
        return document

    def _checkpoint(
        self,
        step: PipelineStep,
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise DocumentCancelledError(f"Cancelled before {step.name}")
        if deadline is not None and self._clock() > deadline:
            raise DocumentTimeoutError(
                f"Timed out after {self._timeout_seconds}s before {step.name}"
            )

    def _fail(self, document: Document, recorder: ChangeLogRecorder, exc: Exception) -> None:
        message = f"{type(exc).__name__}: {exc}"
        document.add_error(message)
        recorder.record(ChangeType.ERROR, "Document processing failed", details=message)
        self._finalize_metadata(document)
        document.status = DocumentStatus.FAILED
        document.processed_at = datetime.now()
        recorder.finalize()
        backup = f", backup kept at {document.backup_path}" if document.backup_path else ""
        self._log.error(f"Failed to process {document.file_name}: {message}{backup}")

    @staticmethod
    def _finalize_metadata(document: Document) -> None:
        metadata = document.metadata
        metadata.hyperlink_count = len(document.hyperlinks)
        statuses = {h.status for h in document.hyperlinks}
        metadata.has_expired_links = HyperlinkStatus.EXPIRED in statuses
        metadata.has_invalid_links = bool(
            statuses & {HyperlinkStatus.INVALID, HyperlinkStatus.NOT_FOUND}
        )


def build_validator(
    settings: Settings,
    *,
    client: BaseLookupClient | None = None,
    cache: LookupCache | None = None,
    log: Log | None = None,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Callable[[int], None] | None = None,
) -> HyperlinkValidator:
    """Build a HyperlinkValidator with the configured client and retry policy."""
    log = log or Log()
    retry_policy = RetryPolicy(
        max_attempts=settings.max_retry_attempts,
        delay_seconds=settings.retry_delay_seconds,
        backoff=settings.retry_backoff,
        sleep=sleep,
        on_attempt=on_attempt,
        log=log,
    )
    return HyperlinkValidator(
        client=client or LookupClientFactory.create(settings),
        retry_policy=retry_policy,
        cache=cache,
        check_expired_content=settings.check_expired_content,
        log=log,
    )


def build_file_service(settings: Settings) -> DocxFileService:
    backup_dir = Path(settings.backup_directory) if settings.backup_directory else None
    return DocxFileService(
        supported_extensions=settings.supported_extensions,
        backup_directory=backup_dir,
    )


def build_processor(
    settings: Settings,
    *,
    validator: HyperlinkValidator,
    file_service: BaseDocumentFileService | None = None,
    log: Log | None = None,
) -> DocumentProcessor:
    """Build a DocumentProcessor whose steps follow the enabled settings."""
    log = log or Log()
    file_service = file_service or build_file_service(settings)
    updater = HyperlinkUpdater(
        update_urls=settings.update_hyperlinks,
        add_content_ids=settings.add_content_ids,
        mark_status=settings.check_expired_content,
        log=log,
    )

    steps: list[PipelineStep] = [CheckAccessStep(file_service)]
    if settings.create_backup_before_processing:
        steps.append(BackupStep(file_service))
    steps.append(ReadContentStep(file_service))
    steps.append(ExtractHyperlinksStep(HyperlinkExtractor(settings.lookup_id_pattern)))
    if settings.update_hyperlinks:
        steps.append(RemoveInvisibleHyperlinksStep(updater))
    if settings.validate_hyperlinks:
        steps.append(
            ValidateHyperlinksStep(validator, settings.fail_document_on_unresolved_links)
        )
        steps.append(
            ReconcileTitlesStep(
                TitleReconciler(
                    auto_replace_titles=settings.auto_replace_titles,
                    report_title_differences=settings.report_title_differences,
                    log=log,
                )
            )
        )
        steps.append(UpdateHyperlinksStep(updater))

    engine = ReplacementEngine(
        validator=validator,
        hyperlink_rules=settings.hyperlink_rules if settings.enable_hyperlink_replacement else [],
        text_rules=settings.text_rules if settings.enable_text_replacement else [],
        max_rules=settings.max_replacement_rules,
        validate_content_ids=settings.validate_content_ids,
        log=log,
    )
    if engine.rule_count:
        steps.append(ApplyReplacementsStep(engine))
    if settings.optimize_text:
        steps.append(OptimizeTextStep(TextOptimizer(log)))
    steps.append(PersistStep(file_service))

    return DocumentProcessor(
        steps,
        timeout_seconds=settings.timeout_per_document_seconds,
        log=log,
    )
