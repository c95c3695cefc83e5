from dataclasses import dataclass

from bulk_editor.processor.models import (
    Document,
    DocumentStatus,
    HyperlinkAction,
    HyperlinkStatus,
)

UPDATE_ACTIONS = frozenset(
    {
        HyperlinkAction.UPDATED,
        HyperlinkAction.URL_CORRECTED,
        HyperlinkAction.CONTENT_ID_ADDED,
    }
)


@dataclass(frozen=True)
class ProcessingStatistics:
    """Aggregate counts over the documents of one batch.

    ``cancelled_documents`` includes documents that never started because the
    batch was cancelled first, so successful + failed + cancelled == total.
    """

    total_documents: int = 0
    successful_documents: int = 0
    failed_documents: int = 0
    cancelled_documents: int = 0
    total_hyperlinks: int = 0
    updated_hyperlinks: int = 0
    expired_hyperlinks: int = 0
    invalid_hyperlinks: int = 0
    error_hyperlinks: int = 0
    total_processing_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        if self.total_documents == 0:
            return 0.0
        return self.successful_documents / self.total_documents * 100


def compute_statistics(documents: list[Document]) -> ProcessingStatistics:
    hyperlinks = [h for d in documents for h in d.hyperlinks]
    processed = [d for d in documents if d.processed_at is not None]
    elapsed = 0.0
    if processed:
        start = min(d.created_at for d in processed)
        end = max(d.processed_at for d in processed if d.processed_at is not None)
        elapsed = (end - start).total_seconds()
    return ProcessingStatistics(
        total_documents=len(documents),
        successful_documents=_count(documents, DocumentStatus.COMPLETED),
        failed_documents=_count(documents, DocumentStatus.FAILED),
        cancelled_documents=_count(documents, DocumentStatus.CANCELLED, DocumentStatus.PENDING),
        total_hyperlinks=len(hyperlinks),
        updated_hyperlinks=sum(1 for h in hyperlinks if h.action_taken in UPDATE_ACTIONS),
        expired_hyperlinks=sum(1 for h in hyperlinks if h.status == HyperlinkStatus.EXPIRED),
        invalid_hyperlinks=sum(
            1
            for h in hyperlinks
            if h.status in (HyperlinkStatus.INVALID, HyperlinkStatus.NOT_FOUND)
        ),
        error_hyperlinks=sum(1 for h in hyperlinks if h.status == HyperlinkStatus.ERROR),
        total_processing_seconds=elapsed,
    )


def _count(documents: list[Document], *statuses: DocumentStatus) -> int:
    return sum(1 for d in documents if d.status in statuses)
