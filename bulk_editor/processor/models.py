import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path


class DocumentStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    RECOVERED = "Recovered"


class HyperlinkStatus(str, Enum):
    PENDING = "Pending"
    VALID = "Valid"
    INVALID = "Invalid"
    NOT_FOUND = "NotFound"
    EXPIRED = "Expired"
    ERROR = "Error"


class HyperlinkAction(str, Enum):
    NONE = "None"
    UPDATED = "Updated"
    REMOVED = "Removed"
    CONTENT_ID_ADDED = "ContentIdAdded"
    URL_CORRECTED = "UrlCorrected"


class ChangeType(str, Enum):
    INFORMATION = "Information"
    HYPERLINK_UPDATED = "HyperlinkUpdated"
    HYPERLINK_REMOVED = "HyperlinkRemoved"
    CONTENT_ID_ADDED = "ContentIdAdded"
    TITLE_CHANGED = "TitleChanged"
    TITLE_REPLACED = "TitleReplaced"
    POSSIBLE_TITLE_CHANGE = "PossibleTitleChange"
    TEXT_OPTIMIZED = "TextOptimized"
    TEXT_REPLACED = "TextReplaced"
    ERROR = "Error"
    WARNING = "Warning"


class ErrorSeverity(str, Enum):
    WARNING = "Warning"
    ERROR = "Error"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Hyperlink:
    """A hyperlink found in a document, plus everything learned about it."""

    display_text: str
    original_url: str
    element_id: str = ""
    id: str = field(default_factory=_new_id)
    updated_url: str = ""
    status: HyperlinkStatus = HyperlinkStatus.PENDING
    lookup_id: str | None = None
    content_id: str = ""
    document_id: str = ""
    title: str = ""
    last_checked: datetime | None = None
    error_message: str = ""
    requires_update: bool = False
    action_taken: HyperlinkAction = HyperlinkAction.NONE

    @property
    def current_url(self) -> str:
        return self.updated_url or self.original_url


@dataclass(frozen=True)
class ChangeEntry:
    """One immutable audit record of a single mutation."""

    type: ChangeType
    description: str
    old_value: str = ""
    new_value: str = ""
    element_id: str = ""
    details: str = ""
    action: HyperlinkAction | None = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ChangeLog:
    """Append-only ordered audit trail for one document."""

    changes: list[ChangeEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    summary: str = ""

    @property
    def total_changes(self) -> int:
        return len(self.changes)

    @property
    def has_errors(self) -> bool:
        return any(entry.type == ChangeType.ERROR for entry in self.changes)


@dataclass(frozen=True)
class ProcessingError:
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    rule_id: str = ""


@dataclass
class DocumentMetadata:
    file_size_bytes: int = 0
    last_modified: datetime | None = None
    author: str = ""
    title: str = ""
    subject: str = ""
    keywords: str = ""
    comments: str = ""
    word_count: int = 0
    hyperlink_count: int = 0
    has_expired_links: bool = False
    has_invalid_links: bool = False


@dataclass
class Document:
    """Processing state and result for one file.

    Owned by a single worker while it is being processed, then handed back to
    the batch coordinator as a finished result.
    """

    file_path: str
    id: str = field(default_factory=_new_id)
    status: DocumentStatus = DocumentStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)
    processed_at: datetime | None = None
    hyperlinks: list[Hyperlink] = field(default_factory=list)
    processing_errors: list[ProcessingError] = field(default_factory=list)
    backup_path: str = ""
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    change_log: ChangeLog = field(default_factory=ChangeLog)
    diagnostics: list[ChangeEntry] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name

    @property
    def has_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.ERROR for e in self.processing_errors)

    def add_error(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        rule_id: str = "",
    ) -> None:
        self.processing_errors.append(
            ProcessingError(message=message, severity=severity, rule_id=rule_id)
        )


@dataclass(frozen=True)
class TitleComparisonResult:
    """Outcome of comparing one hyperlink's display text to its API title."""

    hyperlink_id: str
    current_title: str
    api_title: str
    titles_differ: bool
    was_replaced: bool = False
    action_description: str = ""
