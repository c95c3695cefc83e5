class DocumentFileError(Exception):
    """Base exception for all document file errors."""


class DocumentNotFoundError(DocumentFileError):
    """Raised when a document file does not exist."""


class InvalidDocumentError(DocumentFileError):
    """Raised when a file is not a readable Word document."""


class DocumentReadError(DocumentFileError):
    """Raised when a document cannot be opened or parsed."""


class DocumentWriteError(DocumentFileError):
    """Raised when a document cannot be saved."""


class BackupError(DocumentFileError):
    """Raised when a backup copy cannot be created."""
