class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class DocumentCancelledError(ProcessorError):
    """Raised at a stage boundary when the batch has been cancelled."""


class DocumentTimeoutError(ProcessorError):
    """Raised at a stage boundary when the per-document deadline has passed."""


class UnresolvedHyperlinksError(ProcessorError):
    """Raised when unresolved hyperlinks must fail the document."""
