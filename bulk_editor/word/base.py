from abc import ABC, abstractmethod
from pathlib import Path

from bulk_editor.word.models import DocumentContent, FileInfo


class BaseDocumentFileService(ABC):
    """Contract for reading, writing and backing up word-processing documents."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Return True if a file exists at path."""

    @abstractmethod
    def is_valid_document(self, path: Path) -> bool:
        """Return True if path looks like a supported Word document."""

    @abstractmethod
    def get_info(self, path: Path) -> FileInfo:
        """Return size, modification time and read-only flag.

        Raises:
            DocumentNotFoundError: if the file does not exist.
        """

    @abstractmethod
    def read(self, path: Path) -> DocumentContent:
        """Parse the document into its structural content.

        Raises:
            DocumentReadError: if the document cannot be parsed.
        """

    @abstractmethod
    def write(self, path: Path, content: DocumentContent) -> None:
        """Persist mutated content back to path, replacing the file atomically.

        Raises:
            DocumentWriteError: if the document cannot be saved.
        """

    @abstractmethod
    def backup(self, path: Path) -> Path:
        """Copy the document to the backup location and return the copy's path.

        Raises:
            BackupError: if the copy cannot be made.
        """
