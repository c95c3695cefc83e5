from dataclasses import dataclass, field
from pathlib import Path

from bulk_editor.logging.logger import Log
from bulk_editor.word.base import BaseDocumentFileService
from bulk_editor.word.exceptions import DocumentFileError


@dataclass
class FileValidationResult:
    valid_files: list[str] = field(default_factory=list)
    invalid_files: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return bool(self.valid_files) and not self.invalid_files


def validate_files(
    file_paths: list[str],
    file_service: BaseDocumentFileService,
    log: Log | None = None,
) -> FileValidationResult:
    """Pre-screen input files before a batch is started.

    Read-only files stay valid but produce a message.
    """
    log = log or Log()
    result = FileValidationResult()
    for file_path in file_paths:
        if not file_path or not file_path.strip():
            result.messages.append("Empty file path provided")
            continue
        path = Path(file_path)
        if not file_service.exists(path):
            result.invalid_files.append(file_path)
            result.messages.append(f"File not found: {file_path}")
            continue
        if not file_service.is_valid_document(path):
            result.invalid_files.append(file_path)
            result.messages.append(f"Not a valid Word document: {file_path}")
            continue
        try:
            info = file_service.get_info(path)
        except DocumentFileError as exc:
            result.invalid_files.append(file_path)
            result.messages.append(f"Cannot access file: {file_path} - {exc}")
            continue
        if info.read_only:
            result.messages.append(f"File is read-only: {file_path}")
        result.valid_files.append(file_path)

    log.info(
        f"File validation completed: {len(result.valid_files)} valid, "
        f"{len(result.invalid_files)} invalid"
    )
    return result
