import csv
import json
from dataclasses import asdict
from pathlib import Path

from bulk_editor.batch.statistics import UPDATE_ACTIONS
from bulk_editor.processor.models import Document

EXPORT_FORMATS = ("json", "csv")

CSV_COLUMNS = [
    "Document",
    "Status",
    "FilePath",
    "ProcessedAt",
    "HyperlinkCount",
    "UpdatedHyperlinks",
    "ErrorCount",
]


def export_results(documents: list[Document], output_path: Path, fmt: str = "json") -> None:
    """Write batch results to output_path as JSON or CSV.

    Raises:
        ValueError: if fmt is not a supported format.
    """
    fmt = fmt.lower()
    if fmt == "json":
        payload = [asdict(document) for document in documents]
        output_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
    elif fmt == "csv":
        with output_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_COLUMNS)
            for document in documents:
                writer.writerow(_csv_row(document))
    else:
        raise ValueError(f"Unsupported export format '{fmt}'. Choose from: {list(EXPORT_FORMATS)}")


def _csv_row(document: Document) -> list[str]:
    processed_at = document.processed_at.isoformat() if document.processed_at else ""
    updated = sum(1 for h in document.hyperlinks if h.action_taken in UPDATE_ACTIONS)
    return [
        document.file_name,
        document.status.value,
        document.file_path,
        processed_at,
        str(len(document.hyperlinks)),
        str(updated),
        str(len(document.processing_errors)),
    ]
