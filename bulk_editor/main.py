import argparse
import signal
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from types import FrameType

from bulk_editor.batch.coordinator import BatchProgress, build_coordinator
from bulk_editor.batch.exporter import EXPORT_FORMATS, export_results
from bulk_editor.batch.file_validation import validate_files
from bulk_editor.batch.statistics import ProcessingStatistics
from bulk_editor.config.rules import load_rules_file
from bulk_editor.config.settings import Settings
from bulk_editor.logging.logger import Log
from bulk_editor.processor.processor import build_file_service
from bulk_editor.validation.factory import LookupClientFactory


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-editor",
        description="Validate and refresh hyperlinks in Word documents.",
    )
    parser.add_argument("files", nargs="+", help="One or more .docx/.docm files to process")
    parser.add_argument(
        "--rules",
        type=Path,
        help="JSON file with hyperlink_rules and text_rules; enables the rule kinds it contains",
    )
    parser.add_argument("--export", type=Path, help="Write per-document results to this file")
    parser.add_argument(
        "--format",
        choices=EXPORT_FORMATS,
        default="json",
        help="Format of the --export file",
    )
    return parser


def _apply_rules(settings: Settings, rules_path: Path) -> Settings:
    rules = load_rules_file(rules_path)
    return settings.model_copy(
        update={
            "hyperlink_rules": rules.hyperlink_rules,
            "text_rules": rules.text_rules,
            "enable_hyperlink_replacement": bool(rules.hyperlink_rules)
            or settings.enable_hyperlink_replacement,
            "enable_text_replacement": bool(rules.text_rules) or settings.enable_text_replacement,
        }
    )


def _print_statistics(stats: ProcessingStatistics) -> None:
    print(f"Documents:  {stats.total_documents} total, {stats.successful_documents} successful, "
          f"{stats.failed_documents} failed, {stats.cancelled_documents} cancelled")
    print(f"Hyperlinks: {stats.total_hyperlinks} total, {stats.updated_hyperlinks} updated, "
          f"{stats.expired_hyperlinks} expired, {stats.invalid_hyperlinks} invalid, "
          f"{stats.error_hyperlinks} unresolved")
    print(f"Success rate: {stats.success_rate:.1f}% in {stats.total_processing_seconds:.1f}s")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: parse args -> build dependencies -> run the batch -> report."""
    args = _build_parser().parse_args(argv)
    settings = Settings()
    if args.rules is not None:
        settings = _apply_rules(settings, args.rules)
    log = Log()
    log.configure(settings.log_level)

    file_service = build_file_service(settings)
    screening = validate_files(list(args.files), file_service, log)
    for message in screening.messages:
        log.warning(message)
    if not screening.valid_files:
        log.error("No valid documents to process")
        return 1

    client = LookupClientFactory.create(settings)
    coordinator = build_coordinator(settings, client=client, file_service=file_service, log=log)
    cancel_event = threading.Event()

    def _on_sigint(signum: int, frame: FrameType | None) -> None:
        log.warning("Interrupt received, cancelling batch")
        cancel_event.set()

    def _on_progress(update: BatchProgress) -> None:
        log.info(f"[{update.completed}/{update.total}] {update.current_file}")

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        result = coordinator.run(screening.valid_files, _on_progress, cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous)
        client.close()

    for document in result.documents:
        log.info(document.change_log.summary or f"{document.file_name}: {document.status.value}")
    if args.export is not None:
        export_results(result.documents, args.export, args.format)
        log.info(f"Results exported to {args.export}")
    _print_statistics(result.statistics)
    return 1 if result.statistics.failed_documents or screening.invalid_files else 0


if __name__ == "__main__":
    sys.exit(main())
