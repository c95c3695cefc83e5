from bulk_editor.processor.exceptions import UnresolvedHyperlinksError
from bulk_editor.processor.hyperlink_extractor import HyperlinkExtractor
from bulk_editor.processor.hyperlink_updater import HyperlinkUpdater
from bulk_editor.processor.models import HyperlinkAction, HyperlinkStatus
from bulk_editor.processor.pipeline import PipelineContext, PipelineStep
from bulk_editor.processor.title_reconciler import TitleReconciler
from bulk_editor.replacement.engine import ReplacementEngine
from bulk_editor.replacement.text_optimizer import TextOptimizer
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.word.base import BaseDocumentFileService
from bulk_editor.word.exceptions import (
    DocumentNotFoundError,
    DocumentWriteError,
    InvalidDocumentError,
)


class CheckAccessStep(PipelineStep):
    name = "check access"

    def __init__(self, file_service: BaseDocumentFileService) -> None:
        self._file_service = file_service

    def run(self, context: PipelineContext) -> PipelineContext:
        if not self._file_service.exists(context.path):
            raise DocumentNotFoundError(f"File not found: {context.path}")
        if not self._file_service.is_valid_document(context.path):
            raise InvalidDocumentError(f"Not a valid Word document: {context.path}")
        info = self._file_service.get_info(context.path)
        if info.read_only:
            raise DocumentWriteError(f"File is read-only: {context.path}")
        context.document.metadata.file_size_bytes = info.size_bytes
        context.document.metadata.last_modified = info.last_modified
        return context


class BackupStep(PipelineStep):
    name = "backup"

    def __init__(self, file_service: BaseDocumentFileService) -> None:
        self._file_service = file_service

    def run(self, context: PipelineContext) -> PipelineContext:
        backup_path = self._file_service.backup(context.path)
        context.document.backup_path = str(backup_path)
        context.log.info(f"Backed up {context.document.file_name} to {backup_path}")
        return context


class ReadContentStep(PipelineStep):
    name = "read"

    def __init__(self, file_service: BaseDocumentFileService) -> None:
        self._file_service = file_service

    def run(self, context: PipelineContext) -> PipelineContext:
        content = self._file_service.read(context.path)
        metadata = context.document.metadata
        metadata.author = content.properties.author
        metadata.title = content.properties.title
        metadata.subject = content.properties.subject
        metadata.keywords = content.properties.keywords
        metadata.comments = content.properties.comments
        metadata.word_count = content.word_count
        context.content = content
        return context


class ExtractHyperlinksStep(PipelineStep):
    name = "extract hyperlinks"

    def __init__(self, extractor: HyperlinkExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        context.document.hyperlinks = self._extractor.extract(context.require_content())
        context.log.info(
            f"Extracted {len(context.document.hyperlinks)} hyperlink(s) "
            f"from {context.document.file_name}"
        )
        return context


class RemoveInvisibleHyperlinksStep(PipelineStep):
    name = "remove invisible hyperlinks"

    def __init__(self, updater: HyperlinkUpdater) -> None:
        self._updater = updater

    def run(self, context: PipelineContext) -> PipelineContext:
        self._updater.remove_invisible(context.document, context.recorder)
        return context


class ValidateHyperlinksStep(PipelineStep):
    name = "validate hyperlinks"

    def __init__(
        self,
        validator: HyperlinkValidator,
        fail_on_unresolved: bool = False,
    ) -> None:
        self._validator = validator
        self._fail_on_unresolved = fail_on_unresolved

    def run(self, context: PipelineContext) -> PipelineContext:
        self._validator.validate(context.document)
        if self._fail_on_unresolved:
            unresolved = [
                h for h in context.document.hyperlinks if h.status == HyperlinkStatus.ERROR
            ]
            if unresolved:
                raise UnresolvedHyperlinksError(
                    f"{len(unresolved)} hyperlink(s) could not be validated"
                )
        return context


class ReconcileTitlesStep(PipelineStep):
    name = "reconcile titles"

    def __init__(self, reconciler: TitleReconciler) -> None:
        self._reconciler = reconciler

    def run(self, context: PipelineContext) -> PipelineContext:
        context.title_results = self._reconciler.reconcile(context.document, context.recorder)
        return context


class UpdateHyperlinksStep(PipelineStep):
    name = "update hyperlinks"

    def __init__(self, updater: HyperlinkUpdater) -> None:
        self._updater = updater

    def run(self, context: PipelineContext) -> PipelineContext:
        self._updater.update(context.document, context.recorder)
        return context


class ApplyReplacementsStep(PipelineStep):
    name = "apply replacements"

    def __init__(self, engine: ReplacementEngine) -> None:
        self._engine = engine

    def run(self, context: PipelineContext) -> PipelineContext:
        self._engine.apply(context.document, context.require_content(), context.recorder)
        return context


class OptimizeTextStep(PipelineStep):
    name = "optimize text"

    def __init__(self, optimizer: TextOptimizer) -> None:
        self._optimizer = optimizer

    def run(self, context: PipelineContext) -> PipelineContext:
        self._optimizer.optimize(context.document, context.require_content(), context.recorder)
        return context


class PersistStep(PipelineStep):
    name = "persist"

    def __init__(self, file_service: BaseDocumentFileService) -> None:
        self._file_service = file_service

    def run(self, context: PipelineContext) -> PipelineContext:
        if not context.recorder.has_mutations():
            context.log.debug(f"No changes to save for {context.document.file_name}")
            return context
        content = context.require_content()
        for hyperlink in context.document.hyperlinks:
            element = content.find_hyperlink(hyperlink.element_id)
            if element is None:
                continue
            element.display_text = hyperlink.display_text
            element.url = hyperlink.current_url
            element.removed = hyperlink.action_taken == HyperlinkAction.REMOVED
        self._file_service.write(context.path, content)
        context.log.info(f"Saved changes to {context.document.file_name}")
        return context
