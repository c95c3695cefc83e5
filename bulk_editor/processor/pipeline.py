from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from bulk_editor.logging.logger import Log
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.models import Document, TitleComparisonResult
from bulk_editor.word.models import DocumentContent


@dataclass(slots=True)
class PipelineContext:
    document: Document
    path: Path
    recorder: ChangeLogRecorder
    log: Log
    content: DocumentContent | None = None
    title_results: list[TitleComparisonResult] = field(default_factory=list)

    def require_content(self) -> DocumentContent:
        if self.content is None:
            raise ValueError("PipelineContext.content must be set before this step")
        return self.content


class PipelineStep(ABC):
    name: str = "step"

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
