from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FileInfo:
    size_bytes: int
    last_modified: datetime
    read_only: bool


@dataclass
class HyperlinkElement:
    """An external hyperlink as found in the document body."""

    element_id: str
    url: str
    display_text: str
    paragraph_index: int
    removed: bool = False


@dataclass
class ParagraphContent:
    """Text of one paragraph, split into the runs that sit outside hyperlinks."""

    index: int
    runs: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.runs)


@dataclass(frozen=True)
class CoreProperties:
    author: str = ""
    title: str = ""
    subject: str = ""
    keywords: str = ""
    comments: str = ""


@dataclass
class DocumentContent:
    """Structural view of a document that the pipeline reads and mutates.

    ``handle`` belongs to the file service that produced the content and is
    used by it to write the changes back.
    """

    hyperlinks: list[HyperlinkElement] = field(default_factory=list)
    paragraphs: list[ParagraphContent] = field(default_factory=list)
    properties: CoreProperties = field(default_factory=CoreProperties)
    handle: object | None = None

    @property
    def word_count(self) -> int:
        words = sum(len(p.text.split()) for p in self.paragraphs)
        return words + sum(len(h.display_text.split()) for h in self.hyperlinks)

    def find_hyperlink(self, element_id: str) -> HyperlinkElement | None:
        for element in self.hyperlinks:
            if element.element_id == element_id:
                return element
        return None
