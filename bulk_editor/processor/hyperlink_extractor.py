from bulk_editor.config.settings import DEFAULT_LOOKUP_ID_PATTERN
from bulk_editor.processor.lookup_id import find_lookup_id
from bulk_editor.processor.models import Hyperlink
from bulk_editor.word.models import DocumentContent


class HyperlinkExtractor:
    """Builds Hyperlink records from document content, in document order."""

    def __init__(self, lookup_id_pattern: str = DEFAULT_LOOKUP_ID_PATTERN) -> None:
        self._pattern = lookup_id_pattern

    def extract(self, content: DocumentContent) -> list[Hyperlink]:
        return [
            Hyperlink(
                display_text=element.display_text,
                original_url=element.url,
                element_id=element.element_id,
                lookup_id=find_lookup_id(element.url, self._pattern),
            )
            for element in content.hyperlinks
        ]

    def lookup_ids(self, content: DocumentContent) -> list[str]:
        """Unique lookup ids in the content, first occurrence first."""
        ids = (find_lookup_id(element.url, self._pattern) for element in content.hyperlinks)
        return list(dict.fromkeys(i for i in ids if i))
