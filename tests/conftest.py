from collections.abc import Callable
from pathlib import Path

import docx
import pytest
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

# A paragraph is a list of plain strings and (display text, url) hyperlinks.
ParagraphSpec = list[str | tuple[str, str]]
DocxFactory = Callable[[str, list[ParagraphSpec]], Path]


def _add_hyperlink(paragraph: object, url: str, text: str) -> None:
    part = paragraph.part  # type: ignore[attr-defined]
    r_id = part.relate_to(url, RT.HYPERLINK, is_external=True)
    link = OxmlElement("w:hyperlink")
    link.set(qn("r:id"), r_id)
    run = OxmlElement("w:r")
    text_node = OxmlElement("w:t")
    text_node.text = text
    run.append(text_node)
    link.append(run)
    paragraph._p.append(link)  # type: ignore[attr-defined]


def build_docx(path: Path, paragraphs: list[ParagraphSpec]) -> Path:
    document = docx.Document()
    document.core_properties.author = "Test Author"
    document.core_properties.title = "Test Document"
    for spec in paragraphs:
        paragraph = document.add_paragraph()
        for item in spec:
            if isinstance(item, tuple):
                _add_hyperlink(paragraph, item[1], item[0])
            else:
                paragraph.add_run(item)
    document.save(str(path))
    return path


@pytest.fixture()
def docx_factory(tmp_path: Path) -> DocxFactory:
    """Create .docx files under tmp_path from paragraph specs."""

    def _make(name: str, paragraphs: list[ParagraphSpec]) -> Path:
        return build_docx(tmp_path / name, paragraphs)

    return _make
