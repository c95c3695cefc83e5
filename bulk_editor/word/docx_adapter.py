import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import docx
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from bulk_editor.word.base import BaseDocumentFileService
from bulk_editor.word.exceptions import (
    BackupError,
    DocumentNotFoundError,
    DocumentReadError,
    DocumentWriteError,
    InvalidDocumentError,
)
from bulk_editor.word.models import (
    CoreProperties,
    DocumentContent,
    FileInfo,
    HyperlinkElement,
    ParagraphContent,
)

_XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


@dataclass
class _DocxHandle:
    document: Any
    links: dict[str, Any] = field(default_factory=dict)
    urls: dict[str, str] = field(default_factory=dict)
    texts: dict[int, list[Any]] = field(default_factory=dict)


class DocxFileService(BaseDocumentFileService):
    """Reads and writes .docx/.docm files using python-docx."""

    BACKUP_DIR_NAME = "Backups"

    def __init__(
        self,
        supported_extensions: list[str] | None = None,
        backup_directory: Path | None = None,
    ) -> None:
        extensions = supported_extensions or [".docx", ".docm"]
        self._extensions = {ext.lower() for ext in extensions}
        self._backup_directory = backup_directory

    def exists(self, path: Path) -> bool:
        return path.is_file()

    def is_valid_document(self, path: Path) -> bool:
        if path.suffix.lower() not in self._extensions or not path.is_file():
            return False
        try:
            with zipfile.ZipFile(path) as archive:
                return "word/document.xml" in archive.namelist()
        except (zipfile.BadZipFile, OSError):
            return False

    def get_info(self, path: Path) -> FileInfo:
        try:
            stat = path.stat()
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(f"File not found: {path}") from exc
        return FileInfo(
            size_bytes=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime),
            read_only=not os.access(path, os.W_OK),
        )

    def read(self, path: Path) -> DocumentContent:
        if not path.is_file():
            raise DocumentNotFoundError(f"File not found: {path}")
        if not self.is_valid_document(path):
            raise InvalidDocumentError(f"Not a valid Word document: {path}")
        try:
            document = docx.Document(str(path))
        except Exception as exc:
            raise DocumentReadError(f"python-docx could not open {path}: {exc}") from exc

        handle = _DocxHandle(document=document)
        content = DocumentContent(
            properties=self._read_properties(document),
            handle=handle,
        )
        rels = document.part.rels
        body = document.element.body
        for index, paragraph in enumerate(body.iter(qn("w:p"))):
            for link in paragraph.findall(qn("w:hyperlink")):
                r_id = link.get(qn("r:id"))
                rel = rels.get(r_id) if r_id else None
                if rel is None or not rel.is_external:
                    continue
                element_id = f"h{len(content.hyperlinks)}"
                handle.links[element_id] = link
                handle.urls[element_id] = rel.target_ref
                content.hyperlinks.append(
                    HyperlinkElement(
                        element_id=element_id,
                        url=rel.target_ref,
                        display_text=_joined_text(link),
                        paragraph_index=index,
                    )
                )
            texts = [
                t for run in paragraph.findall(qn("w:r")) for t in run.findall(qn("w:t"))
            ]
            handle.texts[index] = texts
            content.paragraphs.append(
                ParagraphContent(index=index, runs=[t.text or "" for t in texts])
            )
        return content

    def write(self, path: Path, content: DocumentContent) -> None:
        handle = content.handle
        if not isinstance(handle, _DocxHandle):
            raise DocumentWriteError(f"Content for {path} was not read by this service")
        try:
            self._apply_hyperlinks(handle, content)
            self._apply_paragraphs(handle, content)
        except Exception as exc:
            raise DocumentWriteError(f"Could not apply changes to {path}: {exc}") from exc

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".~", suffix=path.suffix)
        os.close(fd)
        try:
            handle.document.save(tmp_name)
            os.replace(tmp_name, path)
        except Exception as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise DocumentWriteError(f"Could not save {path}: {exc}") from exc

    def backup(self, path: Path) -> Path:
        target_dir = self._backup_directory or path.parent / self.BACKUP_DIR_NAME
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        target = target_dir / f"{path.stem}_{timestamp}{path.suffix}"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
        except OSError as exc:
            raise BackupError(f"Could not back up {path}: {exc}") from exc
        return target

    @staticmethod
    def _read_properties(document: Any) -> CoreProperties:
        props = document.core_properties
        return CoreProperties(
            author=props.author or "",
            title=props.title or "",
            subject=props.subject or "",
            keywords=props.keywords or "",
            comments=props.comments or "",
        )

    @staticmethod
    def _apply_hyperlinks(handle: _DocxHandle, content: DocumentContent) -> None:
        part = handle.document.part
        for element in content.hyperlinks:
            link = handle.links.get(element.element_id)
            if link is None:
                continue
            if element.removed:
                parent = link.getparent()
                if parent is not None:
                    parent.remove(link)
                continue
            if element.url != handle.urls[element.element_id]:
                r_id = part.relate_to(element.url, RT.HYPERLINK, is_external=True)
                link.set(qn("r:id"), r_id)
            if element.display_text != _joined_text(link):
                _set_link_text(link, element.display_text)

    @staticmethod
    def _apply_paragraphs(handle: _DocxHandle, content: DocumentContent) -> None:
        for paragraph in content.paragraphs:
            for node, value in zip(handle.texts.get(paragraph.index, []), paragraph.runs):
                if (node.text or "") != value:
                    _set_text(node, value)


def _joined_text(link: Any) -> str:
    return "".join(t.text or "" for t in link.iter(qn("w:t")))


def _set_text(node: Any, value: str) -> None:
    node.text = value
    if value != value.strip():
        node.set(_XML_SPACE, "preserve")


def _set_link_text(link: Any, value: str) -> None:
    nodes = list(link.iter(qn("w:t")))
    if not nodes:
        run = OxmlElement("w:r")
        node = OxmlElement("w:t")
        run.append(node)
        link.append(run)
        nodes = [node]
    _set_text(nodes[0], value)
    for extra in nodes[1:]:
        extra.text = ""
