from unittest.mock import MagicMock

from bulk_editor.config.rules import HyperlinkReplacementRule, TextReplacementRule
from bulk_editor.processor.change_log import ChangeLogRecorder
from bulk_editor.processor.lookup_id import canonical_url
from bulk_editor.processor.models import (
    ChangeType,
    Document,
    ErrorSeverity,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
)
from bulk_editor.replacement.engine import ReplacementEngine
from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.exceptions import LookupResponseError
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.validation.models import ApiResponse, DocumentRecord
from bulk_editor.validation.retry import RetryPolicy
from bulk_editor.word.models import DocumentContent, ParagraphContent


def _make_validator(client: MagicMock) -> HyperlinkValidator:
    return HyperlinkValidator(
        client=client,
        retry_policy=RetryPolicy(max_attempts=1, delay_seconds=0, sleep=MagicMock()),
        cache=LookupCache(),
    )


def _make_client(*records: DocumentRecord) -> MagicMock:
    client = MagicMock(spec=BaseLookupClient)
    client.lookup.return_value = ApiResponse(results=list(records))
    return client


def _make_document(*display_texts: str) -> tuple[Document, ChangeLogRecorder]:
    document = Document(file_path="/docs/a.docx")
    for i, text in enumerate(display_texts):
        document.hyperlinks.append(
            Hyperlink(display_text=text, original_url=f"http://x/{i}", element_id=f"h{i}")
        )
    return document, ChangeLogRecorder(document)


def _link_rule(**fields: object) -> HyperlinkReplacementRule:
    values: dict[str, object] = {"id": "r1", "title_to_match": "Old Policy", "content_id": "654321"}
    values.update(fields)
    return HyperlinkReplacementRule(**values)  # type: ignore[arg-type]


class TestHyperlinkRules:
    def test_rewrites_matching_link(self) -> None:
        client = _make_client(
            DocumentRecord(document_id="CMS-NEW-654321", content_id="654321", title="New Policy")
        )
        engine = ReplacementEngine(validator=_make_validator(client), hyperlink_rules=[_link_rule()])
        document, recorder = _make_document("old policy (111111)", "Unrelated")

        changes = engine.apply(document, DocumentContent(), recorder)

        link = document.hyperlinks[0]
        assert changes == 1
        assert link.display_text == "New Policy (654321)"
        assert link.updated_url == canonical_url("CMS-NEW-654321")
        assert link.action_taken == HyperlinkAction.UPDATED
        assert link.status == HyperlinkStatus.VALID
        assert document.hyperlinks[1].action_taken == HyperlinkAction.NONE
        entries = document.change_log.changes
        assert [e.type for e in entries] == [ChangeType.HYPERLINK_UPDATED]
        assert entries[0].element_id == link.id
        client.lookup.assert_called_once_with(["654321"])

    def test_malformed_content_id_is_a_warning(self) -> None:
        client = _make_client()
        engine = ReplacementEngine(
            validator=_make_validator(client),
            hyperlink_rules=[_link_rule(content_id="12AB")],
        )
        document, recorder = _make_document("Old Policy")

        assert engine.apply(document, DocumentContent(), recorder) == 0

        assert document.hyperlinks[0].display_text == "Old Policy"
        assert document.processing_errors[0].severity == ErrorSeverity.WARNING
        assert document.processing_errors[0].rule_id == "r1"
        assert "malformed content id" in document.processing_errors[0].message
        client.lookup.assert_not_called()

    def test_malformed_id_allowed_when_not_validated(self) -> None:
        client = _make_client(DocumentRecord(content_id="12AB", title="Loose"))
        engine = ReplacementEngine(
            validator=_make_validator(client),
            hyperlink_rules=[_link_rule(content_id="12AB")],
            validate_content_ids=False,
        )
        document, recorder = _make_document("Old Policy")

        assert engine.apply(document, DocumentContent(), recorder) == 1

    def test_unresolved_content_id_is_a_warning(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()), hyperlink_rules=[_link_rule()]
        )
        document, recorder = _make_document("Old Policy")

        assert engine.apply(document, DocumentContent(), recorder) == 0
        assert "not found" in document.processing_errors[0].message
        assert document.change_log.changes == []

    def test_lookup_failure_is_a_warning(self) -> None:
        client = MagicMock(spec=BaseLookupClient)
        client.lookup.side_effect = LookupResponseError("HTTP 400")
        engine = ReplacementEngine(validator=_make_validator(client), hyperlink_rules=[_link_rule()])
        document, recorder = _make_document("Old Policy")

        assert engine.apply(document, DocumentContent(), recorder) == 0
        assert document.processing_errors[0].severity == ErrorSeverity.WARNING

    def test_first_matching_rule_wins(self) -> None:
        client = MagicMock(spec=BaseLookupClient)
        client.lookup.side_effect = lambda ids: ApiResponse(
            results=[DocumentRecord(content_id=ids[0], title=f"Doc {ids[0]}")]
        )
        engine = ReplacementEngine(
            validator=_make_validator(client),
            hyperlink_rules=[_link_rule(id="a"), _link_rule(id="b", content_id="222222")],
        )
        document, recorder = _make_document("Old Policy")

        engine.apply(document, DocumentContent(), recorder)

        assert document.hyperlinks[0].display_text == "Doc 654321 (654321)"
        assert len(document.change_log.changes) == 1

    def test_disabled_rules_are_ignored(self) -> None:
        client = _make_client()
        engine = ReplacementEngine(
            validator=_make_validator(client), hyperlink_rules=[_link_rule(enabled=False)]
        )
        assert engine.rule_count == 0

    def test_rule_limit(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()),
            hyperlink_rules=[_link_rule(id=str(i)) for i in range(3)],
            text_rules=[TextReplacementRule(id="t", source_text="a", replacement_text="b")],
            max_rules=2,
        )
        assert engine.rule_count == 2


class TestTextRules:
    def _content(self, *paragraphs: list[str]) -> DocumentContent:
        return DocumentContent(
            paragraphs=[ParagraphContent(index=i, runs=list(p)) for i, p in enumerate(paragraphs)]
        )

    def test_whole_word_case_insensitive(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()),
            text_rules=[TextReplacementRule(id="t1", source_text="cat", replacement_text="dog")],
        )
        document, recorder = _make_document()
        content = self._content(["The Cat sat on the ", "CAT mat, concatenate"])

        changes = engine.apply(document, content, recorder)

        assert changes == 1
        assert content.paragraphs[0].runs == ["The dog sat on the ", "dog mat, concatenate"]
        entries = document.change_log.changes
        assert [e.type for e in entries] == [ChangeType.TEXT_REPLACED]
        assert entries[0].details == "Applied 1 replacement rule(s)"
        assert entries[0].element_id == "p0"

    def test_one_entry_per_paragraph(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()),
            text_rules=[
                TextReplacementRule(id="t1", source_text="alpha", replacement_text="A"),
                TextReplacementRule(id="t2", source_text="beta", replacement_text="B"),
            ],
        )
        document, recorder = _make_document()
        content = self._content(["alpha and beta"], ["nothing here"], ["beta"])

        assert engine.apply(document, content, recorder) == 2

        entries = document.change_log.changes
        assert [e.details for e in entries] == [
            "Applied 2 replacement rule(s)",
            "Applied 1 replacement rule(s)",
        ]

    def test_replacement_text_is_literal(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()),
            text_rules=[TextReplacementRule(id="t", source_text="fee", replacement_text=r"\1 $5")],
        )
        document, recorder = _make_document()
        content = self._content(["fee due"])

        engine.apply(document, content, recorder)

        assert content.paragraphs[0].text == r"\1 $5 due"

    def test_invalid_text_rules_are_warnings(self) -> None:
        engine = ReplacementEngine(
            validator=_make_validator(_make_client()),
            text_rules=[
                TextReplacementRule(id="empty", source_text=" ", replacement_text="x"),
                TextReplacementRule(id="same", source_text="x", replacement_text="x"),
                TextReplacementRule(id="blank", source_text="x", replacement_text=""),
            ],
        )
        document, recorder = _make_document()

        assert engine.apply(document, self._content(["x"]), recorder) == 0
        assert [e.rule_id for e in document.processing_errors] == ["empty", "same", "blank"]
        assert all(e.severity == ErrorSeverity.WARNING for e in document.processing_errors)
