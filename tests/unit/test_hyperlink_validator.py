from unittest.mock import MagicMock

import pytest

from bulk_editor.processor.lookup_id import canonical_url
from bulk_editor.processor.models import (
    Document,
    ErrorSeverity,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
)
from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.exceptions import (
    LookupNetworkError,
    LookupResponseError,
    ValidationClientError,
)
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.validation.models import ApiResponse, DocumentRecord
from bulk_editor.validation.retry import RetryPolicy


def _record(lookup_id: str, status: str = "Active", content_id: str = "123456") -> DocumentRecord:
    return DocumentRecord(
        document_id=lookup_id,
        content_id=content_id,
        title=f"Title of {lookup_id}",
        status=status,
        lookup_id=lookup_id,
    )


def _make_validator(
    max_attempts: int = 3,
    check_expired_content: bool = True,
) -> tuple[HyperlinkValidator, MagicMock, list[int]]:
    client = MagicMock(spec=BaseLookupClient)
    attempts: list[int] = []
    policy = RetryPolicy(
        max_attempts=max_attempts,
        delay_seconds=0,
        sleep=MagicMock(),
        on_attempt=attempts.append,
    )
    validator = HyperlinkValidator(
        client=client,
        retry_policy=policy,
        cache=LookupCache(),
        check_expired_content=check_expired_content,
    )
    return validator, client, attempts


def _make_document(*lookup_ids: str | None) -> Document:
    document = Document(file_path="/docs/a.docx")
    for i, lookup_id in enumerate(lookup_ids):
        url = f"http://old/?docid={lookup_id}" if lookup_id else "https://example.com"
        document.hyperlinks.append(
            Hyperlink(
                display_text=f"Link {i}",
                original_url=url,
                element_id=f"h{i}",
                lookup_id=lookup_id,
            )
        )
    return document


class TestStatusMapping:
    def test_active_record_is_valid(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("TSRC-ABC-123456")])
        document = _make_document("TSRC-ABC-123456")

        validator.validate(document)

        link = document.hyperlinks[0]
        assert link.status == HyperlinkStatus.VALID
        assert link.document_id == "TSRC-ABC-123456"
        assert link.content_id == "123456"
        assert link.title == "Title of TSRC-ABC-123456"
        assert link.last_checked is not None
        assert link.requires_update is True

    def test_expired_record(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("CMS-X-111111", "Expired")])
        document = _make_document("CMS-X-111111")

        validator.validate(document)

        assert document.hyperlinks[0].status == HyperlinkStatus.EXPIRED

    def test_expired_is_valid_when_not_checked(self) -> None:
        validator, client, _ = _make_validator(check_expired_content=False)
        client.lookup.return_value = ApiResponse(results=[_record("CMS-X-111111", "Expired")])
        document = _make_document("CMS-X-111111")

        validator.validate(document)

        assert document.hyperlinks[0].status == HyperlinkStatus.VALID

    def test_missing_result_is_not_found(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[])
        document = _make_document("CMS-X-111111")

        validator.validate(document)

        assert document.hyperlinks[0].status == HyperlinkStatus.NOT_FOUND
        assert "not found" in document.hyperlinks[0].error_message

    def test_not_found_status(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("CMS-X-111111", "Not Found")])
        document = _make_document("CMS-X-111111")

        validator.validate(document)

        assert document.hyperlinks[0].status == HyperlinkStatus.NOT_FOUND

    def test_pads_content_id(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(
            results=[_record("CMS-X-012345", content_id="12345")]
        )
        document = _make_document("CMS-X-012345")

        validator.validate(document)

        assert document.hyperlinks[0].content_id == "012345"

    def test_canonical_url_needs_no_update(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("TSRC-ABC-123456")])
        document = _make_document("TSRC-ABC-123456")
        document.hyperlinks[0].original_url = canonical_url("TSRC-ABC-123456")

        validator.validate(document)

        assert document.hyperlinks[0].requires_update is False

    def test_extra_query_parameters_need_update(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("TSRC-ABC-123456")])
        document = _make_document("TSRC-ABC-123456")
        document.hyperlinks[0].original_url = canonical_url("TSRC-ABC-123456") + "&lang=en"

        validator.validate(document)

        assert document.hyperlinks[0].requires_update is True


class TestLookupCalls:
    def test_deduplicates_ids_within_document(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(
            results=[_record("TSRC-ABC-123456"), _record("CMS-X-111111")]
        )
        document = _make_document("TSRC-ABC-123456", "CMS-X-111111", "TSRC-ABC-123456")

        validator.validate(document)

        client.lookup.assert_called_once_with(["TSRC-ABC-123456", "CMS-X-111111"])
        assert all(h.status == HyperlinkStatus.VALID for h in document.hyperlinks)

    def test_skips_links_without_lookup_id(self) -> None:
        validator, client, _ = _make_validator()
        document = _make_document(None)

        validator.validate(document)

        client.lookup.assert_not_called()
        assert document.hyperlinks[0].status == HyperlinkStatus.PENDING

    def test_skips_removed_links(self) -> None:
        validator, client, _ = _make_validator()
        document = _make_document("TSRC-ABC-123456")
        document.hyperlinks[0].action_taken = HyperlinkAction.REMOVED

        validator.validate(document)

        client.lookup.assert_not_called()

    def test_uses_cache_across_documents(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[_record("TSRC-ABC-123456")])

        validator.validate(_make_document("TSRC-ABC-123456"))
        second = _make_document("TSRC-ABC-123456")
        validator.validate(second)

        assert client.lookup.call_count == 1
        assert second.hyperlinks[0].status == HyperlinkStatus.VALID

    def test_caches_misses(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.return_value = ApiResponse(results=[])

        validator.validate(_make_document("CMS-X-111111"))
        validator.validate(_make_document("CMS-X-111111"))

        assert client.lookup.call_count == 1

    def test_prefetch_chunks_requests(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.side_effect = lambda ids: ApiResponse(results=[_record(i) for i in ids])
        ids = [f"CMS-X-{n:06d}" for n in range(5)]

        fetched = validator.prefetch(ids + ids[:2], chunk_size=2)

        assert fetched == 5
        assert [len(c.args[0]) for c in client.lookup.call_args_list] == [2, 2, 1]
        assert len(validator.cache) == 5


class TestFailures:
    def test_transient_failures_then_success(self) -> None:
        validator, client, attempts = _make_validator(max_attempts=3)
        client.lookup.side_effect = [
            LookupNetworkError("down"),
            LookupNetworkError("down"),
            ApiResponse(results=[_record("TSRC-ABC-123456")]),
        ]
        document = _make_document("TSRC-ABC-123456")

        validator.validate(document)

        assert len(attempts) == 3
        assert document.hyperlinks[0].status == HyperlinkStatus.VALID
        assert document.processing_errors == []

    def test_exhausted_retries_mark_error_with_warning(self) -> None:
        validator, client, attempts = _make_validator(max_attempts=3)
        client.lookup.side_effect = LookupNetworkError("down")
        document = _make_document("TSRC-ABC-123456", None)

        validator.validate(document)

        assert len(attempts) == 3
        link = document.hyperlinks[0]
        assert link.status == HyperlinkStatus.ERROR
        assert "after 3 attempts" in link.error_message
        assert document.hyperlinks[1].status == HyperlinkStatus.PENDING
        assert len(document.processing_errors) == 1
        assert document.processing_errors[0].severity == ErrorSeverity.WARNING

    def test_non_transient_failure_is_not_retried(self) -> None:
        validator, client, attempts = _make_validator(max_attempts=3)
        client.lookup.side_effect = LookupResponseError("HTTP 404")
        document = _make_document("CMS-ZZZ-999999")

        validator.validate(document)

        assert attempts == [1]
        assert document.hyperlinks[0].status == HyperlinkStatus.ERROR
        assert document.processing_errors[0].severity == ErrorSeverity.WARNING

    def test_rejected_request_is_retried_per_id(self) -> None:
        validator, client, _ = _make_validator()

        def lookup(ids: list[str]) -> ApiResponse:
            if "CMS-ZZZ-999999" in ids:
                raise LookupResponseError("HTTP 404")
            return ApiResponse(results=[_record(i) for i in ids])

        client.lookup.side_effect = lookup
        document = _make_document("TSRC-ABC-123456", "CMS-ZZZ-999999")

        validator.validate(document)

        assert [h.status for h in document.hyperlinks] == [
            HyperlinkStatus.VALID,
            HyperlinkStatus.ERROR,
        ]
        assert len(document.processing_errors) == 1
        assert "CMS-ZZZ-999999" in document.processing_errors[0].message
        assert [c.args[0] for c in client.lookup.call_args_list] == [
            ["TSRC-ABC-123456", "CMS-ZZZ-999999"],
            ["TSRC-ABC-123456"],
            ["CMS-ZZZ-999999"],
        ]

    def test_exhausted_ids_are_not_requested_again(self) -> None:
        validator, client, attempts = _make_validator(max_attempts=2)
        client.lookup.side_effect = LookupNetworkError("down")

        validator.prefetch(["TSRC-ABC-123456"], chunk_size=10)
        document = _make_document("TSRC-ABC-123456")
        validator.validate(document)

        assert len(attempts) == 2
        assert document.hyperlinks[0].status == HyperlinkStatus.ERROR
        assert "after 2 attempts" in document.hyperlinks[0].error_message

    def test_failed_ids_are_retried_after_cache_clear(self) -> None:
        validator, client, attempts = _make_validator(max_attempts=1)
        client.lookup.side_effect = LookupNetworkError("down")

        validator.validate(_make_document("TSRC-ABC-123456"))
        validator.cache.clear()
        validator.validate(_make_document("TSRC-ABC-123456"))

        assert len(attempts) == 2

    def test_resolve_raises_for_failed_id(self) -> None:
        validator, client, _ = _make_validator()
        client.lookup.side_effect = LookupResponseError("HTTP 400")

        with pytest.raises(ValidationClientError, match="CMS-X-111111"):
            validator.resolve(["CMS-X-111111"])
