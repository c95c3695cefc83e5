from datetime import datetime

from bulk_editor.logging.logger import Log
from bulk_editor.processor.lookup_id import canonical_url, pad_content_id
from bulk_editor.processor.models import (
    Document,
    ErrorSeverity,
    Hyperlink,
    HyperlinkAction,
    HyperlinkStatus,
)
from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.exceptions import LookupResponseError, ValidationClientError
from bulk_editor.validation.models import DocumentRecord
from bulk_editor.validation.retry import RetryPolicy


class HyperlinkValidator:
    """Resolves hyperlink lookup ids against the validation API.

    The client and cache are shared by every worker in a batch. Each call
    to ``validate`` only touches the document it was given.
    """

    def __init__(
        self,
        *,
        client: BaseLookupClient,
        retry_policy: RetryPolicy,
        cache: LookupCache | None = None,
        check_expired_content: bool = True,
        log: Log | None = None,
    ) -> None:
        self._client = client
        self._retry_policy = retry_policy
        self._cache = cache if cache is not None else LookupCache()
        self._check_expired_content = check_expired_content
        self._log = log or Log()

    @property
    def cache(self) -> LookupCache:
        return self._cache

    def validate(self, document: Document) -> None:
        """Set status, ids and ``requires_update`` on every hyperlink with a lookup id.

        An id that cannot be looked up marks its own hyperlinks as Error, each
        with a Warning on the document; it never raises.
        """
        candidates = [
            h
            for h in document.hyperlinks
            if h.lookup_id and h.action_taken != HyperlinkAction.REMOVED
        ]
        lookup_ids = list(dict.fromkeys(h.lookup_id for h in candidates if h.lookup_id))
        if not lookup_ids:
            self._log.debug(f"No lookup ids to validate in {document.file_name}")
            return

        records, failures = self.resolve_each(lookup_ids)
        for hyperlink in candidates:
            lookup_id = hyperlink.lookup_id or ""
            if lookup_id in failures:
                self._mark_error(document, hyperlink, failures[lookup_id])
            else:
                self.apply_record(hyperlink, records.get(lookup_id))
        if failures:
            self._log.warning(
                f"Validation failed for {len(failures)} of {len(lookup_ids)} lookup id(s) "
                f"in {document.file_name}"
            )
        self._log.info(
            f"Validated {len(candidates)} hyperlink(s) ({len(lookup_ids)} unique id(s)) "
            f"in {document.file_name}"
        )

    def resolve(self, lookup_ids: list[str]) -> dict[str, DocumentRecord | None]:
        """Return a record (or None when unknown) for each id.

        Raises:
            ValidationClientError: if any of the ids could not be looked up.
        """
        records, failures = self.resolve_each(lookup_ids)
        if failures:
            lookup_id, message = next(iter(failures.items()))
            raise ValidationClientError(f"Lookup of {lookup_id} failed: {message}")
        return records

    def resolve_each(
        self,
        lookup_ids: list[str],
    ) -> tuple[dict[str, DocumentRecord | None], dict[str, str]]:
        """Resolve ids through the cache, then the API; never raises.

        Returns the answers (a record, or None when the API has no match) and
        the ids that could not be looked up, with their error message. Failed
        ids are remembered in the cache, so they are not requested again.
        """
        records, missing = self._cache.get_many(lookup_ids)
        failures = self._cache.get_failures(lookup_ids)
        if missing:
            self._log.debug(f"Looking up {len(missing)} id(s), {len(records)} cached")
            self._fetch(missing, records, failures)
        return records, failures

    def prefetch(self, lookup_ids: list[str], chunk_size: int) -> int:
        """Warm the cache with multi-id requests of at most chunk_size ids.

        Returns the number of ids requested. Ids that fail are remembered as
        failed for the rest of the batch.
        """
        unique = list(dict.fromkeys(lookup_ids))
        _, missing = self._cache.get_many(unique)
        size = max(1, chunk_size)
        for start in range(0, len(missing), size):
            chunk = missing[start:start + size]
            _, failures = self.resolve_each(chunk)
            if failures:
                self._log.warning(f"{len(failures)} of {len(chunk)} prefetched id(s) failed")
        return len(missing)

    def _fetch(
        self,
        lookup_ids: list[str],
        records: dict[str, DocumentRecord | None],
        failures: dict[str, str],
    ) -> None:
        try:
            response = self._retry_policy.execute(
                lambda: self._client.lookup(lookup_ids),
                description=f"Lookup of {len(lookup_ids)} id(s)",
            )
        except LookupResponseError as exc:
            if len(lookup_ids) > 1:
                # A rejected request may be caused by one id; isolate it.
                self._log.warning(
                    f"Lookup of {len(lookup_ids)} id(s) rejected, retrying one at a time: {exc}"
                )
                for lookup_id in lookup_ids:
                    self._fetch([lookup_id], records, failures)
                return
            self._remember_failure(lookup_ids, str(exc), failures)
            return
        except ValidationClientError as exc:
            self._remember_failure(lookup_ids, str(exc), failures)
            return

        fetched = {lookup_id: response.find(lookup_id) for lookup_id in lookup_ids}
        self._cache.put_many(fetched)
        records.update(fetched)

    def _remember_failure(
        self,
        lookup_ids: list[str],
        message: str,
        failures: dict[str, str],
    ) -> None:
        self._cache.put_failures(lookup_ids, message)
        failures.update(dict.fromkeys(lookup_ids, message))

    def apply_record(self, hyperlink: Hyperlink, record: DocumentRecord | None) -> None:
        hyperlink.last_checked = datetime.now()
        if record is None:
            hyperlink.status = HyperlinkStatus.NOT_FOUND
            hyperlink.error_message = f"Lookup id {hyperlink.lookup_id} not found"
            return

        hyperlink.content_id = pad_content_id(record.content_id)
        hyperlink.document_id = record.document_id
        hyperlink.title = record.title
        if record.is_not_found:
            hyperlink.status = HyperlinkStatus.NOT_FOUND
            hyperlink.error_message = f"Lookup id {hyperlink.lookup_id} not found"
        elif record.is_expired and self._check_expired_content:
            hyperlink.status = HyperlinkStatus.EXPIRED
        else:
            hyperlink.status = HyperlinkStatus.VALID
        if hyperlink.document_id or hyperlink.content_id:
            target = canonical_url(hyperlink.document_id, hyperlink.content_id)
            hyperlink.requires_update = hyperlink.current_url != target

    def _mark_error(self, document: Document, hyperlink: Hyperlink, message: str) -> None:
        hyperlink.status = HyperlinkStatus.ERROR
        hyperlink.error_message = message
        hyperlink.last_checked = datetime.now()
        document.add_error(
            f"Could not validate hyperlink '{hyperlink.display_text}' "
            f"({hyperlink.lookup_id}): {message}",
            severity=ErrorSeverity.WARNING,
        )
