from abc import ABC, abstractmethod

from bulk_editor.validation.models import ApiResponse


class BaseLookupClient(ABC):
    """Contract for validation API clients."""

    @abstractmethod
    def lookup(self, lookup_ids: list[str]) -> ApiResponse:
        """Resolve lookup ids to document records in a single request.

        Raises:
            LookupNetworkError: on transient failures worth retrying.
            LookupResponseError: on failures that a retry will not fix.
        """

    def close(self) -> None:
        """Release connections held by the client."""
