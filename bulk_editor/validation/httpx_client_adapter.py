import httpx

from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.exceptions import LookupNetworkError, LookupResponseError
from bulk_editor.validation.models import ApiResponse
from bulk_editor.validation.response_parser import validate_and_build


class HttpxLookupClient(BaseLookupClient):
    """Validation API client built on httpx.

    A single ``httpx.Client`` is shared by all workers of a batch.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        user_agent: str,
        follow_redirects: bool = True,
        api_key: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("api_base_url is required for lookup_provider=http")
        headers = {"User-Agent": user_agent, "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._url = base_url.strip()
        self._client = httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=follow_redirects,
            headers=headers,
            transport=transport,
        )

    def lookup(self, lookup_ids: list[str]) -> ApiResponse:
        try:
            response = self._client.post(self._url, json={"Lookup_ID": lookup_ids})
        except httpx.TimeoutException as exc:
            raise LookupNetworkError(f"Validation API timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise LookupNetworkError(f"Validation API network error: {exc}") from exc

        if response.status_code >= 500:
            raise LookupNetworkError(
                f"Validation API server error: HTTP {response.status_code}"
            )
        if response.status_code >= 400:
            raise LookupResponseError(
                f"Validation API rejected request: HTTP {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise LookupResponseError(f"Invalid JSON response: {exc}") from exc
        return validate_and_build(data)

    def close(self) -> None:
        self._client.close()
