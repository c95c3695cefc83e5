from bulk_editor.config.settings import Settings
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.example_client_adapter import ExampleLookupClient
from bulk_editor.validation.httpx_client_adapter import HttpxLookupClient


class LookupClientFactory:
    """Creates the configured validation API client."""

    PROVIDERS: tuple[str, ...] = ("example", "http")

    @classmethod
    def create(cls, settings: Settings) -> BaseLookupClient:
        provider = settings.lookup_provider.lower()
        if provider == "example":
            return ExampleLookupClient()
        if provider == "http":
            return HttpxLookupClient(
                base_url=settings.api_base_url,
                timeout_seconds=settings.http_timeout_seconds,
                user_agent=settings.user_agent,
                follow_redirects=settings.follow_redirects,
                api_key=settings.api_key,
            )
        raise ValueError(
            f"Unknown lookup provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
