from bulk_editor.validation.cache import LookupCache
from bulk_editor.validation.client_base import BaseLookupClient
from bulk_editor.validation.factory import LookupClientFactory
from bulk_editor.validation.hyperlink_validator import HyperlinkValidator
from bulk_editor.validation.retry import RetryPolicy

__all__ = [
    "BaseLookupClient",
    "HyperlinkValidator",
    "LookupCache",
    "LookupClientFactory",
    "RetryPolicy",
]
