class ValidationClientError(Exception):
    """Raised when a lookup against the validation API fails."""


class LookupNetworkError(ValidationClientError):
    """Raised on transient failures: network errors, timeouts and 5xx responses."""


class LookupResponseError(ValidationClientError):
    """Raised on non-transient failures: 4xx responses and malformed bodies."""
