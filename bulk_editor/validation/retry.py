import time
from collections.abc import Callable
from typing import TypeVar

from bulk_editor.logging.logger import Log
from bulk_editor.validation.exceptions import LookupNetworkError

T = TypeVar("T")

BACKOFF_MODES = ("fixed", "exponential")


class RetryExhaustedError(LookupNetworkError):
    """Raised when every attempt of a transient operation failed."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RetryPolicy:
    """Runs an operation, retrying transient lookup failures with a delay.

    ``max_attempts`` is the total number of calls made, the first included.
    Only LookupNetworkError is retried; anything else propagates at once.
    """

    def __init__(
        self,
        *,
        max_attempts: int,
        delay_seconds: float,
        backoff: str = "fixed",
        sleep: Callable[[float], None] = time.sleep,
        on_attempt: Callable[[int], None] | None = None,
        log: Log | None = None,
    ) -> None:
        if backoff not in BACKOFF_MODES:
            raise ValueError(f"Unknown retry backoff '{backoff}'. Choose from: {list(BACKOFF_MODES)}")
        self._max_attempts = max(1, max_attempts)
        self._delay_seconds = max(0.0, delay_seconds)
        self._backoff = backoff
        self._sleep = sleep
        self._on_attempt = on_attempt
        self._log = log or Log()

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        if self._backoff == "exponential":
            return self._delay_seconds * (2 ** (attempt - 1))
        return self._delay_seconds

    def execute(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Run operation until it succeeds or the attempts are used up.

        Raises:
            RetryExhaustedError: if every attempt failed transiently.
            LookupResponseError: immediately, on a non-transient failure.
        """
        attempt = 0
        while True:
            attempt += 1
            if self._on_attempt is not None:
                self._on_attempt(attempt)
            try:
                return operation()
            except LookupNetworkError as exc:
                if attempt >= self._max_attempts:
                    raise RetryExhaustedError(
                        f"{description} failed after {attempt} attempts: {exc}",
                        attempts=attempt,
                    ) from exc
                delay = self.delay_for(attempt)
                self._log.warning(
                    f"{description} failed (attempt {attempt}/{self._max_attempts}), "
                    f"retrying in {delay:.1f}s: {exc}"
                )
                self._sleep(delay)
