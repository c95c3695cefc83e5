import logging
import sys

LOGGER_NAME = "bulk_editor"


class Log:
    """Structured logging facade handed to each component that needs it."""

    def __init__(self, name: str = LOGGER_NAME) -> None:
        self._logger: logging.Logger = logging.getLogger(name)

    def configure(self, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        self._logger.setLevel(log_level.upper())
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            self._logger.addHandler(handler)

    def info(self, message: str, **kwargs: object) -> None:
        """Log an info message."""
        self._logger.info(message, extra=kwargs)

    def error(self, message: str, **kwargs: object) -> None:
        """Log an error message."""
        self._logger.error(message, extra=kwargs)

    def warning(self, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        self._logger.warning(message, extra=kwargs)

    def debug(self, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        self._logger.debug(message, extra=kwargs)
