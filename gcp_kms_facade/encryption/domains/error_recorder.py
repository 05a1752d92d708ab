"""Error recording capability injected into the encryption service."""
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ErrorRecorder(Protocol):
    """Sink for failed operations."""

    def record_error(self, operation: str, message: str) -> None:
        ...


class LoggingErrorRecorder:
    """Writes one ERROR record per failure with structured fields."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._logger = log or logger

    def record_error(self, operation: str, message: str) -> None:
        self._logger.error(
            f"{operation} failed: {message}",
            extra={"operation": operation, "error_message": message},
        )
