"""Error taxonomy for the ingestion pipeline."""

from typing import Any, Dict, Optional

RATE_LIMIT_CODES = {"rate_limit_reached", "usage_limit_reached"}


class NewsIngestError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(NewsIngestError):
    """Missing or unusable configuration."""


class FetchError(NewsIngestError):
    """A fetch against the news API failed. Fatal to the run."""

    def __init__(self, message: str, attempts: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.attempts = attempts

    @property
    def is_rate_limited(self) -> bool:
        return False

    @property
    def http_status(self) -> Optional[int]:
        return None

    def to_details(self) -> Dict[str, Any]:
        """Serializable error detail for the run log."""
        return {
            "error_class": type(self).__name__,
            "message": self.message,
            "attempts": self.attempts,
        }


class TransportError(FetchError):
    """Network failure or timeout."""


class HttpError(FetchError):
    """Non-2xx HTTP response."""

    def __init__(self, status: int, message: Optional[str] = None, attempts: int = 1) -> None:
        super().__init__(message or f"API request failed with status: {status}", attempts)
        self.status = status

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def http_status(self) -> Optional[int]:
        return self.status

    def to_details(self) -> Dict[str, Any]:
        details = super().to_details()
        details["status"] = self.status
        return details


class ApiError(FetchError):
    """Error reported by the API inside a 2xx envelope. Never retried."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(f"MediaStack API Error: {message}", attempts)
        self.api_message = message
        self.code = code
        self.status = status

    @property
    def is_rate_limited(self) -> bool:
        return self.code in RATE_LIMIT_CODES

    @property
    def http_status(self) -> Optional[int]:
        return self.status

    def to_details(self) -> Dict[str, Any]:
        details = super().to_details()
        details["code"] = self.code
        return details


class RecordError(NewsIngestError):
    """Failure scoped to a single raw record."""


class RecordValidationError(RecordError):
    """A raw record is missing a required field or carries an unparsable one."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class ConflictError(RecordError):
    """A unique constraint rejected a write."""

    def __init__(self, constraint: Optional[str], message: str = "") -> None:
        super().__init__(message or f"Unique constraint violated: {constraint}")
        self.constraint = constraint


class RegistryError(NewsIngestError):
    """A source or category name cannot be turned into a key."""
