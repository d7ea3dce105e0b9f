"""Error taxonomy shared by the client, aggregation and API layers."""

from enum import Enum


class FplErrorType(str, Enum):
    """Failure classes callers branch on."""

    VALIDATION = "validation"
    NOT_FOUND = "not-found"
    RATE_LIMITED = "rate-limited"
    SERVER_ERROR = "server-error"
    TIMEOUT = "timeout"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed-response"
    PROCESSING = "processing"


# HTTP status returned to our own callers for each failure class
HTTP_STATUS_BY_TYPE: dict[FplErrorType, int] = {
    FplErrorType.VALIDATION: 400,
    FplErrorType.NOT_FOUND: 404,
    FplErrorType.RATE_LIMITED: 429,
    FplErrorType.SERVER_ERROR: 503,
    FplErrorType.TIMEOUT: 504,
    FplErrorType.NETWORK: 503,
    FplErrorType.MALFORMED_RESPONSE: 503,
    FplErrorType.PROCESSING: 500,
}

# Upstream failures worth another attempt
RETRYABLE_TYPES = frozenset(
    {
        FplErrorType.RATE_LIMITED,
        FplErrorType.SERVER_ERROR,
        FplErrorType.TIMEOUT,
        FplErrorType.NETWORK,
        FplErrorType.MALFORMED_RESPONSE,
    }
)


class FplApiError(Exception):
    """A classified failure.

    Attributes:
        error_type: Taxonomy class, used for control flow and HTTP mapping
        message: Short human-readable message, safe to show to users
        status_code: Upstream HTTP status when one was received
        retryable: Whether the HTTP client layer may try again
    """

    def __init__(
        self,
        error_type: FplErrorType,
        message: str,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.status_code = status_code
        if retryable is None:
            retryable = error_type in RETRYABLE_TYPES
        self.retryable = retryable

    @property
    def http_status(self) -> int:
        """Status code to answer our own caller with."""
        return HTTP_STATUS_BY_TYPE[self.error_type]

    def to_response_body(self) -> dict[str, str]:
        return {"error": self.message, "type": self.error_type.value}

    def __repr__(self) -> str:
        return (
            f"FplApiError(type={self.error_type.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )
