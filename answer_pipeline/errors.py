"""Typed errors surfaced by the answer pipeline."""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds a caller can observe."""

    VALIDATION = "VALIDATION_ERROR"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN = "UNKNOWN"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# Kinds that make the orchestrator fall through to the other provider
PROVIDER_FAILURE_KINDS = frozenset(
    {
        ErrorKind.TIMEOUT,
        ErrorKind.NETWORK,
        ErrorKind.RATE_LIMITED,
        ErrorKind.AUTHENTICATION,
        ErrorKind.INVALID_RESPONSE,
        ErrorKind.UNKNOWN,
    }
)

_HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_CONFIGURED: 503,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
}


class PipelineError(Exception):
    """Base class for every error the pipeline reports to callers."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider

    @property
    def retryable(self) -> bool:
        """Whether another provider may still succeed."""
        return self.kind in PROVIDER_FAILURE_KINDS

    @property
    def http_status(self) -> int:
        """HTTP status the web layer should answer with."""
        return _HTTP_STATUS.get(self.kind, 502)

    def to_dict(self) -> dict[str, str]:
        return {"status": "error", "message": self.message, "code": self.kind.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(PipelineError):
    kind = ErrorKind.VALIDATION


class NotConfiguredError(PipelineError):
    kind = ErrorKind.NOT_CONFIGURED


class ProviderTimeoutError(PipelineError):
    kind = ErrorKind.TIMEOUT


class NetworkError(PipelineError):
    kind = ErrorKind.NETWORK


class RateLimitedError(PipelineError):
    kind = ErrorKind.RATE_LIMITED


class AuthenticationError(PipelineError):
    kind = ErrorKind.AUTHENTICATION


class InvalidResponseError(PipelineError):
    kind = ErrorKind.INVALID_RESPONSE


class UnknownProviderError(PipelineError):
    """Non-2xx status with no more specific mapping."""

    kind = ErrorKind.UNKNOWN


class ServiceUnavailableError(PipelineError):
    """Both providers were tried and both failed."""

    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        *,
        primary_error: PipelineError | None = None,
        fallback_error: PipelineError | None = None,
    ) -> None:
        super().__init__(message, status_code=503)
        self.primary_error = primary_error
        self.fallback_error = fallback_error
