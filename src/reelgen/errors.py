"""Error taxonomy shared by services and the HTTP layer."""

from fastapi import status


class ReelgenError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(ReelgenError):
    """Missing or invalid bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(ReelgenError):
    """A required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ReelgenError):
    status_code = status.HTTP_404_NOT_FOUND


class PreconditionFailedError(ReelgenError):
    """An admission guard denied the request (balance exhausted, daily cap reached)."""

    status_code = status.HTTP_412_PRECONDITION_FAILED


class ConfigurationError(ReelgenError):
    """A required configuration value is absent."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(ReelgenError):
    """An external provider (model, LLM, storage, transcoder) rejected or timed out."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class RateLimitedError(UpstreamError):
    """The provider answered 429."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.retry_after = retry_after
