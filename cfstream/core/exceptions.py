"""
Custom exceptions for cfstream operations.

Every error surfaced by the upload engine and the API client derives from
StreamError so callers can catch one type, or inspect the subclass.
"""
from typing import Optional, Dict, Type


class StreamError(Exception):
    """Base exception for all cfstream errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status_code: HTTP status code (if available)
        """
        self.status_code = status_code
        super().__init__(message)


class InvalidInputError(StreamError, ValueError):
    """Raised when caller-supplied input is rejected before any I/O."""
    pass


class ConfigError(StreamError):
    """Raised when configuration is missing or invalid."""
    pass


class ProtocolViolationError(StreamError):
    """Raised when the service answers with a response we cannot interpret."""
    pass


class ProcessingError(StreamError):
    """Raised when the service reports that video processing failed."""

    def __init__(self, message: str, video_id: Optional[str] = None) -> None:
        self.video_id = video_id
        super().__init__(message)


class TransportError(StreamError):
    """
    Raised for unexpected HTTP statuses and network failures.

    Attributes:
        status_code: HTTP status, None for network-level failures
        body: Response body text (if any)
    """

    summary = ''

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = ''
    ) -> None:
        self.body = body
        super().__init__(message, status_code)

    @classmethod
    def from_status(
        cls,
        status_code: int,
        body: str = '',
        context: str = 'request'
    ) -> 'TransportError':
        """
        Build the most specific error for an HTTP status.

        Args:
            status_code: HTTP status returned by the service
            body: Response body text
            context: Short description of the failed operation

        Returns:
            TransportError (or subclass) instance
        """
        error_cls = _STATUS_ERRORS.get(status_code, TransportError)
        message = f"{context} failed with status {status_code}"
        if error_cls.summary:
            message = f"{error_cls.summary}: {message}"
        if body:
            message = f"{message}: {body}"
        return error_cls(message, status_code=status_code, body=body)


class BadRequestError(TransportError):
    """HTTP 400."""
    summary = 'invalid input'


class UnauthorizedError(TransportError):
    """HTTP 401."""
    summary = 'unauthorized: invalid API token or account ID'


class ForbiddenError(TransportError):
    """HTTP 403."""
    summary = 'forbidden: insufficient permissions'


class NotFoundError(TransportError):
    """HTTP 404."""
    summary = 'video not found'


class RateLimitError(TransportError):
    """HTTP 429."""
    summary = 'rate limit exceeded: please wait before retrying'


_STATUS_ERRORS: Dict[int, Type[TransportError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: RateLimitError,
}
