"""
Exception classes for icloud-album.

This module defines all custom exceptions used throughout the library.
Each exception maps to one failure class of the shared-stream protocol so
callers can tell a bad token from a flaky network from a broken payload.

Exception Hierarchy:
    ICloudAlbumError (base)
        ConfigError - Configuration file issues
        InvalidTokenError - Token cannot be mapped to a server partition
        StreamRequestError - HTTP/network failures
            TransientNetworkError - Connection, timeout, 5xx (retryable)
            RateLimitedError - HTTP 429 (retryable)
            ClientRejectedError - Other 4xx (not retryable)
        DecodeError - Response payload problems
            SchemaViolationError - Required field missing or malformed

Lenient decode problems are not exceptions; see
icloud_album.core.decoder.LenientCoercionWarning.
"""


class ICloudAlbumError(Exception):
    """
    Base exception for all icloud-album errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every classified failure with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., URL, status).

    Example:
        try:
            album = get_album(token)
        except ICloudAlbumError as e:
            logger.error(f"Album resolution failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'url': Endpoint that was called
                     - 'status_code': HTTP status of the response
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ICloudAlbumError):
    """
    Raised when there's an issue with the configuration file.

    Common causes:
        - Explicit config path does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., negative timeout, unknown strategy)
    """
    pass


class InvalidTokenError(ICloudAlbumError):
    """
    Raised when a share token cannot be turned into a base URL.

    This is fatal and never retried: the leading character of the token
    must be a base-62 digit (0-9, A-Z, a-z).

    Attributes:
        token: The rejected token.
    """

    def __init__(self, token: str, details: dict | None = None) -> None:
        if token:
            message = f"Invalid share token {token!r}: leading character {token[0]!r} is not base-62"
        else:
            message = "Invalid share token: token is empty"
        super().__init__(message, details or {"token": token})
        self.token = token


class StreamRequestError(ICloudAlbumError):
    """
    Base class for failures talking to the shared-streams endpoints.

    Attributes:
        status_code: HTTP status of the response, or None when no
                     response was received (connection error, timeout).
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class TransientNetworkError(StreamRequestError):
    """
    Raised for failures that are expected to go away on retry.

    Common causes:
        - Connection refused / reset, DNS failure
        - Request timeout
        - HTTP 5xx
        - A success response whose body is not readable JSON
    """
    pass


class RateLimitedError(StreamRequestError):
    """
    Raised when the server explicitly asks us to slow down (HTTP 429).

    Attributes:
        retry_after: Seconds the server asked us to wait, when the
                     Retry-After header carried a number; otherwise None.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        retry_after: float | None = None
    ) -> None:
        super().__init__(message, details, status_code=429)
        self.retry_after = retry_after


class ClientRejectedError(StreamRequestError):
    """
    Raised for 4xx responses other than rate limiting.

    Fatal for the webstream call. The webasseturls call absorbs a 400
    into an empty URL map instead of raising.
    """
    pass


class DecodeError(ICloudAlbumError):
    """Base class for response payload errors."""
    pass


class SchemaViolationError(DecodeError):
    """
    Raised when a Required field is missing or has the wrong shape.

    Attributes:
        field: Dotted path of the offending field,
               e.g. "photos[1].derivatives.2.checksum".
    """

    def __init__(self, field: str, reason: str, details: dict | None = None) -> None:
        super().__init__(
            f"Schema violation at '{field}': {reason}",
            details or {"field": field, "reason": reason}
        )
        self.field = field
        self.reason = reason


def is_retryable(error: BaseException) -> bool:
    """
    Check whether an error belongs to the transient class.

    Args:
        error: Any exception raised by a unit of work.

    Returns:
        True for TransientNetworkError and RateLimitedError, False otherwise.
    """
    return isinstance(error, (TransientNetworkError, RateLimitedError))
