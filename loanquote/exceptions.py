"""Custom exceptions for LoanQuote."""
import asyncio


class LoanQuoteError(Exception):
    """Base exception for all LoanQuote errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigurationError(LoanQuoteError):
    """Raised when the loan configuration is missing or unusable."""
    pass


class StorageError(LoanQuoteError):
    """Raised when the local state cache cannot be read or written."""
    pass


class ErrorKind:
    """Classification of quote submission failures."""
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApiError(LoanQuoteError):
    """Raised by the quote backend. The kind drives retry and display policy."""

    def __init__(self, kind: str, message: str, code: str = None, retry_after: int = None):
        details = {}
        if code:
            details['code'] = code
        if retry_after is not None:
            details['retry_after'] = retry_after
        super().__init__(message, details)
        self.kind = kind
        self.code = code
        self.retry_after = retry_after


class NetworkError(ApiError):
    """Raised when the backend cannot be reached."""

    def __init__(self, message: str, code: str = None):
        super().__init__(ErrorKind.NETWORK_ERROR, message, code)


class ServerError(ApiError):
    """Raised when the backend fails while handling a request."""

    def __init__(self, message: str, code: str = None):
        super().__init__(ErrorKind.SERVER_ERROR, message, code)


class QuoteValidationError(ApiError):
    """Raised when the request carries an out-of-range amount or term."""

    def __init__(self, message: str, code: str = None):
        super().__init__(ErrorKind.VALIDATION_ERROR, message, code)


class RequestTimeoutError(ApiError):
    """Raised when the backend does not answer in time."""

    def __init__(self, message: str, code: str = None):
        super().__init__(ErrorKind.TIMEOUT_ERROR, message, code)


class RateLimitError(ApiError):
    """Raised when the caller exceeded its request quota."""

    def __init__(self, message: str, code: str = None, retry_after: int = 60):
        super().__init__(ErrorKind.RATE_LIMIT_ERROR, message, code, retry_after)


NON_RETRYABLE_KINDS = frozenset({ErrorKind.VALIDATION_ERROR, ErrorKind.RATE_LIMIT_ERROR})


def error_kind(error: BaseException) -> str:
    """Return the ErrorKind for any exception."""
    if isinstance(error, ApiError):
        return error.kind
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT_ERROR
    if isinstance(error, ConnectionError):
        return ErrorKind.NETWORK_ERROR
    return ErrorKind.UNKNOWN_ERROR


def is_retryable(error: BaseException) -> bool:
    return error_kind(error) not in NON_RETRYABLE_KINDS

