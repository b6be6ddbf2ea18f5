"""Result pattern for consistent return types in LoanQuote.

The engine converts classified submission failures into a Result instead of
letting the exception escape to the UI layer.
"""
from dataclasses import dataclass
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """Represents the outcome of an operation.

    Attributes:
        success: Whether the operation succeeded.
        value: The return value on success, None on failure.
        error: User-facing error message on failure, None on success.
        error_type: Category of error, either an ErrorKind for submission
            failures or an ErrorType for requests the engine ignored.

    Usage:
        result = await engine.request_quote()
        if result:
            show_quote(result.value.quote_id)
        elif result.error_type == ErrorKind.RATE_LIMIT_ERROR:
            disable_button()
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None) -> 'Result[T]':
        """Create a failure result.

        Args:
            error: Error message describing what went wrong.
            error_type: Optional error category for programmatic handling.
        """
        return cls(success=False, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success


class ErrorType:
    """Reasons the engine declined to act on a request."""
    ALREADY_QUOTED = "ALREADY_QUOTED"
    IN_PROGRESS = "IN_PROGRESS"
    NO_ERROR = "NO_ERROR"
