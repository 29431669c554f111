"""
Success-or-failure values passed between rollkeep components.

A spend, a record write or a roll step answers with a Result rather than
raising. The roll pipeline threads one through then(): the first failing
step's error and code come out the other end and later steps never run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class ErrorCode(Enum):
    """Failure categories; the web surface maps each to an HTTP status."""

    # Pool and roller
    INVALID_POOL = "invalid_pool"
    ROLLER_UNAVAILABLE = "roller_unavailable"

    # Points on the record
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    OPERATION_NOT_ALLOWED = "operation_not_allowed"

    # Records
    CHARACTER_NOT_FOUND = "character_not_found"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    STORAGE_ERROR = "storage_error"

    # Bad requests
    VALIDATION_ERROR = "validation_error"
    INVALID_INPUT = "invalid_input"

    UNEXPECTED_ERROR = "unexpected_error"

    def __str__(self) -> str:
        return self.value


@dataclass
class Result:
    """
    Outcome of one step.

    ``error_code`` holds the ErrorCode *value* so results serialize as-is.

    Examples:
        >>> Result.ok(receipt).data.grant
        Grant(roll=1, keep=1)
        >>> Result.fail("Void Points: 0", ErrorCode.INSUFFICIENT_RESOURCE).error_code
        'insufficient_resource'
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def ok(data: Any = None) -> 'Result':
        return Result(success=True, data=data)

    @staticmethod
    def fail(error: str, code: Optional[str | ErrorCode] = None) -> 'Result':
        """Failed result; ``code`` may be an ErrorCode or a raw string."""
        if isinstance(code, ErrorCode):
            code = code.value
        return Result(success=False, error=error, error_code=code)

    def then(self, step: Callable[[Any], 'Result']) -> 'Result':
        """
        Feed this result's data to ``step`` if it succeeded.

        A failure passes through untouched.

        Examples:
            >>> spend(pool).then(lambda receipt: Result.ok(receipt.grant))
        """
        return step(self.data) if self.success else self

    def is_error(self, code: ErrorCode) -> bool:
        return not self.success and self.error_code == code.value

    def __bool__(self) -> bool:
        return self.success
