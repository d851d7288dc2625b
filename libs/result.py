"""Result type for use case outcomes

Use cases return ``Result[T]`` instead of raising for expected failures.
Callers branch on ``is_ok()`` / ``is_err()`` and read ``value`` or ``error``.
"""

from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class Error(BaseModel):
    """Machine-readable failure with a human message"""

    code: str = Field(..., description="Stable error code (e.g. VALIDATION_ERROR)")
    message: str = Field(..., description="Human readable message")
    reason: Optional[str] = Field(default=None, description="Internal detail for logs")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Structured context (e.g. violated fields)"
    )


class Result(Generic[T]):
    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        if error is not None and value is not None:
            raise ValueError("Result cannot hold both a value and an error")
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result is an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Optional[Error]:
        return self._error

    def __repr__(self) -> str:
        if self.is_ok():
            return f"Result.ok({self._value!r})"
        return f"Result.err({self._error.code})"


class Return:
    """Constructors for Result"""

    @staticmethod
    def ok(value: T = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result[Any]:
        return Result(error=error)
