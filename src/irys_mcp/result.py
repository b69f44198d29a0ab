"""
Result values returned across component boundaries.

Every ledger component returns a Result instead of raising, so a failure
in one place can be aggregated or reported without unwinding the caller.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from irys_mcp.errors import IrysError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a ledger operation.

    Attributes:
        success: Whether the operation succeeded
        value: The produced value if success is True
        error: The failure if success is False
    """

    success: bool
    value: T | None = None
    error: IrysError | None = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: IrysError) -> "Result[T]":
        """Create a failed result."""
        return cls(success=False, error=error)

    @property
    def error_message(self) -> str | None:
        """The carried error's message, if any."""
        return self.error.message if self.error is not None else None

    def unwrap(self) -> T:
        """
        Return the value or raise the carried error.

        Raises:
            IrysError: If the result is a failure
            RuntimeError: If a failed result carries no error
        """
        if not self.success:
            if self.error is None:
                msg = "Failed result has no error to raise"
                raise RuntimeError(msg)
            raise self.error
        return self.value  # type: ignore[return-value]
