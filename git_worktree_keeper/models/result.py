"""Result type returned by fallible worktree operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from git_worktree_keeper.exceptions import WorktreeOperationError

T = TypeVar("T")


class ErrorKind(Enum):
    """Category of a failed operation."""

    TOOL_EXECUTION = "tool-execution"  # git exited non-zero, failed to spawn or timed out
    PRECONDITION = "precondition"  # nothing was run
    SAFETY_VIOLATION = "safety-violation"  # worktree is open in another session
    CANCELLED = "cancelled"  # a confirmation was declined


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: either a value or an error message."""

    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, kind: ErrorKind = ErrorKind.TOOL_EXECUTION) -> "Result[T]":
        return cls(error=message or "Unknown error", kind=kind)

    @property
    def ok(self) -> bool:
        return self.kind is None

    def unwrap(self, operation: str = "unwrap") -> T:
        """Return the value, raising if this is a failure.

        Raises:
            WorktreeOperationError: If the result is a failure
        """
        if not self.ok:
            raise WorktreeOperationError(operation, message=self.error)
        return self.value

    def __bool__(self) -> bool:
        return self.ok
