"""
Operation Results
=================

Result wrappers for operations with best-effort side effects.

A core step either succeeds or raises. Degraded side effects (SLA event
logging, notifications) are reported as warnings on the result so callers
can tell "fully succeeded" from "succeeded with a degraded side effect".
"""

from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from servicedesk.core.exceptions import ApplicationException

T = TypeVar("T")


@dataclass(frozen=True)
class OperationWarning:
    """A best-effort step that did not complete."""
    step: str
    code: str
    message: str

    @classmethod
    def from_exception(cls, step: str, code: str, exc: Exception) -> "OperationWarning":
        message = exc.message if isinstance(exc, ApplicationException) else str(exc)
        return cls(step=step, code=code, message=message)


@dataclass
class OperationResult(Generic[T]):
    """Core result plus warnings from best-effort steps."""
    value: T
    warnings: List[OperationWarning] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def warn(self, warning: OperationWarning) -> None:
        self.warnings.append(warning)
