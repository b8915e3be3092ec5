"""Single-shot call result handed back by every compiled operation."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from braque.errors import BraqueError

Callback = Callable[[BraqueError | None, Any], None]


@dataclass(frozen=True)
class CallResult:
    """Either an error or a value, never both."""

    error: BraqueError | None = None
    value: Any = None

    @classmethod
    def success(cls, value: Any) -> "CallResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BraqueError, value: Any = None) -> "CallResult":
        return cls(error=error, value=value)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value

    def notify(self, callback: Callback | None) -> "CallResult":
        """Hand the outcome to `callback` (if any) and return self."""
        if callback is not None:
            callback(self.error, self.value)
        return self
