"""
Operation results for the mock backend.

Every asynchronous store operation resolves to an OperationResult: either a
success carrying a value, or a failure carrying the error. Exactly one of
the two is ever set.
"""

from dataclasses import dataclass
from typing import Any

from featuresynth.errors import FeatureSynthError, SimulatedServiceFailure


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one store operation."""
    operation: str
    value: Any = None
    error: FeatureSynthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_service_failure(self) -> bool:
        """True when the failure was injected by an unreliable service."""
        return isinstance(self.error, SimulatedServiceFailure)

    @classmethod
    def success(cls, operation: str, value: Any = None) -> "OperationResult":
        return cls(operation=operation, value=value)

    @classmethod
    def failure(cls, operation: str, error: FeatureSynthError) -> "OperationResult":
        return cls(operation=operation, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value
