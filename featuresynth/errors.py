"""
Error taxonomy for featuresynth.

Recoverable errors (validation, simulated service failures) are surfaced
inside the feature that produced them. They never abort sibling features.
"""


class FeatureSynthError(Exception):
    """Base class for all featuresynth errors."""


class ValidationError(FeatureSynthError):
    """A form or task field failed one of its constraints."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class SimulatedServiceFailure(FeatureSynthError):
    """Injected failure from an unreliable mock backend operation.

    Carried inside a failed OperationResult rather than raised, so the
    caller can present a retry or fallback path.
    """

    def __init__(self, operation: str, message: str, fallback: str | None = None):
        self.operation = operation
        self.message = message
        self.fallback = fallback
        super().__init__(f"[{operation}] {message}")


class AuthenticationError(FeatureSynthError):
    """Mock credentials did not match any user."""


class EntityNotFoundError(FeatureSynthError):
    """No entity with the given id exists in the collection."""

    def __init__(self, collection: str, entity_id: str):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"No {collection} entry with id '{entity_id}'")


class DuplicateEntityError(FeatureSynthError):
    """An entity with the same id already exists in the collection."""

    def __init__(self, collection: str, entity_id: str):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"Duplicate id '{entity_id}' in {collection}")


class CapabilityUnavailable(FeatureSynthError):
    """Operation requested for a capability the feature does not expose."""

    def __init__(self, capability: str, task_id: str = ""):
        self.capability = capability
        self.task_id = task_id
        super().__init__(
            f"Capability '{capability}' is not available"
            + (f" (task: {task_id})" if task_id else "")
        )
