"""
Common feature contract.

A Feature is the interactive runtime built for one primary task. It derives
its initial state in the constructor, subscribes to the store collections it
watches on mount(), and renders to a plain dict the shell can draw.

Store operations are asynchronous. While one is pending the feature is busy
and refuses to start another; a result that arrives after unmount() is
discarded.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from featuresynth.engine.resolver import Capability, CompositeFeature
from featuresynth.errors import CapabilityUnavailable, SimulatedServiceFailure
from featuresynth.lib.config import EngineConfig
from featuresynth.models import FeatureKind, Task
from featuresynth.store import ChangeEvent, MockBackendStore, OperationResult, ScratchWatch, Subscription

logger = logging.getLogger(__name__)

ChangeListener = Callable[["Feature"], None]
Operation = Callable[[], Awaitable[OperationResult]]


@dataclass(frozen=True)
class Message:
    """Dismissable status line shown inside a feature."""
    level: str  # info, success, error
    text: str
    retry: Optional[str] = None  # action name the shell can offer

    def to_dict(self) -> dict:
        return {"level": self.level, "text": self.text, "retry": self.retry}


class Feature:
    """Base class for every registered feature."""

    kind: FeatureKind = FeatureKind.DEFAULT
    suppressed = False

    def __init__(
        self,
        composite: CompositeFeature,
        store: MockBackendStore,
        config: Optional[EngineConfig] = None,
    ):
        self.composite = composite
        self.task: Task = composite.task
        self.store = store
        self.config = config or store.config
        self.busy = False
        self.message: Optional[Message] = None
        self.mounted = False
        self.disposed = False
        self._subscriptions: list[Union[Subscription, ScratchWatch]] = []
        self._on_change: Optional[ChangeListener] = None
        self._retry: Optional[Operation] = None

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def capability(self, name: str) -> Optional[Capability]:
        return self.composite.companions.get(name)

    def has(self, name: str) -> bool:
        return self.composite.companions.enabled(name)

    def require(self, name: str) -> None:
        """Raise CapabilityUnavailable unless capability name is enabled."""
        if not self.has(name):
            raise CapabilityUnavailable(name, self.task.id)

    def actions(self, *names: str) -> list[str]:
        """Subset of names whose capability is enabled."""
        return [name for name in names if self.has(name)]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def watched_collections(self) -> tuple[str, ...]:
        """Store collections whose changes re-render this feature."""
        return ()

    def watched_scratch_keys(self) -> tuple[str, ...]:
        """Scratch keys whose writes re-render this feature."""
        return ()

    def mount(self, on_change: Optional[ChangeListener] = None) -> "Feature":
        if self.disposed:
            raise RuntimeError(f"Feature for task '{self.task.id}' was unmounted")
        if self.mounted:
            return self
        self._on_change = on_change
        for name in self.watched_collections():
            collection = self.store.collection(name)
            self._subscriptions.append(collection.subscribe(self._handle_change))
        for key in self.watched_scratch_keys():
            self._subscriptions.append(self.store.scratch.subscribe(key, self._handle_scratch_change))
        self.mounted = True
        return self

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._on_change = None
        self.mounted = False
        self.disposed = True

    def _handle_change(self, event: ChangeEvent) -> None:
        if self.disposed:
            return
        self.on_store_change(event)
        self._notify()

    def _handle_scratch_change(self, key: str, value: Any) -> None:
        if self.disposed:
            return
        self._notify()

    def on_store_change(self, event: ChangeEvent) -> None:
        """Hook for features that keep derived state from the store."""

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _perform(
        self,
        label: str,
        operation: Operation,
        on_success: Optional[Callable[[Any], None]] = None,
        on_failure: Optional[Callable[[OperationResult], None]] = None,
        retry: Optional[Operation] = None,
    ) -> Optional[OperationResult]:
        """
        Run one store operation with the busy guard.

        Args:
            label: Short name for logs
            operation: Zero-argument coroutine factory returning an OperationResult
            on_success: Called with the result value
            on_failure: Called with the failed result, before the message is set
            retry: What retry() re-runs after a service failure

        Returns:
            The OperationResult, or None if the request was ignored (busy) or
            the feature was unmounted before it resolved
        """
        if self.disposed:
            logger.debug(f"[{self.task.id}] {label} ignored: feature unmounted")
            return None
        if self.busy:
            logger.debug(f"[{self.task.id}] {label} ignored: operation already pending")
            return None

        self.busy = True
        self.message = None
        self._retry = None
        self._notify()
        try:
            result = await operation()
        finally:
            self.busy = False

        if self.disposed:
            logger.debug(f"[{self.task.id}] discarded late {label} result")
            return None

        if result.ok:
            if on_success is not None:
                on_success(result.value)
        else:
            if on_failure is not None:
                on_failure(result)
            self._report_failure(result, retry)
        self._notify()
        return result

    def _report_failure(self, result: OperationResult, retry: Optional[Operation]) -> None:
        error = result.error
        if isinstance(error, SimulatedServiceFailure):
            if error.fallback:
                logger.warning(f"[{self.task.id}] {error.message}: {error.fallback}")
            self._retry = retry
            self.message = Message("error", error.message, retry="retry" if retry else None)
        else:
            self.message = Message("error", str(error))

    async def retry(self) -> Optional[OperationResult]:
        """Re-run the operation offered by the current failure message."""
        operation = self._retry
        if operation is None:
            return None
        self._retry = None
        self.message = None
        return await operation()

    def dismiss_message(self) -> None:
        self.message = None
        self._retry = None
        self._notify()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> Optional[dict]:
        return {
            "kind": self.kind.value,
            "task_id": self.task.id,
            "title": self.task.title,
            "busy": self.busy,
            "message": self.message.to_dict() if self.message else None,
            "body": self.render_body(),
        }

    def render_body(self) -> dict:
        return {}
