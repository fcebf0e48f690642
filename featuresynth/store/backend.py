"""
Mock backend store.

In-memory collections with simulated latency, randomized failure injection
and change notification. The store is an explicitly owned object: create one
per application runtime with open_store() and pass it to the Composer.

Usage:
    from featuresynth.store import open_store

    store = open_store(config)
    sub = store.users.subscribe(lambda event: print(event.snapshot))
    result = await store.users.add(user)
    if not result.ok:
        print(result.error)
    sub.unsubscribe()
"""

import asyncio
import copy
import csv
import dataclasses
import io
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from featuresynth.errors import (
    AuthenticationError,
    DuplicateEntityError,
    EntityNotFoundError,
    SimulatedServiceFailure,
)
from featuresynth.lib.config import EngineConfig
from featuresynth.lib.constants import COLLECTIONS
from featuresynth.store import seed
from featuresynth.store.results import OperationResult
from featuresynth.store.scratch import ScratchSpace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """Published to subscribers after a successful mutation."""
    collection: str
    operation: str  # add, remove, update, reset
    entity_id: Optional[str]
    snapshot: tuple  # full collection after the write, insertion order


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by Collection.subscribe()."""

    def __init__(self, collection: "Collection", callback: ChangeCallback):
        self.collection = collection
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.collection._discard(self)


class Collection:
    """One named, insertion-ordered collection of entities keyed by id.

    Reads return copies; writes go through the async operations only.
    """

    def __init__(self, name: str, store: "MockBackendStore"):
        self.name = name
        self._store = store
        self._items: dict[str, Any] = {}
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._items

    def ids(self) -> list[str]:
        return list(self._items)

    def get(self, entity_id: str) -> Any:
        entity = self._items.get(entity_id)
        return copy.copy(entity) if entity is not None else None

    def find(self, **attrs) -> list[Any]:
        """Entities whose attributes equal all given values."""
        return [
            copy.copy(entity) for entity in self._items.values()
            if all(getattr(entity, key, None) == value for key, value in attrs.items())
        ]

    def list(self):
        """Snapshot of the latest completed write."""
        return [copy.copy(entity) for entity in self._items.values()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, entity: Any) -> OperationResult:
        """Append an entity. Raises DuplicateEntityError on id collision."""
        operation = f"{self.name}.add"
        if entity.id in self._items:
            raise DuplicateEntityError(self.name, entity.id)

        failure = await self._store.simulate(operation)
        if failure:
            return OperationResult.failure(operation, failure)

        stored = self._commit_add(entity)
        return OperationResult.success(operation, copy.copy(stored))

    async def remove(self, entity_id: str) -> OperationResult:
        operation = f"{self.name}.remove"
        if entity_id not in self._items:
            return OperationResult.failure(operation, EntityNotFoundError(self.name, entity_id))

        failure = await self._store.simulate(operation)
        if failure:
            return OperationResult.failure(operation, failure)

        # Another caller may have removed it while this one was suspended
        removed = self._items.pop(entity_id, None)
        if removed is None:
            return OperationResult.failure(operation, EntityNotFoundError(self.name, entity_id))

        logger.info(f"[store] {self.name}: removed {entity_id}")
        self._publish("remove", entity_id)
        return OperationResult.success(operation, copy.copy(removed))

    async def update(self, entity_id: str, **changes) -> OperationResult:
        operation = f"{self.name}.update"
        if entity_id not in self._items:
            return OperationResult.failure(operation, EntityNotFoundError(self.name, entity_id))

        failure = await self._store.simulate(operation)
        if failure:
            return OperationResult.failure(operation, failure)

        current = self._items.get(entity_id)
        if current is None:
            return OperationResult.failure(operation, EntityNotFoundError(self.name, entity_id))

        updated = dataclasses.replace(current, **changes)
        self._items[entity_id] = updated
        logger.info(f"[store] {self.name}: updated {entity_id} {changes}")
        self._publish("update", entity_id)
        return OperationResult.success(operation, copy.copy(updated))

    def _commit_add(self, entity: Any) -> Any:
        if entity.id in self._items:
            raise DuplicateEntityError(self.name, entity.id)
        stored = copy.copy(entity)
        self._items[entity.id] = stored
        logger.info(f"[store] {self.name}: added {entity.id}")
        self._publish("add", entity.id)
        return stored

    def _seed(self, entities: Iterable[Any]) -> None:
        """Load entities without latency or notification (initialize only)."""
        for entity in entities:
            self._items[entity.id] = copy.copy(entity)

    def _clear(self) -> None:
        self._items.clear()

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _discard(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _drop_subscriptions(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.active = False
        self._subscriptions.clear()

    def _publish(self, operation: str, entity_id: Optional[str]) -> None:
        event = ChangeEvent(self.name, operation, entity_id, tuple(self.list()))
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription.callback(event)
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception(f"[store] subscriber failed on {self.name}.{operation}")


class MockServices:
    """Unreliable external services simulated on top of the store."""

    def __init__(self, store: "MockBackendStore"):
        self._store = store

    async def credit_check(self, applicant: Optional[str] = None) -> OperationResult:
        """Credit bureau lookup. Resolves to a score in [300, 850]."""
        operation = "credit_check"
        failure = await self._store.simulate(
            operation,
            message="Credit bureau API unavailable",
            fallback="manual credit verification required",
        )
        if failure:
            return OperationResult.failure(operation, failure)
        score = self._store.rng.randint(300, 850)
        logger.info(f"[services] credit score for {applicant or 'applicant'}: {score}")
        return OperationResult.success(operation, score)

    async def ocr_extract(self, filename: str) -> OperationResult:
        """Document OCR. Resolves to the extracted fields."""
        operation = "ocr"
        failure = await self._store.simulate(
            operation,
            message=f"Verification failed for '{filename}'",
            fallback="manual document review required",
        )
        if failure:
            return OperationResult.failure(operation, failure)

        applications = self._store.applications.list()
        applicant = applications[-1] if applications else None
        fields = {
            "Name": applicant.name if applicant else "Unknown applicant",
            "Income": f"{self._store.rng.randrange(30_000, 150_000, 1000):,} USD",
            "Document": filename,
        }
        return OperationResult.success(operation, fields)

    async def send_notification(self, notification) -> OperationResult:
        """Deliver a notification; on success it is recorded in the store."""
        operation = "notification"
        failure = await self._store.simulate(
            operation,
            message=f"Failed to send {notification.channel} notification",
            fallback="notification queued for manual follow-up",
        )
        if failure:
            return OperationResult.failure(operation, failure)
        stored = self._store.notifications._commit_add(notification)
        return OperationResult.success(operation, copy.copy(stored))

    async def authenticate(self, email: str, password: str) -> OperationResult:
        """Mock login against the users collection. Deliberately insecure."""
        operation = "login"
        failure = await self._store.simulate(operation, message="Authentication service unavailable")
        if failure:
            return OperationResult.failure(operation, failure)
        for user in self._store.users.find(email=email):
            if user.password == password:
                return OperationResult.success(operation, user)
        return OperationResult.failure(operation, AuthenticationError("Invalid email or password"))

    async def generate_report(self, rows: list[dict]) -> OperationResult:
        """Render rows as CSV after a simulated export delay."""
        operation = "report"
        failure = await self._store.simulate(operation, message="Report generation failed")
        if failure:
            return OperationResult.failure(operation, failure)
        buffer = io.StringIO()
        if rows:
            writer = csv.DictWriter(buffer, fieldnames=list(rows[0]))
            writer.writeheader()
            writer.writerows(rows)
        return OperationResult.success(operation, buffer.getvalue())


class MockBackendStore:
    """Process-lifetime mock backend.

    Lifecycle is explicit: initialize() loads seed data, reset() clears and
    reseeds, close() drops every subscription.
    """

    def __init__(self, config: Optional[EngineConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.users = Collection("users", self)
        self.boards = Collection("boards", self)
        self.applications = Collection("applications", self)
        self.notifications = Collection("notifications", self)
        self.scratch = ScratchSpace()
        self.services = MockServices(self)
        self.initialized = False
        self._counters: dict[str, int] = {}

    @property
    def collections(self) -> dict[str, Collection]:
        return {name: getattr(self, name) for name in COLLECTIONS}

    def collection(self, name: str) -> Collection:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name}")
        return getattr(self, name)

    def new_id(self, prefix: str) -> str:
        """Next id for prefix, e.g. user-0004."""
        self._counters[prefix] = self._counters.get(prefix, 0) + 1
        return f"{prefix}-{self._counters[prefix]:04d}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> "MockBackendStore":
        if self.initialized:
            return self
        if self.config.seed_data:
            self.users._seed(seed.seed_users(self.new_id))
            self.boards._seed(seed.seed_boards(self.new_id))
            self.applications._seed(seed.seed_applications(self.new_id, self.config.status_steps))
        self.initialized = True
        logger.info(
            "[store] initialized: "
            + ", ".join(f"{name}={len(coll)}" for name, coll in self.collections.items())
        )
        return self

    def reset(self) -> None:
        """Clear all data and reseed. Subscribers see a 'reset' event."""
        for coll in self.collections.values():
            coll._clear()
        self.scratch.clear()
        self._counters.clear()
        self.initialized = False
        self.initialize()
        for coll in self.collections.values():
            coll._publish("reset", None)

    def close(self) -> None:
        for coll in self.collections.values():
            coll._drop_subscriptions()
        self.scratch.drop_watches()
        logger.info("[store] closed")

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    async def simulate(
        self,
        operation: str,
        message: Optional[str] = None,
        fallback: Optional[str] = None,
    ) -> Optional[SimulatedServiceFailure]:
        """Wait out the simulated latency, then roll for failure.

        Returns the injected failure, or None on success.
        """
        profile = self.config.services.profile_for(operation)
        delay = self.rng.uniform(profile.min_delay, profile.max_delay) * self.config.latency_scale
        await asyncio.sleep(delay)

        if profile.failure_rate > 0 and self.rng.random() < profile.failure_rate:
            logger.warning(f"[store] simulated failure in {operation}")
            return SimulatedServiceFailure(
                operation,
                message or f"{operation} failed",
                fallback=fallback,
            )
        return None


def open_store(config: Optional[EngineConfig] = None) -> MockBackendStore:
    """Create and initialize a store."""
    return MockBackendStore(config).initialize()
