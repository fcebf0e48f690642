"""
Transient key/value scratch space.

Stands in for browser localStorage: values are stored JSON-serialised so
callers always get independent copies back. Lives only as long as the store.
Writes to a key are published to every watcher of that key, so features that
share a key (two todo lists, say) stay in step.
"""

import json
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

ScratchCallback = Callable[[str, Any], None]


class ScratchWatch:
    """Handle returned by ScratchSpace.subscribe()."""

    def __init__(self, space: "ScratchSpace", key: str, callback: ScratchCallback):
        self.space = space
        self.key = key
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.space._discard(self)


class ScratchSpace:
    """In-memory key/value area keyed by feature (e.g. "todos", "mockUser")."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self._watches: list[ScratchWatch] = []

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)
        self._publish(key)

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._publish(key)

    def append(self, key: str, item: Any) -> list:
        """Append item to the list stored under key and return the new list."""
        items = self.get(key, [])
        items.append(item)
        self.set(key, items)
        return items

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        cleared = list(self._data)
        self._data.clear()
        for key in cleared:
            self._publish(key)

    # ------------------------------------------------------------------
    # Watchers
    # ------------------------------------------------------------------

    def subscribe(self, key: str, callback: ScratchCallback) -> ScratchWatch:
        """Call callback(key, value) after every write to key."""
        watch = ScratchWatch(self, key, callback)
        self._watches.append(watch)
        return watch

    def watcher_count(self, key: str) -> int:
        return sum(1 for watch in self._watches if watch.key == key)

    def drop_watches(self) -> None:
        for watch in self._watches:
            watch.active = False
        self._watches.clear()

    def _discard(self, watch: ScratchWatch) -> None:
        if watch in self._watches:
            self._watches.remove(watch)

    def _publish(self, key: str) -> None:
        value = self.get(key)
        for watch in list(self._watches):
            if not watch.active or watch.key != key:
                continue
            try:
                watch.callback(key, value)
            except Exception:
                logger.exception(f"[scratch] watcher failed on '{key}'")
