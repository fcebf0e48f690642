"""List feature: a live table over one store collection."""

import logging
from typing import Optional

from featuresynth.features.base import Feature, Message
from featuresynth.models import FeatureKind
from featuresynth.store import OperationResult

logger = logging.getLogger(__name__)

# (keyword, collection), first keyword found in the task text wins
COLLECTION_KEYWORDS = (
    ("notification", "notifications"),
    ("application", "applications"),
    ("loan", "applications"),
    ("board", "boards"),
    ("user", "users"),
)
DEFAULT_COLLECTION = "users"


def collection_for(text: str) -> str:
    for keyword, name in COLLECTION_KEYWORDS:
        if keyword in text:
            return name
    return DEFAULT_COLLECTION


class ListFeature(Feature):
    kind = FeatureKind.LIST

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.collection_name = collection_for(self.task.text)
        self.filter_text = ""
        self.selected_id: Optional[str] = None

    @property
    def collection(self):
        return self.store.collection(self.collection_name)

    def watched_collections(self):
        return (self.collection_name,)

    def on_store_change(self, event):
        if self.selected_id and self.selected_id not in self.collection:
            self.selected_id = None

    def rows(self) -> list[dict]:
        """Rows of the latest snapshot, narrowed by the active filter."""
        rows = [entity.to_dict() for entity in self.collection.list()]
        needle = self.filter_text.strip().lower()
        if not needle or not self.has("filter"):
            return rows
        return [row for row in rows if any(needle in str(v).lower() for v in row.values())]

    def set_filter(self, text: str) -> None:
        self.require("filter")
        self.filter_text = text or ""
        self._notify()

    def select(self, entity_id: Optional[str]) -> Optional[dict]:
        """Select a row to show its details; None clears the selection."""
        if entity_id is None or entity_id not in self.collection:
            self.selected_id = None
        else:
            self.selected_id = entity_id
        self._notify()
        return self.selected()

    def selected(self) -> Optional[dict]:
        if self.selected_id is None:
            return None
        entity = self.collection.get(self.selected_id)
        return entity.to_dict() if entity is not None else None

    async def delete(self, entity_id: str) -> Optional[OperationResult]:
        self.require("delete")
        return await self._perform(
            "delete",
            lambda: self.collection.remove(entity_id),
            on_success=lambda removed: self._deleted(removed),
            retry=lambda: self.delete(entity_id),
        )

    def _deleted(self, removed) -> None:
        label = getattr(removed, "name", None) or removed.id
        self.message = Message("success", f"Removed {label}.")

    def render_body(self):
        rows = self.rows()
        columns = list(rows[0]) if rows else []
        return {
            "collection": self.collection_name,
            "columns": columns,
            "rows": rows,
            "row_actions": self.actions("delete"),
            "filter": {"text": self.filter_text} if self.has("filter") else None,
            "selected": self.selected(),
            "empty": not rows,
        }
