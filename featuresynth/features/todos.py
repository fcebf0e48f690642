"""Todo feature: a checklist kept in the scratch space."""

import logging

from featuresynth.errors import ValidationError
from featuresynth.features.base import Feature
from featuresynth.lib.constants import SCRATCH_TODOS
from featuresynth.models import FeatureKind

logger = logging.getLogger(__name__)

FILTER_MODES = ("all", "done", "undone")


class TodoFeature(Feature):
    kind = FeatureKind.TODO

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.filter_mode = "all"

    def watched_scratch_keys(self):
        return (SCRATCH_TODOS,)

    @property
    def items(self) -> list[dict]:
        return self.store.scratch.get(SCRATCH_TODOS, [])

    def _save(self, items: list[dict]) -> None:
        # Watchers, this feature included, re-render from the scratch write
        self.store.scratch.set(SCRATCH_TODOS, items)

    def add(self, text: str) -> dict:
        text = (text or "").strip()
        if not text:
            raise ValidationError("text", "Todo text is required")
        item = {"id": self.store.new_id("todo"), "text": text, "done": False}
        self._save(self.items + [item])
        return item

    def toggle(self, item_id: str) -> bool:
        """Flip an item's done flag. Returns False for an unknown id."""
        items = self.items
        for item in items:
            if item["id"] == item_id:
                item["done"] = not item["done"]
                self._save(items)
                return True
        return False

    def delete(self, item_id: str) -> bool:
        self.require("delete")
        items = self.items
        remaining = [item for item in items if item["id"] != item_id]
        if len(remaining) == len(items):
            return False
        self._save(remaining)
        return True

    def set_filter(self, mode: str) -> None:
        self.require("filter")
        if mode not in FILTER_MODES:
            raise ValidationError("filter", f"Choose one of: {', '.join(FILTER_MODES)}")
        self.filter_mode = mode
        self._notify()

    def visible_items(self) -> list[dict]:
        items = self.items
        if self.filter_mode == "done":
            return [item for item in items if item["done"]]
        if self.filter_mode == "undone":
            return [item for item in items if not item["done"]]
        return items

    def render_body(self):
        items = self.items
        return {
            "items": self.visible_items(),
            "remaining": sum(1 for item in items if not item["done"]),
            "item_actions": ["toggle"] + self.actions("delete"),
            "filter": {"mode": self.filter_mode, "modes": list(FILTER_MODES)} if self.has("filter") else None,
        }
