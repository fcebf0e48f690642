"""Dashboard feature: named metrics over the live store, plus CSV export."""

import logging
from typing import Callable, Optional

from featuresynth.features.approval import is_approved, is_undecided
from featuresynth.features.base import Feature, Message
from featuresynth.lib.constants import COLLECTIONS, REJECTED_STATUS
from featuresynth.models import FeatureKind
from featuresynth.store import MockBackendStore, OperationResult

logger = logging.getLogger(__name__)

MetricFn = Callable[[MockBackendStore, tuple[str, ...]], int]


def _count_applications(predicate) -> MetricFn:
    def metric(store: MockBackendStore, steps: tuple[str, ...]) -> int:
        return sum(1 for a in store.applications.list() if predicate(a.status, steps))
    return metric


METRICS: dict[str, MetricFn] = {
    **{name: (lambda store, steps, name=name: len(store.collection(name))) for name in COLLECTIONS},
    "approved": _count_applications(is_approved),
    "pending": _count_applications(is_undecided),
    "rejected": _count_applications(lambda status, steps: status == REJECTED_STATUS),
}


class DashboardFeature(Feature):
    kind = FeatureKind.DASHBOARD

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.metric_names = []
        for name in self.config.dashboard_metrics:
            if name in METRICS:
                self.metric_names.append(name)
            else:
                logger.warning(f"[{self.task.id}] Unknown dashboard metric '{name}', skipping")
        self.report: Optional[str] = None

    def watched_collections(self):
        return COLLECTIONS

    def metrics(self) -> list[dict]:
        """Current values with bar widths relative to the largest value."""
        steps = self.config.status_steps
        values = [(name, METRICS[name](self.store, steps)) for name in self.metric_names]
        peak = max((value for _, value in values), default=0)
        return [
            {
                "name": name,
                "label": name.replace("_", " ").capitalize(),
                "value": value,
                "percent": round(value / peak * 100) if peak else 0,
            }
            for name, value in values
        ]

    async def generate_report(self) -> Optional[OperationResult]:
        rows = [{"metric": m["name"], "value": m["value"]} for m in self.metrics()]
        return await self._perform(
            "report",
            lambda: self.store.services.generate_report(rows),
            on_success=self._reported,
            retry=self.generate_report,
        )

    def _reported(self, csv_text: str) -> None:
        self.report = csv_text
        self.message = Message("success", "Report ready.")

    def render_body(self):
        return {"metrics": self.metrics(), "report": self.report}
