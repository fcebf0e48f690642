"""External service feature: credit score lookup against an unreliable bureau."""

import logging
from typing import Optional

from featuresynth.features.base import Feature, Message
from featuresynth.models import FeatureKind
from featuresynth.store import OperationResult

logger = logging.getLogger(__name__)

MIN_SCORE = 300
MAX_SCORE = 850

# (upper bound exclusive, band)
SCORE_BANDS = (
    (580, "Poor"),
    (670, "Fair"),
    (740, "Good"),
    (800, "Very Good"),
)


def score_band(score: int) -> str:
    for bound, band in SCORE_BANDS:
        if score < bound:
            return band
    return "Excellent"


class CreditCheckFeature(Feature):
    kind = FeatureKind.EXTERNAL_SERVICE

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.score: Optional[int] = None

    def _applicant(self) -> Optional[str]:
        applications = self.store.applications.list()
        return applications[-1].name if applications else None

    async def fetch_score(self) -> Optional[OperationResult]:
        """Query the bureau. Failures clear any earlier score and carry a retry action."""
        return await self._perform(
            "credit_check",
            lambda: self.store.services.credit_check(self._applicant()),
            on_success=self._scored,
            on_failure=self._unscored,
            retry=self.fetch_score,
        )

    def _scored(self, score: int) -> None:
        self.score = score
        self.message = Message("success", f"Credit score retrieved: {score}")

    def _unscored(self, result: OperationResult) -> None:
        self.score = None

    def render_body(self):
        return {
            "score": self.score,
            "band": score_band(self.score) if self.score is not None else None,
            "range": [MIN_SCORE, MAX_SCORE],
        }
