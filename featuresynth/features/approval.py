"""Approval feature: decide pending loan applications."""

import logging
from typing import Optional

from featuresynth.errors import EntityNotFoundError, ValidationError
from featuresynth.features.base import Feature, Message
from featuresynth.lib.constants import REJECTED_STATUS
from featuresynth.models import FeatureKind
from featuresynth.store import OperationResult

logger = logging.getLogger(__name__)

APPROVED_STATUS = "Approved"


def approved_status(steps: tuple[str, ...]) -> str:
    """Step an approval moves to: 'Approved' when configured, else the last step."""
    return APPROVED_STATUS if APPROVED_STATUS in steps else steps[-1]


def is_approved(status: str, steps: tuple[str, ...]) -> bool:
    if status not in steps:
        return False
    return steps.index(status) >= steps.index(approved_status(steps))


def is_undecided(status: str, steps: tuple[str, ...]) -> bool:
    return status != REJECTED_STATUS and not is_approved(status, steps)


class ApprovalFeature(Feature):
    kind = FeatureKind.APPROVAL

    def watched_collections(self):
        return ("applications",)

    def pending(self) -> list:
        steps = self.config.status_steps
        return [a for a in self.store.applications.list() if is_undecided(a.status, steps)]

    async def approve(self, application_id: str) -> Optional[OperationResult]:
        return await self._decide(application_id, approved_status(self.config.status_steps))

    async def reject(self, application_id: str) -> Optional[OperationResult]:
        return await self._decide(application_id, REJECTED_STATUS)

    async def _decide(self, application_id: str, status: str) -> Optional[OperationResult]:
        application = self.store.applications.get(application_id)
        if application is None:
            raise EntityNotFoundError("applications", application_id)
        if not is_undecided(application.status, self.config.status_steps):
            raise ValidationError("status", f"Application already {application.status.lower()}")

        return await self._perform(
            "decide",
            lambda: self.store.applications.update(application_id, status=status),
            on_success=lambda updated: self._decided(updated),
            retry=lambda: self._decide(application_id, status),
        )

    def _decided(self, application) -> None:
        logger.info(f"[{self.task.id}] {application.id} -> {application.status}")
        self.message = Message("success", f"{application.name}: {application.status}")

    def render_body(self):
        return {
            "pending": [a.to_dict() for a in self.pending()],
            "actions": ["approve", "reject"],
        }
