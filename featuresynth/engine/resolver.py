"""
Relationship resolution between sibling tasks.

Some tasks only make sense as modifiers of a sibling: a "handle form
submission" task is what lets a form actually submit, a "remove user" task
is what puts delete buttons on a user list. The companion rule table below
says which primary kinds accept which companion kinds, and what the primary
looks like when its companion is missing.

Precedence: the first matching sibling in document order enables a
capability. Every companion a primary accepts is consumed (renders empty),
including the later duplicates that were not chosen.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from featuresynth.engine.classifier import classify
from featuresynth.models import FORM_KINDS, FeatureKind, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanionRule:
    """A primary kind's optional capability, unlocked by a companion kind."""
    capability: str
    primary_kinds: frozenset[FeatureKind]
    companion_kind: FeatureKind
    hide_when_missing: bool  # False: show the control disabled with missing_note
    missing_note: Optional[str] = None


COMPANION_RULES: tuple[CompanionRule, ...] = (
    CompanionRule(
        capability="submit",
        primary_kinds=FORM_KINDS,
        companion_kind=FeatureKind.FORM_HANDLER,
        hide_when_missing=False,
        missing_note="Submission is disabled: no task in this story handles the submitted data.",
    ),
    CompanionRule(
        capability="delete",
        primary_kinds=frozenset({FeatureKind.LIST, FeatureKind.TODO}),
        companion_kind=FeatureKind.REMOVE,
        hide_when_missing=True,
    ),
    CompanionRule(
        capability="filter",
        primary_kinds=frozenset({FeatureKind.LIST, FeatureKind.TODO}),
        companion_kind=FeatureKind.FILTER,
        hide_when_missing=True,
    ),
    CompanionRule(
        capability="logout",
        primary_kinds=frozenset({FeatureKind.LOGIN_FORM}),
        companion_kind=FeatureKind.LOGOUT,
        hide_when_missing=True,
    ),
)

COMPANION_KINDS = frozenset(r.companion_kind for r in COMPANION_RULES)


@dataclass(frozen=True)
class Capability:
    """State of one optional capability on a primary feature."""
    name: str
    enabled: bool
    visible: bool
    companion: Optional[Task] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class CompanionSet:
    """Result of resolving one task against its siblings.

    A primary task gets one Capability per applicable rule. A companion task
    gets consumed_by set to the sibling primary it serves (or stays None when
    orphaned).
    """
    capabilities: tuple[Capability, ...] = ()
    consumed_by: Optional[Task] = None

    def get(self, name: str) -> Optional[Capability]:
        for capability in self.capabilities:
            if capability.name == name:
                return capability
        return None

    def enabled(self, name: str) -> bool:
        capability = self.get(name)
        return capability is not None and capability.enabled

    def visible(self, name: str) -> bool:
        capability = self.get(name)
        return capability is not None and capability.visible

    @property
    def companions(self) -> tuple[Task, ...]:
        return tuple(c.companion for c in self.capabilities if c.companion is not None)

    @property
    def is_consumed(self) -> bool:
        return self.consumed_by is not None


@dataclass(frozen=True)
class CompositeFeature:
    """One primary task, its companions, and its kind, for one render pass."""
    task: Task
    kind: FeatureKind
    companions: CompanionSet

    @property
    def suppressed(self) -> bool:
        """True when the task only serves a sibling and renders nothing."""
        return self.companions.is_consumed

    @property
    def capabilities(self) -> dict[str, bool]:
        return {c.name: c.enabled for c in self.companions.capabilities}


def rules_for_primary(kind: FeatureKind) -> list[CompanionRule]:
    return [r for r in COMPANION_RULES if kind in r.primary_kinds]


def rules_for_companion(kind: FeatureKind) -> list[CompanionRule]:
    return [r for r in COMPANION_RULES if r.companion_kind == kind]


def resolve_companions(
    task: Task,
    siblings: Sequence[Task],
    classify_fn: Callable[[Task], FeatureKind] = classify,
    kind: Optional[FeatureKind] = None,
) -> CompanionSet:
    """
    Find the companions that change how task's feature behaves.

    Args:
        task: The task being composed
        siblings: The other tasks of the same user story, in document order
        classify_fn: Classifier to apply to task and siblings
        kind: Pre-computed kind of task, if the caller already has it

    Returns:
        CompanionSet for task
    """
    kind = kind if kind is not None else classify_fn(task)
    others = [s for s in siblings if s is not task]

    if kind in COMPANION_KINDS:
        for sibling in others:
            sibling_kind = classify_fn(sibling)
            if any(sibling_kind in r.primary_kinds for r in rules_for_companion(kind)):
                return CompanionSet(consumed_by=sibling)
        logger.debug(f"Companion task '{task.id}' ({kind.value}) has no primary sibling")
        return CompanionSet()

    capabilities = []
    for companion_rule in rules_for_primary(kind):
        match = next(
            (s for s in others if classify_fn(s) == companion_rule.companion_kind),
            None,
        )
        if match is not None:
            capabilities.append(Capability(
                name=companion_rule.capability,
                enabled=True,
                visible=True,
                companion=match,
            ))
        else:
            capabilities.append(Capability(
                name=companion_rule.capability,
                enabled=False,
                visible=not companion_rule.hide_when_missing,
                note=None if companion_rule.hide_when_missing else companion_rule.missing_note,
            ))
    return CompanionSet(capabilities=tuple(capabilities))


def resolve(task: Task, siblings: Sequence[Task]) -> CompositeFeature:
    """Classify and resolve task in one step."""
    kind = classify(task)
    return CompositeFeature(task=task, kind=kind, companions=resolve_companions(task, siblings, kind=kind))
