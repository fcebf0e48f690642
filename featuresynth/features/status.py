"""Status tracker feature using the transitions library.

Ordered steps (Submitted -> In Review -> Approved -> Disbursed by default)
become machine states with explicit triggers:
- advance / retreat move one step along the sequence
- reject leaves the sequence from any step but the last
- reopen puts a rejected item back at the first step

Usage:
    flow = StatusFlow(("Submitted", "In Review", "Approved"))
    flow.advance()
    flow.label  # "In Review"
"""

import logging
from typing import Callable, Optional

from transitions import Machine

from featuresynth.features.base import Feature
from featuresynth.lib.constants import REJECTED_STATUS
from featuresynth.models import FeatureKind, slugify

logger = logging.getLogger(__name__)

REJECTED = "rejected"


def state_name(label: str) -> str:
    """Machine state for a step label, e.g. 'In Review' -> 'in_review'."""
    return slugify(label).replace("-", "_")


def build_transitions(states: list[str]) -> list[dict]:
    """Transition table for an ordered list of step states."""
    transitions = []
    for current, following in zip(states, states[1:]):
        transitions.append({"trigger": "advance", "source": current, "dest": following})
        transitions.append({"trigger": "retreat", "source": following, "dest": current})
    transitions.append({"trigger": "reject", "source": states[:-1], "dest": REJECTED})
    transitions.append({"trigger": "reopen", "source": REJECTED, "dest": states[0]})
    return transitions


class StatusFlow:
    """State machine over a fixed sequence of status steps."""

    def __init__(
        self,
        steps: tuple[str, ...],
        initial: Optional[str] = None,
        on_transition: Callable[[str, str, str], None] | None = None,
    ):
        """
        Args:
            steps: Ordered step labels, at least two
            initial: Label to start at; unknown labels start at the first step
            on_transition: Optional callback(from_state, to_state, trigger)
        """
        if len(steps) < 2:
            raise ValueError("A status flow needs at least two steps")
        self.steps = tuple(steps)
        self.step_states = [state_name(step) for step in self.steps]
        self.labels = dict(zip(self.step_states, self.steps))
        self.labels[REJECTED] = REJECTED_STATUS
        self.on_transition = on_transition
        self.transitions = build_transitions(self.step_states)

        self.machine = Machine(
            model=self,
            states=self.step_states + [REJECTED],
            transitions=self.transitions,
            initial=self.state_for(initial),
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def state_for(self, label: Optional[str]) -> str:
        """Map a stored status label to a machine state."""
        if label is None:
            return self.step_states[0]
        state = REJECTED if label == REJECTED_STATUS else state_name(label)
        if state not in self.labels:
            logger.warning(f"[status] Unknown status '{label}', starting at '{self.steps[0]}'")
            return self.step_states[0]
        return state

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name
        logger.info(f"[status] {from_state} -> {to_state} ({trigger})")
        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        return self.machine.get_triggers(self.state)

    def target(self, trigger: str) -> Optional[str]:
        """Destination state of trigger from the current state, if allowed."""
        for t in self.transitions:
            sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
            if t["trigger"] == trigger and self.state in sources:
                return t["dest"]
        return None

    def move_to(self, state: str) -> None:
        """Jump to state, firing the matching trigger when there is one."""
        if state == self.state:
            return
        for t in self.transitions:
            sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
            if t["dest"] == state and self.state in sources:
                self.trigger(t["trigger"])
                return
        self.machine.set_state(state)
        logger.info(f"[status] synced to {state}")

    @property
    def label(self) -> str:
        return self.labels[self.state]

    @property
    def index(self) -> int:
        """Position in the step sequence, -1 when rejected."""
        if self.state == REJECTED:
            return -1
        return self.step_states.index(self.state)

    @property
    def rejected(self) -> bool:
        return self.state == REJECTED


class StatusTrackerFeature(Feature):
    """Shows and moves the status of the most recent application."""

    kind = FeatureKind.STATUS_TRACKER

    def __init__(self, composite, store, config=None):
        super().__init__(composite, store, config)
        self.application_id: Optional[str] = None
        application = self._latest_application()
        if application is not None:
            self.application_id = application.id
        self.flow = StatusFlow(
            self.config.status_steps,
            initial=application.status if application is not None else None,
        )

    def _latest_application(self):
        ids = self.store.applications.ids()
        return self.store.applications.get(ids[-1]) if ids else None

    def watched_collections(self):
        return ("applications",)

    def on_store_change(self, event):
        application = self._latest_application()
        self.application_id = application.id if application is not None else None
        if application is not None:
            self.flow.move_to(self.flow.state_for(application.status))

    async def _move(self, trigger: str):
        target = self.flow.target(trigger)
        if target is None:
            logger.debug(f"[{self.task.id}] '{trigger}' not allowed from {self.flow.state}")
            return None

        if self.application_id is None:
            # Nothing to persist, the tracker runs on its own
            self.flow.trigger(trigger)
            self._notify()
            return None

        application_id = self.application_id
        return await self._perform(
            trigger,
            lambda: self.store.applications.update(
                application_id, status=self.flow.labels[target]
            ),
            on_success=lambda _: self.flow.move_to(target),
            retry=lambda: self._move(trigger),
        )

    async def advance(self):
        return await self._move("advance")

    async def retreat(self):
        return await self._move("retreat")

    async def reject(self):
        return await self._move("reject")

    async def reopen(self):
        return await self._move("reopen")

    def render_body(self):
        current = self.flow.index
        steps = []
        for position, label in enumerate(self.flow.steps):
            if self.flow.rejected or position > current:
                state = "pending"
            elif position == current:
                state = "current"
            else:
                state = "done"
            steps.append({"label": label, "state": state})
        return {
            "application_id": self.application_id,
            "steps": steps,
            "current_index": current,
            "current": self.flow.label,
            "rejected": self.flow.rejected,
            "actions": sorted(self.flow.get_available_triggers()),
        }
