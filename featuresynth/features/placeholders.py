"""
Read-only and placeholder features.

DefaultFeature is registered for tasks the classifier could not place. The
other classes here are never registered: the composer emits them for
consumed companions, empty stories and features that failed to build.
"""

from typing import Optional

from featuresynth.features.base import Feature
from featuresynth.models import FeatureKind, Task, UserStory


class DefaultFeature(Feature):
    """Shows the task as written: title, description, acceptance criteria."""

    kind = FeatureKind.DEFAULT

    def render_body(self):
        return {
            "description": self.task.description,
            "acceptance_criteria": list(self.task.acceptance_criteria),
        }


class Placeholder:
    """Minimal feature stand-in with no store access."""

    suppressed = False
    busy = False

    def mount(self, on_change=None) -> "Placeholder":
        return self

    def unmount(self) -> None:
        pass

    def render(self) -> Optional[dict]:
        raise NotImplementedError


class CompanionFeature(Placeholder):
    """A task that only modifies a sibling. Renders nothing."""

    suppressed = True

    def __init__(self, task: Task, kind: FeatureKind, consumed_by: Task):
        self.task = task
        self.kind = kind
        self.consumed_by = consumed_by

    def render(self):
        return None


class EmptyStoryFeature(Placeholder):
    text = "No tasks in this story."

    def __init__(self, story: UserStory):
        self.story = story

    def render(self):
        return {"kind": "empty", "story_id": self.story.id, "text": self.text}


class ErrorFeature(Placeholder):
    """Stands in for one task whose feature failed to build."""

    def __init__(self, task: Task, error: Exception):
        self.task = task
        self.error = error

    def render(self):
        return {
            "kind": "error",
            "task_id": self.task.id,
            "title": self.task.title,
            "text": f"This feature could not be displayed: {self.error}",
        }
