"""
Composition driver.

Turns one user story into its ordered list of runtime features: classify
each task, resolve it against its siblings, then build the feature from the
registry. Consumed companions become suppressed placeholders so the output
always has one entry per task, in task order.

Usage:
    from featuresynth.engine.composer import Composer, visible
    from featuresynth.store import open_store

    composer = Composer(open_store(config), config=config)
    for feature in visible(composer.compose(story)):
        feature.mount(on_change=redraw)
"""

import logging
from typing import Optional

from featuresynth.engine.classifier import classify
from featuresynth.engine.resolver import CompositeFeature, resolve_companions
from featuresynth.features.placeholders import CompanionFeature, EmptyStoryFeature, ErrorFeature
from featuresynth.features.registry import FeatureRegistry, build_default_registry
from featuresynth.lib.config import EngineConfig
from featuresynth.models import UserStory
from featuresynth.store import MockBackendStore

logger = logging.getLogger(__name__)


class Composer:
    """Builds features for user stories against one store."""

    def __init__(
        self,
        store: MockBackendStore,
        registry: Optional[FeatureRegistry] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.store = store
        self.registry = registry or build_default_registry()
        self.config = config or store.config

    def plan(self, story: UserStory) -> list[CompositeFeature]:
        """Classify and resolve every task of story. Pure; builds nothing."""
        tasks = list(getattr(story, "tasks", None) or [])
        kinds = {id(task): classify(task) for task in tasks}
        return [
            CompositeFeature(
                task=task,
                kind=kinds[id(task)],
                companions=resolve_companions(
                    task,
                    tasks,
                    classify_fn=lambda t: kinds[id(t)],
                    kind=kinds[id(task)],
                ),
            )
            for task in tasks
        ]

    def compose(self, story: UserStory) -> list:
        """
        Build the features for story.

        Args:
            story: The user story to render

        Returns:
            One feature per task in order; a single EmptyStoryFeature when
            the story has no tasks
        """
        plans = self.plan(story)
        if not plans:
            return [EmptyStoryFeature(story)]

        features = []
        for composite in plans:
            if composite.suppressed:
                features.append(CompanionFeature(
                    composite.task, composite.kind, composite.companions.consumed_by
                ))
                continue
            try:
                features.append(self.registry.create(composite, self.store, self.config))
            except Exception as e:
                logger.exception(
                    f"Failed to build {composite.kind.value} feature for task '{composite.task.id}'"
                )
                features.append(ErrorFeature(composite.task, e))

        logger.debug(
            f"Composed story '{story.id}': "
            + ", ".join(
                f"{p.task.id}={p.kind.value}" + "".join(f"+{t.id}" for t in p.companions.companions)
                for p in plans
            )
        )
        return features


def compose(
    story: UserStory,
    store: MockBackendStore,
    registry: Optional[FeatureRegistry] = None,
    config: Optional[EngineConfig] = None,
) -> list:
    """One-shot Composer(store, registry, config).compose(story)."""
    return Composer(store, registry, config).compose(story)


def visible(features: list) -> list:
    """Drop suppressed companions, keeping the order of the rest."""
    return [feature for feature in features if not feature.suppressed]


def render_visible(features: list) -> list[dict]:
    """
    Render every visible feature, isolating render failures.

    A feature whose render raises is logged and shown as an ErrorFeature
    for its task; the remaining features still render.
    """
    rendered = []
    for feature in visible(features):
        try:
            rendered.append(feature.render())
        except Exception as e:
            logger.exception(f"Failed to render feature for task '{feature.task.id}'")
            rendered.append(ErrorFeature(feature.task, e).render())
    return rendered
