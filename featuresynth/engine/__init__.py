"""Classification and relationship resolution. The composer lives in engine.composer."""

from featuresynth.engine.classifier import classify, explain
from featuresynth.engine.resolver import CompanionSet, CompositeFeature, resolve_companions

__all__ = [
    "CompanionSet",
    "CompositeFeature",
    "classify",
    "explain",
    "resolve_companions",
]
