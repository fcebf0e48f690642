"""Runtime features built for classified tasks."""

from featuresynth.features.base import Feature, Message
from featuresynth.features.placeholders import (
    CompanionFeature,
    DefaultFeature,
    EmptyStoryFeature,
    ErrorFeature,
)
from featuresynth.features.registry import FeatureRegistry, build_default_registry

__all__ = [
    "CompanionFeature",
    "DefaultFeature",
    "EmptyStoryFeature",
    "ErrorFeature",
    "Feature",
    "FeatureRegistry",
    "Message",
    "build_default_registry",
]
