"""
Mock backend store: simulated persistence and unreliable services.
"""

from featuresynth.store.backend import (
    ChangeEvent,
    Collection,
    MockBackendStore,
    MockServices,
    Subscription,
    open_store,
)
from featuresynth.store.results import OperationResult
from featuresynth.store.scratch import ScratchSpace, ScratchWatch

__all__ = [
    "ChangeEvent",
    "Collection",
    "MockBackendStore",
    "MockServices",
    "OperationResult",
    "ScratchSpace",
    "ScratchWatch",
    "Subscription",
    "open_store",
]
