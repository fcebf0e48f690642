"""
Feature registry.

Maps FeatureKind to a factory (composite, store, config) -> Feature. The
registry is an ordinary object owned by the composer; build_default_registry()
wires the built-in features. Kinds with no factory get DefaultFeature.
"""

import logging
from typing import Callable, Optional

from featuresynth.engine.resolver import CompositeFeature
from featuresynth.features.approval import ApprovalFeature
from featuresynth.features.base import Feature
from featuresynth.features.dashboard import DashboardFeature
from featuresynth.features.documents import FileUploadFeature
from featuresynth.features.forms import (
    ApplicationForm,
    BoardForm,
    GenericForm,
    LoginForm,
    RegistrationForm,
)
from featuresynth.features.listing import ListFeature
from featuresynth.features.notifications import NotificationFeature
from featuresynth.features.placeholders import DefaultFeature
from featuresynth.features.services import CreditCheckFeature
from featuresynth.features.status import StatusTrackerFeature
from featuresynth.features.todos import TodoFeature
from featuresynth.lib.config import EngineConfig
from featuresynth.models import FeatureKind
from featuresynth.store import MockBackendStore

logger = logging.getLogger(__name__)

FeatureFactory = Callable[[CompositeFeature, MockBackendStore, Optional[EngineConfig]], Feature]


class FeatureRegistry:
    """FeatureKind -> factory lookup with a read-only fallback."""

    def __init__(self, fallback: FeatureFactory = DefaultFeature):
        self._factories: dict[FeatureKind, FeatureFactory] = {}
        self.fallback = fallback

    def add(self, kind: FeatureKind, factory: FeatureFactory) -> None:
        if kind in self._factories:
            logger.debug(f"Replacing factory for {kind.value}")
        self._factories[kind] = factory

    def register(self, kind: FeatureKind) -> Callable[[FeatureFactory], FeatureFactory]:
        """Decorator form of add()."""
        def decorator(factory: FeatureFactory) -> FeatureFactory:
            self.add(kind, factory)
            return factory
        return decorator

    def factory_for(self, kind: FeatureKind) -> FeatureFactory:
        return self._factories.get(kind, self.fallback)

    def create(
        self,
        composite: CompositeFeature,
        store: MockBackendStore,
        config: Optional[EngineConfig] = None,
    ) -> Feature:
        return self.factory_for(composite.kind)(composite, store, config)

    def kinds(self) -> list[FeatureKind]:
        return list(self._factories)

    def __contains__(self, kind: FeatureKind) -> bool:
        return kind in self._factories


BUILTIN_FEATURES: dict[FeatureKind, FeatureFactory] = {
    FeatureKind.REGISTRATION_FORM: RegistrationForm,
    FeatureKind.LOGIN_FORM: LoginForm,
    FeatureKind.BOARD_FORM: BoardForm,
    FeatureKind.APPLICATION_FORM: ApplicationForm,
    FeatureKind.FORM: GenericForm,
    FeatureKind.LIST: ListFeature,
    FeatureKind.TODO: TodoFeature,
    FeatureKind.STATUS_TRACKER: StatusTrackerFeature,
    FeatureKind.FILE_UPLOAD: FileUploadFeature,
    FeatureKind.EXTERNAL_SERVICE: CreditCheckFeature,
    FeatureKind.APPROVAL: ApprovalFeature,
    FeatureKind.NOTIFICATION: NotificationFeature,
    FeatureKind.DASHBOARD: DashboardFeature,
    FeatureKind.DEFAULT: DefaultFeature,
}


def build_default_registry() -> FeatureRegistry:
    registry = FeatureRegistry()
    for kind, factory in BUILTIN_FEATURES.items():
        registry.add(kind, factory)
    return registry
