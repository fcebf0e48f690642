"""Shared fixtures: a zero-latency, seeded store and story builders."""

import pytest

from featuresynth.engine.composer import Composer
from featuresynth.lib.config import EngineConfig
from featuresynth.lib.services_config import DEFAULT_SERVICE_PROFILES, ServiceProfile, ServicesConfig
from featuresynth.models import Task, UserStory
from featuresynth.store import open_store


def services_with(**failure_rates) -> ServicesConfig:
    """Default profiles with zero delay and the given failure rates."""
    profiles = {name: ServiceProfile(0.0, 0.0, p.failure_rate) for name, p in DEFAULT_SERVICE_PROFILES.items()}
    for name, rate in failure_rates.items():
        profiles[name] = ServiceProfile(0.0, 0.0, rate)
    return ServicesConfig(profiles=profiles)


@pytest.fixture
def config():
    return EngineConfig(seed=1234, latency_scale=0)


@pytest.fixture
def store(config):
    store = open_store(config)
    yield store
    store.close()


@pytest.fixture
def composer(store, config):
    return Composer(store, config=config)


@pytest.fixture
def reliable_store():
    """Store whose unreliable services never fail."""
    config = EngineConfig(
        seed=1234,
        latency_scale=0,
        services=services_with(credit_check=0.0, ocr=0.0, notification=0.0),
    )
    store = open_store(config)
    yield store
    store.close()


@pytest.fixture
def failing_store():
    """Store whose every simulated operation fails."""
    config = EngineConfig(
        seed=1234,
        latency_scale=0,
        services=ServicesConfig(profiles={"default": ServiceProfile(0.0, 0.0, 1.0)}),
    )
    store = open_store(config)
    yield store
    store.close()


@pytest.fixture
def make_story():
    """Build a UserStory from task titles or (title, description) pairs."""
    def build(*tasks, story_id="story-1"):
        built = []
        for i, spec in enumerate(tasks):
            title, description = (spec, "") if isinstance(spec, str) else spec
            built.append(Task(id=f"task-{i + 1}", title=title, description=description))
        return UserStory(id=story_id, title="Story", tasks=built)
    return build


@pytest.fixture
def build(make_story):
    """Compose a story against a store and return its first feature."""
    def build_first(store, *tasks):
        return Composer(store).compose(make_story(*tasks))[0]
    return build_first
