"""Tests for featuresynth.engine.composer, including end-to-end scenarios."""

import asyncio
import logging

import pytest

from featuresynth.engine.composer import Composer, compose, render_visible, visible
from featuresynth.features import (
    CompanionFeature,
    EmptyStoryFeature,
    ErrorFeature,
    FeatureRegistry,
    build_default_registry,
)
from featuresynth.features.dashboard import DashboardFeature
from featuresynth.features.forms import RegistrationForm
from featuresynth.features.listing import ListFeature
from featuresynth.features.placeholders import DefaultFeature
from featuresynth.features.services import CreditCheckFeature
from featuresynth.lib.config import EngineConfig
from featuresynth.models import FeatureKind, UserStory
from featuresynth.store import OperationResult, open_store


class TestCompose:
    """Ordering, suppression and placeholders."""

    def test_one_entry_per_task_in_order(self, composer, make_story):
        story = make_story("Handle Form Submission", "Registration Form", "Display Users List")
        features = composer.compose(story)

        assert len(features) == 3
        assert isinstance(features[0], CompanionFeature)
        assert isinstance(features[1], RegistrationForm)
        assert isinstance(features[2], ListFeature)

    def test_companion_renders_nothing(self, composer, make_story):
        features = composer.compose(make_story("Registration Form", "Handle Form Submission"))
        assert features[1].render() is None
        assert features[1].consumed_by.id == "task-1"

    def test_visible_drops_companions(self, composer, make_story):
        features = composer.compose(make_story("Registration Form", "Handle Form Submission"))
        shown = visible(features)
        assert len(shown) == 1
        assert shown[0] is features[0]

    def test_orphan_companion_is_default(self, composer, make_story):
        features = composer.compose(make_story("Remove user"))
        assert isinstance(features[0], DefaultFeature)
        assert features[0].render()["body"]["description"] == ""

    def test_empty_story(self, composer):
        features = composer.compose(UserStory(id="s", title="Empty", tasks=[]))
        assert len(features) == 1
        assert isinstance(features[0], EmptyStoryFeature)
        assert features[0].render()["text"] == "No tasks in this story."

    def test_missing_tasks(self, composer):
        features = composer.compose(UserStory(id="s", title="Empty", tasks=None))
        assert isinstance(features[0], EmptyStoryFeature)

    def test_described_form_keeps_its_handler(self, composer, make_story):
        """A form whose description mentions submission still pairs with its handler."""
        story = make_story(
            ("Registration Form", "Collect user details and handle the submission"),
            "Handle Form Submission",
        )
        features = composer.compose(story)

        assert isinstance(features[0], RegistrationForm)
        assert features[0].has("submit")
        assert isinstance(features[1], CompanionFeature)
        assert [f.render()["kind"] for f in visible(features)] == ["registration_form"]

    def test_failing_feature_is_isolated(self, store, make_story, caplog):
        """One factory raising must not take down its siblings."""
        registry = build_default_registry()

        def broken(composite, store, config):
            raise RuntimeError("boom")

        registry.add(FeatureKind.DASHBOARD, broken)
        story = make_story("Analytics dashboard", "Display Users List")

        with caplog.at_level(logging.ERROR):
            features = Composer(store, registry).compose(story)

        assert isinstance(features[0], ErrorFeature)
        assert "boom" in features[0].render()["text"]
        assert isinstance(features[1], ListFeature)
        assert "Failed to build dashboard feature" in caplog.text

    def test_unregistered_kind_falls_back_to_default(self, store, make_story):
        features = Composer(store, FeatureRegistry()).compose(make_story("Display Users List"))
        assert isinstance(features[0], DefaultFeature)

    def test_module_level_compose(self, store, make_story):
        features = compose(make_story("Display Users List"), store)
        assert isinstance(features[0], ListFeature)


class TestPlan:
    """Tests for Composer.plan()."""

    def test_idempotent(self, composer, make_story):
        story = make_story(
            "Registration Form", "Handle Form Submission", "Display Users List", "Remove user",
        )
        first = composer.plan(story)
        second = composer.plan(story)

        assert [p.kind for p in first] == [p.kind for p in second]
        assert [p.capabilities for p in first] == [p.capabilities for p in second]
        assert [p.suppressed for p in first] == [p.suppressed for p in second]

    def test_plan_flags(self, composer, make_story):
        plans = composer.plan(make_story("Display Users List", "Remove user"))
        assert plans[0].capabilities == {"delete": True, "filter": False}
        assert plans[1].suppressed


class TestScenarios:
    """End-to-end scenarios."""

    def test_registration_with_handler(self, composer, store, make_story):
        features = composer.compose(make_story("Registration Form", "Handle Form Submission"))
        shown = visible(features)
        assert len(shown) == 1
        form = shown[0]
        assert form.render()["body"]["submit"]["enabled"]

        form.fill(name="Carol", email="carol@example.com", password="secret1")
        result = asyncio.run(form.submit())

        assert result.ok
        assert form.message.level == "success"
        assert len(store.users) == 4
        assert store.users.find(email="carol@example.com")

    def test_list_without_remove(self, composer, store, make_story):
        features = composer.compose(make_story("Display Users List"))
        body = features[0].render()["body"]

        assert body["row_actions"] == []
        assert [row["email"] for row in body["rows"]] == [u.email for u in store.users.list()]

    def test_credit_score(self, composer, make_story):
        features = composer.compose(make_story("Fetch Credit Score via Credit Bureau API"))
        feature = features[0]
        assert isinstance(feature, CreditCheckFeature)

        result = asyncio.run(feature.fetch_score())

        assert isinstance(result, OperationResult)
        assert (result.value is None) != (result.error is None)
        if result.ok:
            assert 300 <= result.value <= 850
        else:
            assert result.is_service_failure

    def test_dashboard_matches_store(self, composer, store, make_story):
        features = composer.compose(make_story(("", "Quarterly analytics dashboard")))
        feature = features[0]
        assert isinstance(feature, DashboardFeature)

        metrics = {m["name"]: m["value"] for m in feature.render()["body"]["metrics"]}
        for name in store.config.dashboard_metrics:
            assert name in metrics
        assert metrics["users"] == len(store.users)
        assert metrics["applications"] == len(store.applications)

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_credit_score_either_or(self, seed, make_story):
        """Never both a score and a failure, never neither."""
        store = open_store(EngineConfig(seed=seed, latency_scale=0))
        feature = Composer(store).compose(make_story("Credit check"))[0]
        result = asyncio.run(feature.fetch_score())
        assert result.ok != result.is_service_failure


class TestRenderVisible:
    """Render-time failures stay inside the failing feature's entry."""

    def test_render_failure_is_isolated(self, store, make_story, caplog):
        class BrokenDashboard(DashboardFeature):
            def render_body(self):
                raise RuntimeError("bad metric")

        registry = build_default_registry()
        registry.add(FeatureKind.DASHBOARD, BrokenDashboard)
        features = Composer(store, registry).compose(
            make_story("Analytics dashboard", "Display Users List")
        )

        with caplog.at_level(logging.ERROR):
            rendered = render_visible(features)

        assert rendered[0]["kind"] == "error"
        assert "bad metric" in rendered[0]["text"]
        assert rendered[1]["kind"] == "list"
        assert "Failed to render feature for task 'task-1'" in caplog.text

    def test_skips_companions(self, composer, make_story):
        features = composer.compose(make_story("Registration Form", "Handle Form Submission"))
        assert [r["kind"] for r in render_visible(features)] == ["registration_form"]

    def test_plan_log_names_companions(self, composer, make_story, caplog):
        with caplog.at_level(logging.DEBUG, logger="featuresynth.engine.composer"):
            composer.compose(make_story("Registration Form", "Handle Form Submission"))
        assert "task-1=registration_form+task-2" in caplog.text
