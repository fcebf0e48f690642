"""Tests for featuresynth.lib config loaders (env, services.yaml)."""

import logging

import pytest

from featuresynth.lib import envparse
from featuresynth.lib.config import EngineConfig, load_engine_config, parse_engine_config
from featuresynth.lib.constants import DEFAULT_STATUS_STEPS
from featuresynth.lib.services_config import (
    DEFAULT_SERVICE_PROFILES,
    ServiceProfile,
    ServicesConfig,
    load_services_config,
    parse_services_config,
)


class TestEnvParse:

    def test_parse(self):
        env = envparse.parse_env('# comment\nSEED=42\nSTATUS_STEPS="Open, Done"\n\n')
        assert env == {"SEED": "42", "STATUS_STEPS": "Open, Done"}

    def test_forbidden_pattern(self):
        with pytest.raises(ValueError, match="Forbidden"):
            envparse.parse_env("SEED=$(rm -rf /)")

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="Invalid key"):
            envparse.parse_env("seed=1")

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="no '='"):
            envparse.parse_env("SEED")

    def test_typed_getters(self):
        env = {"A": "3", "B": "0.5", "C": "yes", "D": "x, y,,z"}
        assert envparse.get_int(env, "A", None) == 3
        assert envparse.get_float(env, "B", 1.0) == 0.5
        assert envparse.get_bool(env, "C", False) is True
        assert envparse.get_list(env, "D", ()) == ("x", "y", "z")
        assert envparse.get_int(env, "MISSING", 7) == 7

    def test_bad_number_names_key(self):
        with pytest.raises(ValueError, match="SEED"):
            envparse.get_int({"SEED": "abc"}, "SEED", None)


class TestEngineConfig:

    def test_defaults(self):
        config = parse_engine_config({})
        assert config.seed is None
        assert config.latency_scale == 1.0
        assert config.status_steps == DEFAULT_STATUS_STEPS
        assert config.min_password_length == 6

    def test_values(self):
        config = parse_engine_config({
            "SEED": "7",
            "LATENCY_SCALE": "0",
            "STATUS_STEPS": "Open,Closed",
            "DASHBOARD_METRICS": "users,boards",
            "MIN_PASSWORD_LENGTH": "10",
            "LOG_LEVEL": "debug",
            "SEED_DATA": "false",
        })
        assert config.seed == 7
        assert config.latency_scale == 0.0
        assert config.status_steps == ("Open", "Closed")
        assert config.dashboard_metrics == ("users", "boards")
        assert config.min_password_length == 10
        assert config.log_level == "DEBUG"
        assert config.seed_data is False

    def test_unknown_log_level(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = parse_engine_config({"LOG_LEVEL": "LOUD"})
        assert config.log_level == "WARNING"
        assert "Unknown LOG_LEVEL" in caplog.text

    @pytest.mark.parametrize("env", [
        {"LATENCY_SCALE": "-1"},
        {"STATUS_STEPS": "Only"},
        {"MIN_LOAN_AMOUNT": "10", "MAX_LOAN_AMOUNT": "5"},
        {"SEED": "many"},
    ])
    def test_invalid(self, env):
        with pytest.raises(ValueError):
            parse_engine_config(env)

    def test_load_without_dir(self):
        assert load_engine_config(None) == EngineConfig()

    def test_load_from_dir(self, tmp_path):
        (tmp_path / "featuresynth.env").write_text("SEED=3\nLATENCY_SCALE=0.25\n")
        (tmp_path / "services.yaml").write_text(
            "services:\n"
            "  credit_check:\n"
            "    failure_rate: 0.5\n"
        )
        config = load_engine_config(tmp_path)
        assert config.seed == 3
        assert config.latency_scale == 0.25
        assert config.services.profile_for("credit_check").failure_rate == 0.5

    def test_empty_dir_gives_defaults(self, tmp_path):
        config = load_engine_config(tmp_path)
        assert config.seed is None
        assert config.services.profile_for("ocr") == DEFAULT_SERVICE_PROFILES["ocr"]


class TestServicesConfig:

    def test_lookup_order(self):
        config = ServicesConfig(profiles={
            "default": ServiceProfile(0.1, 0.2),
            "add": ServiceProfile(0.3, 0.4),
            "users.add": ServiceProfile(0.5, 0.6),
        })
        assert config.profile_for("users.add").min_delay == 0.5
        assert config.profile_for("boards.add").min_delay == 0.3
        assert config.profile_for("boards.remove").min_delay == 0.1

    def test_defaults(self):
        config = ServicesConfig()
        assert config.profile_for("credit_check").failure_rate == 0.2
        assert config.profile_for("ocr").failure_rate == 0.3
        assert config.profile_for("notification").failure_rate == 0.1
        assert config.profile_for("users.add").failure_rate == 0.0

    def test_override_merges_over_base(self):
        config = parse_services_config({"services": {"users.add": {"failure_rate": 0.5}}})
        profile = config.profile_for("users.add")
        assert profile.failure_rate == 0.5
        assert profile.min_delay == DEFAULT_SERVICE_PROFILES["add"].min_delay

    @pytest.mark.parametrize("overrides", [
        {"failure_rate": 2},
        {"min_delay": 2, "max_delay": 1},
        {"min_delay": "soon"},
    ])
    def test_invalid_entries_ignored(self, overrides, caplog):
        with caplog.at_level(logging.WARNING):
            config = parse_services_config({"services": {"ocr": overrides}})
        assert config.profile_for("ocr") == DEFAULT_SERVICE_PROFILES["ocr"]
        assert caplog.records

    def test_unknown_keys_warned(self, caplog):
        with caplog.at_level(logging.WARNING):
            parse_services_config({"services": {"ocr": {"speed": 1}}})
        assert "unknown keys" in caplog.text

    def test_bad_yaml_falls_back(self, tmp_path, caplog):
        (tmp_path / "services.yaml").write_text("services: [unclosed\n")
        with caplog.at_level(logging.WARNING):
            config = load_services_config(tmp_path)
        assert config.profile_for("ocr") == DEFAULT_SERVICE_PROFILES["ocr"]
        assert "Failed to parse" in caplog.text
