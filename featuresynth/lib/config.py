"""
Configuration loaders for featuresynth.

Loads engine settings from featuresynth.env and service profiles from
services.yaml, both optional and both living in one config directory.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import envparse
from .constants import DEFAULT_STATUS_STEPS
from .services_config import ServicesConfig, load_services_config

logger = logging.getLogger(__name__)

ENV_FILENAME = "featuresynth.env"

DEFAULT_DASHBOARD_METRICS = (
    "users",
    "boards",
    "applications",
    "approved",
    "pending",
    "notifications",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class EngineConfig:
    """Engine-level configuration from featuresynth.env"""
    seed: Optional[int] = None  # None -> nondeterministic
    seed_data: bool = True  # Load demo users/boards/applications on initialize()
    latency_scale: float = 1.0  # 0 makes every simulated delay instant
    dashboard_metrics: tuple[str, ...] = DEFAULT_DASHBOARD_METRICS
    status_steps: tuple[str, ...] = DEFAULT_STATUS_STEPS
    min_password_length: int = 6
    min_loan_amount: int = 1000
    max_loan_amount: int = 1_000_000
    log_level: str = "WARNING"
    services: ServicesConfig = field(default_factory=ServicesConfig)


def parse_engine_config(env: dict, services: Optional[ServicesConfig] = None) -> EngineConfig:
    """Build EngineConfig from parsed env values."""
    log_level = env.get("LOG_LEVEL", "WARNING").upper()
    if log_level not in VALID_LOG_LEVELS:
        logger.warning(f"Unknown LOG_LEVEL '{log_level}', using WARNING")
        log_level = "WARNING"

    latency_scale = envparse.get_float(env, "LATENCY_SCALE", 1.0)
    if latency_scale < 0:
        raise ValueError(f"LATENCY_SCALE must not be negative, got {latency_scale}")

    status_steps = envparse.get_list(env, "STATUS_STEPS", DEFAULT_STATUS_STEPS)
    if len(status_steps) < 2:
        raise ValueError("STATUS_STEPS needs at least two steps")

    min_loan = envparse.get_int(env, "MIN_LOAN_AMOUNT", 1000)
    max_loan = envparse.get_int(env, "MAX_LOAN_AMOUNT", 1_000_000)
    if min_loan > max_loan:
        raise ValueError(f"MIN_LOAN_AMOUNT ({min_loan}) exceeds MAX_LOAN_AMOUNT ({max_loan})")

    return EngineConfig(
        seed=envparse.get_int(env, "SEED", None),
        seed_data=envparse.get_bool(env, "SEED_DATA", True),
        latency_scale=latency_scale,
        dashboard_metrics=envparse.get_list(env, "DASHBOARD_METRICS", DEFAULT_DASHBOARD_METRICS),
        status_steps=status_steps,
        min_password_length=envparse.get_int(env, "MIN_PASSWORD_LENGTH", 6),
        min_loan_amount=min_loan,
        max_loan_amount=max_loan,
        log_level=log_level,
        services=services or ServicesConfig(),
    )


def load_engine_config(config_dir: Optional[Path]) -> EngineConfig:
    """Load featuresynth.env and services.yaml from config_dir.

    Missing files fall back to defaults.
    """
    if config_dir is None:
        return EngineConfig()

    services = load_services_config(config_dir)
    env_path = config_dir / ENV_FILENAME
    env = envparse.load_env(env_path) if env_path.exists() else {}
    return parse_engine_config(env, services)
