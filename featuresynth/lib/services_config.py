"""
Mock service profiles.

Loads services.yaml to determine simulated latency and failure probability
for each mock backend operation. If no config file exists, returns defaults
matching the behaviour of the original demo screens.

Operation names are looked up most-specific first:
  "<collection>.<operation>"  (e.g. "users.add")
  "<operation>"               (e.g. "add", "credit_check")
  "default"

Example services.yaml:

    services:
      credit_check:
        failure_rate: 0.5
      users.add:
        min_delay: 0.1
        max_delay: 0.2
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceProfile:
    """Latency bounds (seconds) and failure probability for one operation."""
    min_delay: float
    max_delay: float
    failure_rate: float = 0.0


DEFAULT_SERVICE_PROFILES = {
    "default": ServiceProfile(0.2, 0.6),

    # Collection mutations - reliable, only slow
    "add": ServiceProfile(0.3, 1.0),
    "remove": ServiceProfile(0.2, 0.6),
    "update": ServiceProfile(0.5, 1.0),

    # Unreliable external services
    "credit_check": ServiceProfile(1.5, 1.8, failure_rate=0.2),
    "ocr": ServiceProfile(1.2, 2.0, failure_rate=0.3),
    "notification": ServiceProfile(1.0, 1.5, failure_rate=0.1),

    # Other mock endpoints
    "login": ServiceProfile(1.0, 1.0),
    "submit": ServiceProfile(1.0, 1.5),
    "report": ServiceProfile(1.5, 2.0),
}

PROFILE_KEYS = ("min_delay", "max_delay", "failure_rate")


@dataclass
class ServicesConfig:
    """Service profiles from services.yaml."""
    profiles: dict[str, ServiceProfile] = field(
        default_factory=lambda: DEFAULT_SERVICE_PROFILES.copy()
    )

    def profile_for(self, operation: str) -> ServiceProfile:
        """Return the most specific profile for an operation name."""
        if operation in self.profiles:
            return self.profiles[operation]
        _, _, short = operation.rpartition(".")
        if short in self.profiles:
            return self.profiles[short]
        return self.profiles.get("default", DEFAULT_SERVICE_PROFILES["default"])


def _merge_profile(name: str, base: ServiceProfile, overrides: dict) -> ServiceProfile | None:
    """Apply overrides to a profile. Returns None if the result is invalid."""
    unknown = set(overrides) - set(PROFILE_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown keys for service '{name}': {sorted(unknown)}")

    values = {key: getattr(base, key) for key in PROFILE_KEYS}
    for key in PROFILE_KEYS:
        if key in overrides:
            try:
                values[key] = float(overrides[key])
            except (TypeError, ValueError):
                logger.warning(f"Service '{name}': {key} must be a number, got {overrides[key]!r}")
                return None

    if values["min_delay"] < 0 or values["max_delay"] < values["min_delay"]:
        logger.warning(
            f"Service '{name}': invalid delay range "
            f"{values['min_delay']}..{values['max_delay']}"
        )
        return None
    if not 0.0 <= values["failure_rate"] <= 1.0:
        logger.warning(f"Service '{name}': failure_rate must be within [0, 1]")
        return None

    return ServiceProfile(**values)


def parse_services_config(data: Optional[dict]) -> ServicesConfig:
    """Build ServicesConfig from parsed YAML data, merging over defaults."""
    profiles = DEFAULT_SERVICE_PROFILES.copy()
    services = (data or {}).get("services") or {}
    if not isinstance(services, dict):
        logger.warning("'services' must be a mapping; using defaults")
        return ServicesConfig(profiles=profiles)

    for name, overrides in services.items():
        if not isinstance(overrides, dict):
            logger.warning(f"Service '{name}' must be a mapping; ignored")
            continue
        base = profiles.get(name) or profiles.get(name.rpartition(".")[2]) or profiles["default"]
        merged = _merge_profile(name, base, overrides)
        if merged is not None:
            profiles[name] = merged

    return ServicesConfig(profiles=profiles)


def load_services_config(config_dir: Optional[Path]) -> ServicesConfig:
    """Load services.yaml and return ServicesConfig.

    If config_dir is None or file doesn't exist, returns defaults.
    """
    if config_dir is None:
        return ServicesConfig()

    config_path = config_dir / "services.yaml"
    if not config_path.exists():
        return ServicesConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return ServicesConfig()

    if data is not None and not isinstance(data, dict):
        logger.warning(f"{config_path} must contain a mapping; using defaults")
        return ServicesConfig()

    return parse_services_config(data)
