"""
Centralized configuration manager.
Loads YAML configs and provides typed access with defaults.

Config holds the raw YAML sections; EngineConfig is the typed view of the
recognition tunables that every engine component reads.
"""

import os
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Dict

import yaml

from gesture_engine.core.types import GestureType

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "engine": {
        "pinch_threshold": float,
        "spread_threshold": float,
        "clap_distance": float,
        "min_confidence_threshold": float,
        "hand_stability_frames": int,
        "history_size": int,
    },
    "debounce": {
        "default_ms": int,
        "overrides_ms": dict,
    },
    "logging": {
        "level": str,
    },
}

TWO_HAND_DEBOUNCE_MS = 800


def _default_debounce_overrides() -> Dict[GestureType, int]:
    return {g: TWO_HAND_DEBOUNCE_MS for g in GestureType if g.is_two_hand}


@dataclass
class EngineConfig:
    """Recognition tunables. Distances are in normalized frame units."""
    pinch_threshold: float = 0.05
    spread_threshold: float = 0.25
    clap_distance: float = 0.12
    min_distance_change: float = 0.045
    min_direction_ratio: float = 2.0
    min_confidence_threshold: float = 0.75
    max_confidence: float = 0.95
    hand_stability_frames: int = 4
    max_hand_jitter: float = 0.02
    history_size: int = 7
    min_history_entries: int = 3
    direction_lookback_entries: int = 3
    direction_min_lookback_ms: int = 400
    debounce_default_ms: int = 400
    debounce_overrides_ms: Dict[GestureType, int] = field(
        default_factory=_default_debounce_overrides)
    stale_frame_limit: int = 30
    replay_log_size: int = 100

    def __post_init__(self):
        for name in ("pinch_threshold", "spread_threshold", "clap_distance",
                     "min_direction_ratio", "max_confidence", "max_hand_jitter"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.hand_stability_frames < 2:
            raise ValueError("hand_stability_frames must be >= 2")
        if not 2 <= self.direction_lookback_entries <= self.history_size:
            raise ValueError(
                f"direction_lookback_entries must be in [2, history_size={self.history_size}]")
        if self.min_history_entries > self.history_size:
            raise ValueError("min_history_entries cannot exceed history_size")
        if not 0 < self.min_confidence_threshold <= self.max_confidence:
            raise ValueError("min_confidence_threshold must be in (0, max_confidence]")

    def debounce_ms(self, gesture: GestureType) -> int:
        return self.debounce_overrides_ms.get(gesture, self.debounce_default_ms)

    def with_thresholds(self, **thresholds) -> "EngineConfig":
        """Copy with some tunables replaced (used by calibration)."""
        return replace(self, **thresholds)

    @classmethod
    def from_dict(cls, engine: dict = None, debounce: dict = None) -> "EngineConfig":
        """Create config from the `engine` and `debounce` YAML sections.

        Non-numeric values are logged and replaced by their default.
        """
        engine = engine or {}
        debounce = debounce or {}
        kwargs = {}

        for f in fields(cls):
            if f.name.startswith("debounce_") or f.name not in engine:
                continue
            value = engine[f.name]
            caster = int if f.type in (int, "int") else float
            try:
                kwargs[f.name] = caster(value)
            except (TypeError, ValueError):
                logger.warning("Config engine.%s: expected number, got %r - using default",
                               f.name, value)

        if "default_ms" in debounce:
            try:
                kwargs["debounce_default_ms"] = int(debounce["default_ms"])
            except (TypeError, ValueError):
                logger.warning("Config debounce.default_ms: expected int, got %r",
                               debounce["default_ms"])

        overrides = _default_debounce_overrides()
        for name, value in (debounce.get("overrides_ms") or {}).items():
            gesture = GestureType.from_string(name)
            if gesture is None:
                logger.warning("Config debounce.overrides_ms: unknown gesture '%s'", name)
                continue
            try:
                overrides[gesture] = int(value)
            except (TypeError, ValueError):
                logger.warning("Config debounce.overrides_ms.%s: expected int, got %r",
                               name, value)
        kwargs["debounce_overrides_ms"] = overrides

        return cls(**kwargs)


class Config:
    """Configuration manager for the YAML config file."""

    def __init__(self, data: dict = None):
        self._data = data or {}

    def load(self, config_path=None):
        """Load configuration from a YAML file."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "engine.yaml")

        try:
            with open(config_path, "r") as f:
                self._data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            self._data = {}

        self._validate()
        return self

    def _validate(self):
        """Validate config fields against schema."""
        warnings = []
        for section_name, section_fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                continue
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in section_fields.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'engine.pinch_threshold'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        section_data = self._data.get(section, {})
        return section_data if isinstance(section_data, dict) else {}

    def engine_config(self) -> EngineConfig:
        return EngineConfig.from_dict(self.get_section("engine"), self.get_section("debounce"))

    @property
    def logging(self) -> dict:
        return self.get_section("logging")

    @property
    def commands(self) -> dict:
        return self.get_section("commands")
