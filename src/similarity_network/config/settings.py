"""Network visualization configuration."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..core.exceptions import ConfigError
from . import defaults


@dataclass(frozen=True)
class NetworkConfig:
    """Every tunable of the similarity network, with documented defaults.

    Query options (``threshold``, ``max_nodes``) are applied by whoever fetches
    the graph; the rest drive the simulation, viewport and render frame.
    """

    # Data source
    threshold: float = defaults.DEFAULT_THRESHOLD
    max_nodes: int = defaults.DEFAULT_MAX_NODES

    # Viewport
    min_scale: float = defaults.DEFAULT_MIN_SCALE
    max_scale: float = defaults.DEFAULT_MAX_SCALE

    # Cooling / integration
    alpha_initial: float = defaults.DEFAULT_ALPHA_INITIAL
    alpha_min: float = defaults.DEFAULT_ALPHA_MIN
    cooling_rate: float = defaults.DEFAULT_COOLING_RATE
    drag_alpha: float = defaults.DEFAULT_DRAG_ALPHA
    damping_factor: float = defaults.DEFAULT_DAMPING_FACTOR

    # Forces
    base_distance: float = defaults.DEFAULT_BASE_DISTANCE
    distance_epsilon: float = defaults.DEFAULT_DISTANCE_EPSILON
    charge_strength: float = defaults.DEFAULT_CHARGE_STRENGTH
    center_strength: float = defaults.DEFAULT_CENTER_STRENGTH
    collision_padding: float = defaults.DEFAULT_COLLISION_PADDING
    weight_floor: float = defaults.DEFAULT_WEIGHT_FLOOR
    barnes_hut_threshold: int = defaults.DEFAULT_BARNES_HUT_THRESHOLD
    barnes_hut_theta: float = defaults.DEFAULT_BARNES_HUT_THETA

    # Canvas
    width: float = defaults.DEFAULT_WIDTH
    height: float = defaults.DEFAULT_HEIGHT

    # Misc
    seed: int | None = None
    label_max_length: int = defaults.DEFAULT_LABEL_MAX_LENGTH
    max_ticks: int | None = None  # Safety cap for run(); None = until converged

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: If any option is out of range
        """
        problems = []
        if not 0.0 <= self.threshold <= 1.0:
            problems.append(f"threshold must be in [0, 1], got {self.threshold}")
        if self.max_nodes < 1:
            problems.append(f"max_nodes must be >= 1, got {self.max_nodes}")
        if self.min_scale <= 0:
            problems.append(f"min_scale must be > 0, got {self.min_scale}")
        if self.min_scale > self.max_scale:
            problems.append(
                f"min_scale ({self.min_scale}) must not exceed max_scale ({self.max_scale})"
            )
        if not 0.0 < self.cooling_rate < 1.0:
            problems.append(f"cooling_rate must be in (0, 1), got {self.cooling_rate}")
        if not 0.0 <= self.damping_factor <= 1.0:
            problems.append(
                f"damping_factor must be in [0, 1], got {self.damping_factor}"
            )
        if self.alpha_min <= 0:
            problems.append(f"alpha_min must be > 0, got {self.alpha_min}")
        if self.alpha_initial < self.alpha_min:
            problems.append(
                f"alpha_initial ({self.alpha_initial}) must be >= alpha_min ({self.alpha_min})"
            )
        if self.distance_epsilon <= 0:
            problems.append(
                f"distance_epsilon must be > 0, got {self.distance_epsilon}"
            )
        if self.weight_floor <= 0:
            problems.append(f"weight_floor must be > 0, got {self.weight_floor}")
        if self.barnes_hut_theta <= 0:
            problems.append(
                f"barnes_hut_theta must be > 0, got {self.barnes_hut_theta}"
            )
        if self.label_max_length < 1:
            problems.append(
                f"label_max_length must be >= 1, got {self.label_max_length}"
            )

        if problems:
            raise ConfigError("; ".join(problems), context={"problems": problems})

    @property
    def center(self) -> tuple[float, float]:
        """Canvas center the layout is pulled toward."""
        return (self.width / 2, self.height / 2)

    def merged(self, **overrides: Any) -> NetworkConfig:
        """Return a copy with the given options replaced.

        ``None`` values are ignored so CLI options can be passed straight through.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(changes) - _field_names()
        if unknown:
            raise ConfigError(
                f"Unknown configuration option(s): {', '.join(sorted(unknown))}"
            )
        return replace(self, **changes)

    @classmethod
    def load(cls, path: Path) -> NetworkConfig:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            NetworkConfig instance (defaults if the file does not exist)
        """
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {path}, got {type(data).__name__}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NetworkConfig:
        """Create config from dictionary, ignoring unknown keys."""
        known = _field_names()
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, base: NetworkConfig | None = None) -> NetworkConfig:
        """Apply ``SIMILARITY_NETWORK_<FIELD>`` environment overrides.

        Invalid values are logged and skipped, the same way the memory cap
        override is handled.
        """
        config = base or cls()
        applied: list[str] = []

        for f in fields(cls):
            env_name = f"{defaults.ENV_PREFIX}{f.name.upper()}"
            raw = os.environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                config = replace(config, **{f.name: _coerce(raw, f.name)})
            except (ValueError, ConfigError):
                logger.warning(f"Invalid {env_name} value: {raw}, using default")
                continue
            applied.append(f.name)

        if applied:
            logger.info(f"Config overrides from environment: {sorted(applied)}")
        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


_INT_FIELDS = {"max_nodes", "barnes_hut_threshold", "label_max_length", "seed", "max_ticks"}


def _field_names() -> set[str]:
    return {f.name for f in fields(NetworkConfig)}


def _coerce(raw: str, name: str) -> int | float:
    if name in _INT_FIELDS:
        return int(raw)
    return float(raw)


def load_config(path: Path | None = None, **overrides: Any) -> NetworkConfig:
    """Resolve configuration: YAML file, then environment, then explicit overrides."""
    config = NetworkConfig.load(path) if path else NetworkConfig()
    config = NetworkConfig.from_env(config)
    return config.merged(**overrides)
