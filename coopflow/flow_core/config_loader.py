"""
Configuration Loader
====================

Loads and validates level_config.yaml, providing typed access to the level
table and all tunable parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml


@dataclass(frozen=True)
class GridConfig:
    """Board geometry."""
    size: int                    # Board is size x size cells
    interior_margin: int         # Rings excluded from random obstacle placement


@dataclass(frozen=True)
class GenerationConfig:
    """Bounds for randomized layout generation."""
    max_attempts: int            # Rejection-sampling draws per placement
    max_regenerations: int       # Fresh layouts tried by the level controller


@dataclass(frozen=True)
class PowerConfig:
    """Power-holder key pool and timer resolution."""
    keys: Tuple[str, ...]
    tick_seconds: float


@dataclass(frozen=True)
class CapsConfig:
    """Limits."""
    max_clicks: int
    max_pairs: int


@dataclass(frozen=True)
class PairTemplate:
    """Fixed source/target placement for one pair."""
    source: Tuple[int, int]
    target: Tuple[int, int]
    source_tag: str
    target_tag: str


@dataclass(frozen=True)
class LevelTemplate:
    """
    Generation rule for a single level.

    Fixed levels use `obstacles` and `pairs` verbatim. Random levels draw
    their obstacle and pair counts from the inclusive ranges and place
    endpoints at least `min_distance` apart (Manhattan).
    """
    index: int
    kind: str
    obstacles: Tuple[Tuple[int, int], ...] = ()
    pairs: Tuple[PairTemplate, ...] = ()
    obstacle_count: Tuple[int, int] = (0, 0)
    pair_count: Tuple[int, int] = (0, 0)
    min_distance: int = 1
    tags: Tuple[str, ...] = ()

    @property
    def is_randomized(self) -> bool:
        return self.kind == "random"

    @property
    def max_pairs(self) -> int:
        """Largest number of pairs this template can produce."""
        if self.is_randomized:
            return self.pair_count[1]
        return len(self.pairs)


@dataclass(frozen=True)
class FlowConfig:
    """
    Complete puzzle configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    grid: GridConfig
    generation: GenerationConfig
    power: PowerConfig
    caps: CapsConfig
    levels: Tuple[LevelTemplate, ...]
    default_level: LevelTemplate

    @property
    def puzzle_level_count(self) -> int:
        """Number of templated puzzle levels."""
        return len(self.levels)

    def get_level(self, index: int) -> LevelTemplate:
        """Get the template for a level, falling back to the default layout."""
        for level in self.levels:
            if level.index == index:
                return level
        return self.default_level


def _parse_cell(cell_data: List) -> Tuple[int, int]:
    """Parse a [row, col] pair from YAML."""
    if len(cell_data) != 2:
        raise ValueError(f"Cell must have 2 values [row, col], got {cell_data}")
    return (int(cell_data[0]), int(cell_data[1]))


def _parse_range(range_data: List, name: str) -> Tuple[int, int]:
    """Parse an inclusive [min, max] range from YAML."""
    if len(range_data) != 2:
        raise ValueError(f"{name} must have 2 values [min, max], got {range_data}")
    low, high = int(range_data[0]), int(range_data[1])
    if low > high:
        raise ValueError(f"{name} min ({low}) exceeds max ({high})")
    return (low, high)


def _parse_pair(pair_data: dict) -> PairTemplate:
    """Parse a single fixed pair from YAML."""
    tag = str(pair_data.get("tag", ""))
    return PairTemplate(
        source=_parse_cell(pair_data["source"]),
        target=_parse_cell(pair_data["target"]),
        source_tag=str(pair_data.get("source_tag", tag)),
        target_tag=str(pair_data.get("target_tag", tag))
    )


def _parse_level(level_data: dict, index: int) -> LevelTemplate:
    """Parse a single level template from YAML."""
    kind = str(level_data.get("kind", "fixed"))
    if kind == "random":
        return LevelTemplate(
            index=index,
            kind=kind,
            obstacle_count=_parse_range(level_data["obstacle_count"], "obstacle_count"),
            pair_count=_parse_range(level_data["pair_count"], "pair_count"),
            min_distance=int(level_data.get("min_distance", 1)),
            tags=tuple(str(t) for t in level_data.get("tags", []))
        )
    if kind == "fixed":
        return LevelTemplate(
            index=index,
            kind=kind,
            obstacles=tuple(_parse_cell(c) for c in level_data.get("obstacles", [])),
            pairs=tuple(_parse_pair(p) for p in level_data["pairs"])
        )
    raise ValueError(f"Level {index}: kind must be 'fixed' or 'random', got '{kind}'")


def _validate_level(level: LevelTemplate, config: FlowConfig) -> None:
    """Validate a level template against the board."""
    size = config.grid.size
    label = f"Level {level.index}"

    def in_bounds(cell: Tuple[int, int]) -> bool:
        return 0 <= cell[0] < size and 0 <= cell[1] < size

    if level.max_pairs > config.caps.max_pairs:
        raise ValueError(
            f"{label}: up to {level.max_pairs} pairs exceeds "
            f"caps.max_pairs ({config.caps.max_pairs})"
        )

    if level.is_randomized:
        if level.pair_count[0] < 1:
            raise ValueError(f"{label}: pair_count min must be at least 1")
        if len(level.tags) < level.pair_count[1]:
            raise ValueError(
                f"{label}: {len(level.tags)} tags for up to {level.pair_count[1]} pairs"
            )
        inner = size - 2 * config.grid.interior_margin
        if level.obstacle_count[1] > max(inner, 0) ** 2:
            raise ValueError(
                f"{label}: obstacle_count max ({level.obstacle_count[1]}) "
                f"exceeds the interior area"
            )
        return

    if not level.pairs:
        raise ValueError(f"{label}: fixed level needs at least one pair")

    obstacles = set(level.obstacles)
    for cell in obstacles:
        if not in_bounds(cell):
            raise ValueError(f"{label}: obstacle {cell} is out of bounds")

    seen: Dict[Tuple[int, int], str] = {}
    for pair in level.pairs:
        for cell in (pair.source, pair.target):
            if not in_bounds(cell):
                raise ValueError(f"{label}: endpoint {cell} is out of bounds")
            if cell in obstacles:
                raise ValueError(f"{label}: endpoint {cell} is on an obstacle")
            if cell in seen:
                raise ValueError(f"{label}: two endpoints share cell {cell}")
            seen[cell] = label


def _validate_config(config: FlowConfig) -> None:
    """Validate configuration consistency."""
    if config.grid.size < 2:
        raise ValueError(f"grid.size must be at least 2, got {config.grid.size}")

    if config.grid.interior_margin < 0 or 2 * config.grid.interior_margin >= config.grid.size:
        raise ValueError(
            f"grid.interior_margin ({config.grid.interior_margin}) leaves no interior"
        )

    if config.generation.max_attempts < 1 or config.generation.max_regenerations < 1:
        raise ValueError("generation caps must be positive")

    if not config.power.keys:
        raise ValueError("power.keys must not be empty")

    indices = [level.index for level in config.levels]
    if indices != list(range(1, len(indices) + 1)):
        raise ValueError(f"Level indices must be sequential from 1, got {indices}")

    for level in config.levels:
        _validate_level(level, config)
    _validate_level(config.default_level, config)


def load_config(config_path: Optional[str] = None) -> FlowConfig:
    """
    Load and validate puzzle configuration from YAML.

    Args:
        config_path: Path to level_config.yaml. If None, uses default location.

    Returns:
        Validated FlowConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "level_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    grid_data = raw["grid"]
    grid = GridConfig(
        size=int(grid_data["size"]),
        interior_margin=int(grid_data.get("interior_margin", 1))
    )

    gen_data = raw.get("generation", {})
    generation = GenerationConfig(
        max_attempts=int(gen_data.get("max_attempts", 500)),
        max_regenerations=int(gen_data.get("max_regenerations", 20))
    )

    power_data = raw.get("power", {})
    power = PowerConfig(
        keys=tuple(str(k).upper() for k in power_data.get("keys", [])),
        tick_seconds=float(power_data.get("tick_seconds", 0.1))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_clicks=int(caps_data.get("max_clicks", 200)),
        max_pairs=int(caps_data.get("max_pairs", 3))
    )

    levels = tuple(
        _parse_level(level_data, int(level_data.get("index", i + 1)))
        for i, level_data in enumerate(raw["levels"])
    )
    default_level = _parse_level(raw["default_level"], 0)

    config = FlowConfig(
        grid=grid,
        generation=generation,
        power=power,
        caps=caps,
        levels=levels,
        default_level=default_level
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[FlowConfig] = None


def get_config() -> FlowConfig:
    """Get the cached puzzle configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> FlowConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
