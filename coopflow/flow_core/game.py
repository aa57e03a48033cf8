"""
Flow Puzzle Game
================

Level controller combining layout generation, the solvability gate, the
path session and the power-holder input.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from coopflow.flow_core.config_loader import FlowConfig, get_config
from coopflow.flow_core.grid_model import GridModel
from coopflow.flow_core.layout_generator import GenerationError, LayoutGenerator
from coopflow.flow_core.path_session import ClickOutcome, PathSession, PuzzleInstance
from coopflow.flow_core.power import PowerInput, PowerTimer
from coopflow.flow_core.solvability import SolvabilityChecker
from coopflow.flow_core.state_snapshot import PuzzleSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)


class GameMode(Enum):
    PUZZLE = "puzzle"
    PLATFORMER = "platformer"   # handed off to the external platformer


class FlowPuzzleGame:
    """
    Main puzzle controller.

    Orchestrates:
    - Layout generation per level
    - Solvability gate and retry/unsolvable policy
    - Path session for the accepted layout
    - Power key, powered state and power timer

    Fixed levels are generated once; an unsolvable result sets the
    `unsolvable` error state. Randomized levels are regenerated with fresh
    seeds up to `generation.max_regenerations` times before giving up.
    Levels past the puzzle table switch the mode to PLATFORMER.
    """

    def __init__(
        self,
        config: Optional[FlowConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize game.

        Args:
            config: Puzzle configuration. Uses default if None.
            seed: Random seed for reproducibility.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed
        self._seed_rng = random.Random(seed)

        # Subsystems
        self._generator = LayoutGenerator(config)
        self._checker = SolvabilityChecker()
        self._power = PowerInput(config, seed)
        self._timer = PowerTimer(config)
        self._snapshot_builder = SnapshotBuilder(config)

        # Game state
        self._started: bool = False
        self._mode: GameMode = GameMode.PUZZLE
        self._level: int = 0
        self._session: Optional[PathSession] = None
        self._unsolvable: bool = False
        self._attempts: int = 0
        self._solved_listeners: List[Callable[[int], None]] = []

    @property
    def config(self) -> FlowConfig:
        return self._config

    @property
    def level(self) -> int:
        """Current level index (0 before start)."""
        return self._level

    @property
    def mode(self) -> GameMode:
        return self._mode

    @property
    def started(self) -> bool:
        return self._started

    @property
    def unsolvable(self) -> bool:
        """True if no acceptable layout could be produced for this level."""
        return self._unsolvable

    @property
    def attempts(self) -> int:
        """Layouts generated for the current level."""
        return self._attempts

    @property
    def session(self) -> Optional[PathSession]:
        return self._session

    @property
    def instance(self) -> Optional[PuzzleInstance]:
        if self._session is None:
            return None
        return self._session.instance

    @property
    def grid(self) -> Optional[GridModel]:
        instance = self.instance
        return instance.grid if instance is not None else None

    @property
    def solved(self) -> bool:
        return self._session is not None and self._session.solved

    @property
    def powered(self) -> bool:
        return self._power.powered

    @property
    def required_key(self) -> str:
        return self._power.required_key

    @property
    def power_ticks(self) -> int:
        return self._timer.ticks

    def add_solved_listener(self, listener: Callable[[int], None]) -> None:
        """Register a callback receiving the level index when it is solved."""
        self._solved_listeners.append(listener)

    def start(self, seed: Optional[int] = None) -> PuzzleSnapshot:
        """
        Start a new game at level 1.

        Args:
            seed: New random seed. Keeps the current stream if None.

        Returns:
            Snapshot of the first level.
        """
        if seed is not None:
            self._seed = seed
            self._seed_rng = random.Random(seed)
            self._power = PowerInput(self._config, seed)

        self._started = True
        self._timer.reset()
        self._power.assign_key()
        self.load_level(1)
        return self.build_snapshot()

    def restart(self) -> PuzzleSnapshot:
        """Back to level 1 with a new power key."""
        logger.info("Restarting at level 1")
        return self.start()

    def load_level(self, level: int) -> bool:
        """
        Generate and gate a layout for a level.

        Args:
            level: 1-based level index.

        Returns:
            True if a puzzle instance is ready to play.
        """
        self._level = level
        self._session = None
        self._unsolvable = False
        self._attempts = 0

        if level > self._config.puzzle_level_count:
            self._mode = GameMode.PLATFORMER
            logger.info("Level %d is past the puzzle table, handing off to platformer", level)
            return False

        self._mode = GameMode.PUZZLE
        template = self._config.get_level(level)
        tries = self._config.generation.max_regenerations if template.is_randomized else 1

        for _ in range(tries):
            self._attempts += 1
            self._generator.reset(self._seed_rng.getrandbits(32))
            try:
                grid = self._generator.generate_layout(level)
            except GenerationError as e:
                logger.warning("Generation failed (attempt %d): %s", self._attempts, e)
                continue

            if self._checker.is_solvable(grid):
                self._session = PathSession(grid)
                self._session.add_solved_listener(self._on_solved)
                logger.info(
                    "Level %d ready: %d pairs, %d obstacles (attempt %d)",
                    level, grid.pair_count, len(grid.obstacles), self._attempts
                )
                return True

            logger.warning("Level %d layout rejected as unsolvable (attempt %d)", level, self._attempts)

        self._unsolvable = True
        logger.warning("Level %d unsolvable after %d attempts", level, self._attempts)
        return False

    def next_level(self) -> bool:
        """
        Advance to the next level with a fresh power key.

        Returns:
            True if the new level is a playable puzzle.
        """
        self._power.assign_key()
        self._timer.reset()
        return self.load_level(self._level + 1)

    def skip_level(self) -> bool:
        """Advance without solving the current level."""
        logger.info("Skipping level %d", self._level)
        return self.next_level()

    def retry_level(self) -> bool:
        """Regenerate the current level, keeping the power key."""
        return self.load_level(self._level)

    def key_down(self, key: str) -> bool:
        return self._power.key_down(key)

    def key_up(self, key: str) -> bool:
        return self._power.key_up(key)

    def set_powered(self, powered: bool) -> None:
        """Drive power directly, bypassing key matching."""
        if powered:
            self._power.key_down(self._power.required_key or self._power.assign_key())
        else:
            self._power.release()

    def click(self, row: int, col: int) -> ClickOutcome:
        """Forward a cell click to the session."""
        if self._session is None:
            return ClickOutcome.IGNORED
        return self._session.on_cell_click(row, col, self._power.powered)

    def tick(self, dt: float) -> int:
        """Advance the power timer. Returns ticks added."""
        running = self._started and self._session is not None and not self.solved
        return self._timer.update(dt, self._power.powered, running)

    def _on_solved(self, instance: PuzzleInstance) -> None:
        logger.info("Level %d solved", self._level)
        for listener in list(self._solved_listeners):
            listener(self._level)

    def build_snapshot(self) -> PuzzleSnapshot:
        """Build current puzzle snapshot."""
        if self._session is None:
            return self._snapshot_builder.empty(self._level, self._power.powered)
        return self._snapshot_builder.build(
            self._session.instance,
            level=self._level,
            powered=self._power.powered
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        instance = self.instance
        return {
            "level": self._level,
            "mode": self._mode.value,
            "solved": self.solved,
            "unsolvable": self._unsolvable,
            "powered": self._power.powered,
            "required_key": self._power.required_key,
            "power_ticks": self._timer.ticks,
            "clicks": self._session.clicks if self._session is not None else 0,
            "completed_pairs": len(instance.completed_pairs) if instance is not None else 0,
            "attempts": self._attempts,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with board size, obstacles, tagged endpoints and paths.
        """
        instance = self.instance
        data: Dict[str, Any] = {
            "size": self._config.grid.size,
            "level": self._level,
            "mode": self._mode.value,
            "powered": self._power.powered,
            "required_key": self._power.required_key,
            "unsolvable": self._unsolvable,
            "solved": self.solved,
            "obstacles": [],
            "endpoints": [],
            "paths": {},
            "active_pair": None,
        }
        if instance is None:
            return data

        data["obstacles"] = sorted(tuple(c) for c in instance.grid.obstacles)
        data["endpoints"] = [
            {
                "row": e.position.row,
                "col": e.position.col,
                "pair_id": e.pair_id,
                "role": e.role.value,
                "tag": e.tag,
                "complete": instance.is_complete(e.pair_id),
            }
            for e in instance.grid.endpoints
        ]
        data["paths"] = {
            pair_id: [tuple(c) for c in path]
            for pair_id, path in instance.paths.items()
        }
        data["active_pair"] = instance.active_pair_id
        return data
