"""
Path Session
============

Live path-construction state machine. `PuzzleInstance` is an immutable
value; `resolve_click` / `apply_click` are pure transitions and
`PathSession` holds the current instance for a single caller.

Click rules, applied in order:

1. Ignored while unpowered, once solved, off the board or on an obstacle.
2. Endpoints:
   - a source (re)starts its pair with a one-cell path and makes it active;
   - the active pair's target completes the path if adjacent to its end,
     clearing the active pair;
   - any other target is ignored.
3. Plain cells are ignored when no pair is active.
4. Plain cells with an active pair: cells held by another pair are
   rejected, cells already on the active path retract the path to just
   before them, adjacent cells extend it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from coopflow.flow_core.grid_model import Cell, GridModel, Pair, Role, is_adjacent

logger = logging.getLogger(__name__)

Path = Tuple[Cell, ...]


class ClickOutcome(Enum):
    """What a click did to the instance."""
    IGNORED = "ignored"
    STARTED = "started"
    EXTENDED = "extended"
    RETRACTED = "retracted"
    COMPLETED = "completed"
    SOLVED = "solved"

    @property
    def changed(self) -> bool:
        return self is not ClickOutcome.IGNORED


@dataclass(frozen=True)
class PuzzleInstance:
    """
    Puzzle state for one level attempt.

    `paths` maps pair_id to the cells drawn so far. At most one pair is
    under construction (`active_pair_id`) and no cell belongs to two pairs.
    `paths` is exposed as a read-only mapping.
    """
    grid: GridModel
    pairs: Tuple[Pair, ...]
    paths: Mapping[int, Path] = field(default_factory=dict, hash=False)
    active_pair_id: Optional[int] = None
    solved: bool = False

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "paths", MappingProxyType(dict(self.paths)))

    @classmethod
    def from_grid(cls, grid: GridModel) -> "PuzzleInstance":
        """Fresh instance with no paths drawn."""
        return cls(grid=grid, pairs=grid.pairs())

    def pair(self, pair_id: int) -> Pair:
        for pair in self.pairs:
            if pair.pair_id == pair_id:
                return pair
        raise KeyError(pair_id)

    def path(self, pair_id: int) -> Path:
        return self.paths.get(pair_id, ())

    def owner_of(self, cell: Tuple[int, int]) -> Optional[int]:
        """pair_id whose path holds the cell, if any."""
        cell = Cell(*cell)
        for pair_id, path in self.paths.items():
            if cell in path:
                return pair_id
        return None

    def is_complete(self, pair_id: int) -> bool:
        return is_path_complete(self.pair(pair_id), self.path(pair_id))

    @property
    def active_path(self) -> Path:
        if self.active_pair_id is None:
            return ()
        return self.path(self.active_pair_id)

    @property
    def completed_pairs(self) -> List[int]:
        return [p.pair_id for p in self.pairs if self.is_complete(p.pair_id)]


@dataclass(frozen=True)
class ClickResult:
    instance: PuzzleInstance
    outcome: ClickOutcome


def is_path_complete(pair: Pair, path: Path) -> bool:
    """A path is complete when it starts at the source and ends on the target."""
    return len(path) > 1 and path[0] == pair.source and path[-1] == pair.target


def is_solved(instance: PuzzleInstance) -> bool:
    """True when every pair has a complete path."""
    return bool(instance.pairs) and all(
        is_path_complete(pair, instance.path(pair.pair_id))
        for pair in instance.pairs
    )


def _with_path(instance: PuzzleInstance, pair_id: int, path: Path) -> Dict[int, Path]:
    paths = dict(instance.paths)
    paths[pair_id] = path
    return paths


def resolve_click(
    instance: PuzzleInstance,
    cell: Tuple[int, int],
    powered: bool
) -> ClickResult:
    """
    Apply one click to an instance.

    Args:
        instance: Current state (never mutated).
        cell: Clicked (row, col).
        powered: True while the power-holder's key is held.

    Returns:
        ClickResult with the next instance and what happened. Rejected clicks
        return the same instance object with ClickOutcome.IGNORED.
    """
    ignored = ClickResult(instance, ClickOutcome.IGNORED)
    grid = instance.grid
    cell = Cell(*cell)

    if not powered or instance.solved or not grid.is_open(cell):
        return ignored

    endpoint = grid.endpoint_at(cell)
    if endpoint is not None:
        pair_id = endpoint.pair_id

        if endpoint.role is Role.SOURCE:
            return ClickResult(
                replace(
                    instance,
                    paths=_with_path(instance, pair_id, (cell,)),
                    active_pair_id=pair_id
                ),
                ClickOutcome.STARTED
            )

        if pair_id != instance.active_pair_id:
            return ignored

        path = instance.path(pair_id)
        if not path or not is_adjacent(path[-1], cell):
            return ignored

        completed = replace(
            instance,
            paths=_with_path(instance, pair_id, path + (cell,)),
            active_pair_id=None
        )
        if is_solved(completed):
            return ClickResult(replace(completed, solved=True), ClickOutcome.SOLVED)
        return ClickResult(completed, ClickOutcome.COMPLETED)

    active = instance.active_pair_id
    if active is None:
        return ignored

    owner = instance.owner_of(cell)
    if owner is not None and owner != active:
        return ignored

    path = instance.path(active)
    if cell in path:
        truncated = path[:path.index(cell)]
        return ClickResult(
            replace(instance, paths=_with_path(instance, active, truncated)),
            ClickOutcome.RETRACTED
        )

    if path and is_adjacent(path[-1], cell):
        return ClickResult(
            replace(instance, paths=_with_path(instance, active, path + (cell,))),
            ClickOutcome.EXTENDED
        )

    return ignored


def apply_click(
    instance: PuzzleInstance,
    cell: Tuple[int, int],
    powered: bool
) -> PuzzleInstance:
    """Pure transition: instance' for a click."""
    return resolve_click(instance, cell, powered).instance


class PathSession:
    """
    Owns the current PuzzleInstance for one level attempt.

    The powered flag is supplied by the caller on every click; the session
    never changes it. Solved listeners fire once, on the click that solves
    the puzzle.
    """

    def __init__(self, grid: GridModel):
        """
        Initialize session.

        Args:
            grid: Accepted layout for this level.
        """
        self._instance = PuzzleInstance.from_grid(grid)
        self._listeners: List[Callable[[PuzzleInstance], None]] = []
        self._clicks: int = 0

    @property
    def instance(self) -> PuzzleInstance:
        """Current state snapshot."""
        return self._instance

    @property
    def solved(self) -> bool:
        return self._instance.solved

    @property
    def clicks(self) -> int:
        """Number of clicks received, accepted or not."""
        return self._clicks

    def add_solved_listener(self, listener: Callable[[PuzzleInstance], None]) -> None:
        self._listeners.append(listener)

    def on_cell_click(self, row: int, col: int, powered: bool) -> ClickOutcome:
        """
        Handle a click intent.

        Args:
            row: Clicked row.
            col: Clicked column.
            powered: Current power state from the input subsystem.

        Returns:
            The click outcome.
        """
        self._clicks += 1
        result = resolve_click(self._instance, (row, col), powered)
        self._instance = result.instance

        if result.outcome is ClickOutcome.IGNORED:
            logger.debug("Click (%d, %d) ignored (powered=%s)", row, col, powered)
        elif result.outcome is ClickOutcome.SOLVED:
            logger.info("Puzzle solved after %d clicks", self._clicks)
            for listener in list(self._listeners):
                listener(self._instance)

        return result.outcome
