"""
Grid Model
==========

Immutable board representation: open/obstacle cells plus labeled endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np


class Cell(NamedTuple):
    """Board coordinate. Equality and hashing by value."""
    row: int
    col: int


# Neighbor exploration order: up, down, left, right
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def manhattan(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    """Manhattan distance between two cells."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def is_adjacent(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    """True if the cells share an edge."""
    return manhattan(a, b) == 1


class CellKind(IntEnum):
    """Cell contents. Values match the snapshot array encoding."""
    OPEN = 0
    OBSTACLE = -1


class Role(Enum):
    SOURCE = "source"
    TARGET = "target"


@dataclass(frozen=True)
class Endpoint:
    """A labeled source or target cell."""
    position: Cell
    pair_id: int
    role: Role
    tag: str = ""


@dataclass(frozen=True)
class Pair:
    """Derived view joining a source and target on pair_id."""
    pair_id: int
    source: Cell
    target: Cell

    def endpoints(self) -> Tuple[Cell, Cell]:
        return (self.source, self.target)


@dataclass(frozen=True)
class GridModel:
    """
    N x N board with obstacles and endpoints.

    Invariants (checked on construction):
    - every obstacle and endpoint lies on the board
    - every endpoint cell is open
    - no two endpoints share a cell
    - each pair_id has exactly one source and one target

    Raises:
        ValueError: If any invariant is violated.
    """
    size: int
    obstacles: FrozenSet[Cell] = frozenset()
    endpoints: Tuple[Endpoint, ...] = ()
    _endpoint_index: Dict[Cell, Endpoint] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "obstacles", frozenset(Cell(*c) for c in self.obstacles)
        )
        for cell in self.obstacles:
            if not self.in_bounds(cell):
                raise ValueError(f"Obstacle {cell} is outside a {self.size}x{self.size} board")

        index: Dict[Cell, Endpoint] = {}
        roles: Dict[int, List[Role]] = {}
        for endpoint in self.endpoints:
            cell = endpoint.position
            if not self.in_bounds(cell):
                raise ValueError(f"Endpoint {cell} is outside the board")
            if cell in self.obstacles:
                raise ValueError(f"Endpoint {cell} is on an obstacle")
            if cell in index:
                raise ValueError(f"Two endpoints share cell {cell}")
            index[cell] = endpoint
            roles.setdefault(endpoint.pair_id, []).append(endpoint.role)

        for pair_id, pair_roles in roles.items():
            if sorted(r.value for r in pair_roles) != ["source", "target"]:
                raise ValueError(
                    f"Pair {pair_id} must have exactly one source and one target"
                )

        object.__setattr__(self, "_endpoint_index", index)

    def in_bounds(self, cell: Tuple[int, int]) -> bool:
        return 0 <= cell[0] < self.size and 0 <= cell[1] < self.size

    def kind(self, cell: Tuple[int, int]) -> CellKind:
        """
        Contents of an on-board cell.

        Raises:
            ValueError: If the cell is off the board.
        """
        if not self.in_bounds(cell):
            raise ValueError(f"Cell {tuple(cell)} is outside a {self.size}x{self.size} board")
        if Cell(*cell) in self.obstacles:
            return CellKind.OBSTACLE
        return CellKind.OPEN

    def is_open(self, cell: Tuple[int, int]) -> bool:
        """True for on-board, non-obstacle cells."""
        return self.in_bounds(cell) and Cell(*cell) not in self.obstacles

    def endpoint_at(self, cell: Tuple[int, int]) -> Optional[Endpoint]:
        return self._endpoint_index.get(Cell(*cell))

    def neighbors(self, cell: Tuple[int, int]) -> Iterator[Cell]:
        """Open 4-neighbors in up, down, left, right order."""
        for dr, dc in DIRECTIONS:
            candidate = Cell(cell[0] + dr, cell[1] + dc)
            if self.is_open(candidate):
                yield candidate

    def cells(self) -> Iterator[Cell]:
        """All board cells in row-major order."""
        for row in range(self.size):
            for col in range(self.size):
                yield Cell(row, col)

    def pairs(self) -> Tuple[Pair, ...]:
        """Pairs sorted by pair_id."""
        sources: Dict[int, Cell] = {}
        targets: Dict[int, Cell] = {}
        for endpoint in self.endpoints:
            if endpoint.role is Role.SOURCE:
                sources[endpoint.pair_id] = endpoint.position
            else:
                targets[endpoint.pair_id] = endpoint.position
        return tuple(
            Pair(pair_id=pid, source=sources[pid], target=targets[pid])
            for pid in sorted(sources)
        )

    @property
    def pair_count(self) -> int:
        return len(self.endpoints) // 2

    def to_array(self) -> np.ndarray:
        """Cell kinds as an (N, N) int8 array (0 open, -1 obstacle)."""
        grid = np.full((self.size, self.size), CellKind.OPEN, dtype=np.int8)
        for cell in self.obstacles:
            grid[cell.row, cell.col] = CellKind.OBSTACLE
        return grid

    @classmethod
    def build(
        cls,
        size: int,
        obstacles: Iterable[Tuple[int, int]],
        pairs: Iterable[Tuple[Tuple[int, int], Tuple[int, int]]],
        tags: Optional[Iterable[Tuple[str, str]]] = None
    ) -> "GridModel":
        """
        Convenience constructor from plain coordinates.

        Args:
            size: Board size.
            obstacles: Obstacle coordinates.
            pairs: (source, target) coordinates; pair_id is the list position.
            tags: Optional (source_tag, target_tag) per pair.

        Returns:
            Validated GridModel.
        """
        pairs = list(pairs)
        tags = list(tags) if tags is not None else [("", "")] * len(pairs)
        endpoints: List[Endpoint] = []
        for pair_id, ((source, target), (source_tag, target_tag)) in enumerate(zip(pairs, tags)):
            endpoints.append(Endpoint(Cell(*source), pair_id, Role.SOURCE, source_tag))
            endpoints.append(Endpoint(Cell(*target), pair_id, Role.TARGET, target_tag))
        return cls(
            size=size,
            obstacles=frozenset(Cell(*c) for c in obstacles),
            endpoints=tuple(endpoints)
        )
