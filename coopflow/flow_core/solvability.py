"""
Solvability Checker
===================

Gate run on every layout before it is shown. Two tiers:

- Up to two pairs: each pair must be reachable source -> target over open
  cells. Paths of different pairs may overlap; this tier does not check
  disjointness.
- Three or more pairs: greedy sequential routing. Pairs are processed in
  pair_id order; each takes its BFS shortest path around the cells already
  committed by earlier pairs. The first pair that cannot be routed fails the
  whole check. No alternative route is tried, so some solvable layouts are
  rejected.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import AbstractSet, Dict, List, Optional, Sequence, Set

from coopflow.flow_core.grid_model import Cell, GridModel, Pair

logger = logging.getLogger(__name__)

# Pair counts up to this use the reachability tier
REACHABILITY_MAX_PAIRS = 2


def find_path(
    grid: GridModel,
    start: Cell,
    end: Cell,
    blocked: AbstractSet[Cell] = frozenset()
) -> Optional[List[Cell]]:
    """
    BFS shortest path over open, unblocked cells.

    Neighbors are explored up, down, left, right; among equally short paths
    the first one discovered in that order is returned. The start cell is
    never checked against `blocked`.

    Returns:
        Cells from start to end inclusive, or None if unreachable.
    """
    parents: Dict[Cell, Optional[Cell]] = {start: None}
    queue = deque([start])

    while queue:
        cell = queue.popleft()
        if cell == end:
            path = [cell]
            while parents[path[-1]] is not None:
                path.append(parents[path[-1]])
            path.reverse()
            return path

        for neighbor in grid.neighbors(cell):
            if neighbor in parents or neighbor in blocked:
                continue
            parents[neighbor] = cell
            queue.append(neighbor)

    return None


class SolvabilityChecker:
    """Decides whether a layout may be presented to the player."""

    def is_solvable(
        self,
        grid: GridModel,
        pairs: Optional[Sequence[Pair]] = None
    ) -> bool:
        """
        Check a layout.

        Args:
            grid: The board.
            pairs: Pairs to connect. Derived from the grid if None.

        Returns:
            False for layouts without pairs or that fail the tier's check.
        """
        if pairs is None:
            pairs = grid.pairs()

        if not pairs:
            return False

        if len(pairs) <= REACHABILITY_MAX_PAIRS:
            for pair in pairs:
                if find_path(grid, pair.source, pair.target) is None:
                    logger.debug("Pair %d unreachable", pair.pair_id)
                    return False
            return True

        return self.route_pairs(grid, pairs) is not None

    def route_pairs(
        self,
        grid: GridModel,
        pairs: Optional[Sequence[Pair]] = None
    ) -> Optional[Dict[int, List[Cell]]]:
        """
        Greedy single-attempt routing of every pair.

        Each pair's own endpoints are never treated as blocked. Cells of
        committed paths are released again when a later pair fails.

        Returns:
            pair_id -> path for every pair, or None if any pair fails.
        """
        if pairs is None:
            pairs = grid.pairs()

        used: Set[Cell] = set()
        committed: List[int] = []
        routes: Dict[int, List[Cell]] = {}

        for pair in pairs:
            blocked = used - set(pair.endpoints())
            path = find_path(grid, pair.source, pair.target, blocked)

            if path is None:
                logger.debug(
                    "Pair %d blocked after routing %s", pair.pair_id, committed
                )
                while committed:
                    released = routes.pop(committed.pop())
                    used.difference_update(released)
                return None

            used.update(path)
            routes[pair.pair_id] = path
            committed.append(pair.pair_id)

        return routes


def is_solvable(grid: GridModel, pairs: Optional[Sequence[Pair]] = None) -> bool:
    """Module-level shortcut for SolvabilityChecker().is_solvable."""
    return SolvabilityChecker().is_solvable(grid, pairs)
