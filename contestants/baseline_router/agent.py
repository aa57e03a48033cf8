"""
Baseline Router Agent
=====================

Routes every pair with breadth-first search before the first click, then
replays the plan as clicks: source, path cells, target.

Pair orders are tried in turn until one routes every pair without
crossing another pair's path or endpoint.
"""

from __future__ import annotations

from itertools import permutations
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from coopflow.flow_core.grid_model import Cell, GridModel
from coopflow.flow_core.solvability import find_path
from coopflow.flow_core.state_snapshot import grid_from_obs


def plan_routes(grid: GridModel) -> Optional[Dict[int, List[Cell]]]:
    """
    Find disjoint paths for every pair.

    Returns:
        pair_id -> path, or None if no tried order routes all pairs.
    """
    pairs = grid.pairs()
    endpoint_cells = {e.position for e in grid.endpoints}

    for order in permutations(pairs):
        used: Set[Cell] = set()
        routes: Dict[int, List[Cell]] = {}
        for pair in order:
            blocked = (used | endpoint_cells) - set(pair.endpoints())
            path = find_path(grid, pair.source, pair.target, blocked)
            if path is None:
                break
            used.update(path)
            routes[pair.pair_id] = path
        else:
            return routes

    return None


def layout_key(obs: Dict[str, np.ndarray]) -> Tuple:
    """Identifies a board: level, obstacles and endpoint placement."""
    return (
        int(obs["level"]),
        int(obs["pair_count"]),
        np.asarray(obs["cells"]).tobytes(),
        np.asarray(obs["endpoint_pair"]).tobytes(),
        np.asarray(obs["endpoint_role"]).tobytes(),
    )


class FlowAgent:
    """Plans all routes once per level and clicks them out."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)
        self._plan: List[int] = []
        self._plan_size = 0
        self._layout: Optional[Tuple] = None

    def reset(self) -> None:
        self._plan = []
        self._plan_size = 0
        self._layout = None

    def act(self, obs: Dict[str, np.ndarray]) -> int:
        """
        Choose the next cell to click.

        Args:
            obs: Observation from FlowPuzzleEnv.

        Returns:
            Flat cell index row * N + col.
        """
        layout = layout_key(obs)
        started = len(self._plan) < self._plan_size
        board_cleared = not (np.asarray(obs["path_owner"]) >= 0).any()
        # New layout, or the same layout reset underneath a partly played plan
        if layout != self._layout or (started and board_cleared):
            self._layout = layout
            self._plan = self._build_plan(obs)
            self._plan_size = len(self._plan)

        if self._plan:
            return self._plan.pop(0)

        size = obs["cells"].shape[0]
        return int(self.rng.integers(size * size))

    def _build_plan(self, obs: Dict[str, np.ndarray]) -> List[int]:
        if int(obs["pair_count"]) == 0:
            return []

        grid = grid_from_obs(obs)
        routes = plan_routes(grid)
        if routes is None:
            return []

        return [
            cell.row * grid.size + cell.col
            for pair_id in sorted(routes)
            for cell in routes[pair_id]
        ]
