"""
State Snapshot
==============

Packs a PuzzleInstance into fixed-size numpy arrays for renderers and
Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from coopflow.flow_core.config_loader import FlowConfig, get_config
from coopflow.flow_core.grid_model import Cell, Endpoint, GridModel, Role
from coopflow.flow_core.path_session import PuzzleInstance

# endpoint_role encoding
ROLE_NONE = 0
ROLE_SOURCE = 1
ROLE_TARGET = 2

# Sentinel for "no pair" in pair-indexed arrays
NO_PAIR = -1


@dataclass
class PuzzleSnapshot:
    """
    Puzzle state as arrays.

    Board arrays are (N, N); per-pair arrays are (max_pairs,) and masked by
    `pair_mask`.
    """
    level: int
    powered: bool
    solved: bool
    active_pair: int                  # NO_PAIR when nothing is under construction
    pair_count: int

    cells: np.ndarray                 # (N, N) int8, 0 open / -1 obstacle
    path_owner: np.ndarray            # (N, N) int16, pair_id or NO_PAIR
    endpoint_pair: np.ndarray         # (N, N) int16, pair_id or NO_PAIR
    endpoint_role: np.ndarray         # (N, N) int8, ROLE_*

    pair_mask: np.ndarray             # (max_pairs,) bool
    path_length: np.ndarray           # (max_pairs,) int16
    complete_mask: np.ndarray         # (max_pairs,) bool

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            "level": np.array(self.level, dtype=np.int32),
            "powered": np.array(int(self.powered), dtype=np.int8),
            "solved": np.array(int(self.solved), dtype=np.int8),
            "active_pair": np.array(self.active_pair, dtype=np.int32),
            "pair_count": np.array(self.pair_count, dtype=np.int32),
            "cells": self.cells.copy(),
            "path_owner": self.path_owner.copy(),
            "endpoint_pair": self.endpoint_pair.copy(),
            "endpoint_role": self.endpoint_role.copy(),
            "pair_mask": self.pair_mask.copy(),
            "path_length": self.path_length.copy(),
            "complete_mask": self.complete_mask.copy(),
        }


class SnapshotBuilder:
    """Builds snapshots for a fixed board size and pair cap."""

    def __init__(self, config: Optional[FlowConfig] = None):
        if config is None:
            config = get_config()

        self._size = config.grid.size
        self._max_pairs = config.caps.max_pairs

    @property
    def size(self) -> int:
        return self._size

    @property
    def max_pairs(self) -> int:
        return self._max_pairs

    def empty(self, level: int = 0, powered: bool = False) -> PuzzleSnapshot:
        """Snapshot for a level with no accepted layout."""
        n = self._size
        return PuzzleSnapshot(
            level=level,
            powered=powered,
            solved=False,
            active_pair=NO_PAIR,
            pair_count=0,
            cells=np.zeros((n, n), dtype=np.int8),
            path_owner=np.full((n, n), NO_PAIR, dtype=np.int16),
            endpoint_pair=np.full((n, n), NO_PAIR, dtype=np.int16),
            endpoint_role=np.zeros((n, n), dtype=np.int8),
            pair_mask=np.zeros(self._max_pairs, dtype=bool),
            path_length=np.zeros(self._max_pairs, dtype=np.int16),
            complete_mask=np.zeros(self._max_pairs, dtype=bool),
        )

    def build(
        self,
        instance: PuzzleInstance,
        level: int,
        powered: bool
    ) -> PuzzleSnapshot:
        """Build a snapshot from a puzzle instance."""
        snapshot = self.empty(level, powered)
        grid = instance.grid

        snapshot.cells = grid.to_array()
        snapshot.solved = instance.solved
        snapshot.pair_count = len(instance.pairs)
        if instance.active_pair_id is not None:
            snapshot.active_pair = instance.active_pair_id

        for endpoint in grid.endpoints:
            row, col = endpoint.position
            snapshot.endpoint_pair[row, col] = endpoint.pair_id
            snapshot.endpoint_role[row, col] = (
                ROLE_SOURCE if endpoint.role is Role.SOURCE else ROLE_TARGET
            )

        for pair_id, path in instance.paths.items():
            for row, col in path:
                snapshot.path_owner[row, col] = pair_id

        for pair in instance.pairs:
            if pair.pair_id >= self._max_pairs:
                continue
            snapshot.pair_mask[pair.pair_id] = True
            snapshot.path_length[pair.pair_id] = len(instance.path(pair.pair_id))
            snapshot.complete_mask[pair.pair_id] = instance.is_complete(pair.pair_id)

        return snapshot


def grid_from_obs(obs: Dict[str, np.ndarray]) -> GridModel:
    """
    Rebuild the GridModel from an observation dict.

    Tags are not part of observations and come back empty.
    """
    cells = np.asarray(obs["cells"])
    endpoint_pair = np.asarray(obs["endpoint_pair"])
    endpoint_role = np.asarray(obs["endpoint_role"])

    obstacles = frozenset(Cell(int(r), int(c)) for r, c in np.argwhere(cells < 0))
    endpoints = []
    for r, c in np.argwhere(endpoint_role != ROLE_NONE):
        role = Role.SOURCE if endpoint_role[r, c] == ROLE_SOURCE else Role.TARGET
        endpoints.append(Endpoint(Cell(int(r), int(c)), int(endpoint_pair[r, c]), role))

    return GridModel(size=cells.shape[0], obstacles=obstacles, endpoints=tuple(endpoints))
