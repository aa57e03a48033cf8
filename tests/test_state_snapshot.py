"""
Tests for puzzle snapshots and observation packing.
"""

import numpy as np
import pytest

from coopflow.flow_core.config_loader import load_config
from coopflow.flow_core.grid_model import GridModel
from coopflow.flow_core.path_session import PuzzleInstance, apply_click
from coopflow.flow_core.state_snapshot import (
    NO_PAIR, ROLE_NONE, ROLE_SOURCE, ROLE_TARGET, SnapshotBuilder, grid_from_obs,
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def builder(config):
    return SnapshotBuilder(config)


@pytest.fixture
def grid():
    return GridModel.build(
        size=6,
        obstacles=[(2, 2), (3, 3)],
        pairs=[((0, 0), (0, 2)), ((5, 0), (5, 5))],
        tags=[("red", "red"), ("green", "green")]
    )


def play(grid, cells):
    instance = PuzzleInstance.from_grid(grid)
    for cell in cells:
        instance = apply_click(instance, cell, True)
    return instance


class TestSnapshot:
    """Test array contents."""

    def test_empty(self, builder):
        snapshot = builder.empty(level=7)
        assert snapshot.level == 7
        assert snapshot.pair_count == 0
        assert snapshot.active_pair == NO_PAIR
        assert not snapshot.pair_mask.any()
        assert (snapshot.path_owner == NO_PAIR).all()

    def test_board_arrays(self, builder, grid):
        snapshot = builder.build(PuzzleInstance.from_grid(grid), level=3, powered=True)

        assert snapshot.cells.shape == (6, 6)
        assert snapshot.cells[2, 2] == -1
        assert snapshot.cells[0, 0] == 0
        assert snapshot.endpoint_pair[5, 5] == 1
        assert snapshot.endpoint_role[0, 0] == ROLE_SOURCE
        assert snapshot.endpoint_role[0, 2] == ROLE_TARGET
        assert snapshot.endpoint_role[1, 1] == ROLE_NONE

    def test_pair_arrays(self, builder, grid):
        instance = play(grid, [(0, 0), (1, 0), (1, 1), (1, 2), (0, 2), (5, 0)])
        snapshot = builder.build(instance, level=3, powered=True)

        assert snapshot.pair_count == 2
        assert snapshot.pair_mask.tolist() == [True, True, False]
        assert snapshot.path_length.tolist() == [5, 1, 0]
        assert snapshot.complete_mask.tolist() == [True, False, False]
        assert snapshot.active_pair == 1
        assert snapshot.path_owner[1, 1] == 0
        assert snapshot.path_owner[5, 0] == 1
        assert snapshot.path_owner[4, 4] == NO_PAIR

    def test_obs_dict_types(self, builder, grid):
        obs = builder.build(PuzzleInstance.from_grid(grid), level=2, powered=True).to_obs_dict()

        assert obs["level"].dtype == np.int32
        assert obs["level"].shape == ()
        assert int(obs["powered"]) == 1
        assert int(obs["solved"]) == 0
        assert obs["path_owner"].dtype == np.int16

    def test_obs_dict_is_copy(self, builder, grid):
        snapshot = builder.build(PuzzleInstance.from_grid(grid), level=2, powered=True)
        obs = snapshot.to_obs_dict()
        obs["cells"][0, 0] = -1
        assert snapshot.cells[0, 0] == 0


class TestGridFromObs:
    """Test rebuilding the board from an observation."""

    def test_round_trip_layout(self, builder, grid):
        obs = builder.build(PuzzleInstance.from_grid(grid), level=1, powered=True).to_obs_dict()
        rebuilt = grid_from_obs(obs)

        assert rebuilt.obstacles == grid.obstacles
        assert rebuilt.pairs() == grid.pairs()
        assert rebuilt.endpoint_at((0, 0)).tag == ""
