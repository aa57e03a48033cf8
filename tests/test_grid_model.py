"""
Tests for the board model.
"""

import numpy as np
import pytest

from coopflow.flow_core.grid_model import (
    Cell, CellKind, Endpoint, GridModel, Role, is_adjacent, manhattan,
)


@pytest.fixture
def grid():
    return GridModel.build(
        size=4,
        obstacles=[(1, 1), (2, 2)],
        pairs=[((0, 0), (3, 3)), ((0, 3), (3, 0))],
        tags=[("red", "red"), ("green", "green")]
    )


class TestCells:
    """Test coordinate helpers."""

    def test_cell_value_equality(self):
        assert Cell(1, 2) == Cell(1, 2)
        assert Cell(1, 2) == (1, 2)
        assert len({Cell(1, 2), Cell(1, 2)}) == 1

    def test_manhattan(self):
        assert manhattan((0, 0), (3, 4)) == 7
        assert manhattan((2, 2), (2, 2)) == 0

    def test_adjacency(self):
        assert is_adjacent((1, 1), (0, 1))
        assert is_adjacent((1, 1), (1, 2))
        assert not is_adjacent((1, 1), (2, 2))
        assert not is_adjacent((1, 1), (1, 1))


class TestGridModel:
    """Test board queries."""

    def test_kinds(self, grid):
        assert grid.kind((1, 1)) is CellKind.OBSTACLE
        assert grid.kind((0, 1)) is CellKind.OPEN

    def test_kind_off_board(self, grid):
        with pytest.raises(ValueError, match="outside"):
            grid.kind((4, 0))
        with pytest.raises(ValueError, match="outside"):
            grid.kind((0, -1))

    def test_is_open(self, grid):
        assert grid.is_open((0, 1))
        assert not grid.is_open((1, 1))
        assert not grid.is_open((-1, 0))
        assert not grid.is_open((0, 4))

    def test_endpoint_lookup(self, grid):
        endpoint = grid.endpoint_at((3, 0))
        assert endpoint.pair_id == 1
        assert endpoint.role is Role.TARGET
        assert endpoint.tag == "green"
        assert grid.endpoint_at((0, 1)) is None

    def test_neighbor_order(self, grid):
        """Neighbors come up, down, left, right, skipping obstacles and edges."""
        assert list(grid.neighbors((1, 2))) == [Cell(0, 2), Cell(1, 3)]
        assert list(grid.neighbors((2, 1))) == [Cell(3, 1), Cell(2, 0)]

    def test_pairs_sorted(self, grid):
        pairs = grid.pairs()
        assert [p.pair_id for p in pairs] == [0, 1]
        assert pairs[0].source == Cell(0, 0)
        assert pairs[0].target == Cell(3, 3)
        assert grid.pair_count == 2

    def test_cells_row_major(self, grid):
        cells = list(grid.cells())
        assert len(cells) == 16
        assert cells[0] == Cell(0, 0)
        assert cells[5] == Cell(1, 1)

    def test_to_array(self, grid):
        arr = grid.to_array()
        assert arr.shape == (4, 4)
        assert arr.dtype == np.int8
        assert arr[1, 1] == -1
        assert arr[2, 2] == -1
        assert (arr == 0).sum() == 14

    def test_value_equality(self, grid):
        """Grids built from the same data are equal."""
        other = GridModel.build(
            size=4,
            obstacles=[(2, 2), (1, 1)],
            pairs=[((0, 0), (3, 3)), ((0, 3), (3, 0))],
            tags=[("red", "red"), ("green", "green")]
        )
        assert grid == other


class TestInvariants:
    """Test construction-time validation."""

    def test_obstacle_out_of_bounds(self):
        with pytest.raises(ValueError, match="outside"):
            GridModel.build(size=3, obstacles=[(3, 0)], pairs=[((0, 0), (2, 2))])

    def test_endpoint_on_obstacle(self):
        with pytest.raises(ValueError, match="obstacle"):
            GridModel.build(size=3, obstacles=[(2, 2)], pairs=[((0, 0), (2, 2))])

    def test_shared_endpoint_cell(self):
        with pytest.raises(ValueError, match="share"):
            GridModel.build(size=3, obstacles=[], pairs=[((0, 0), (2, 2)), ((1, 1), (2, 2))])

    def test_pair_needs_both_roles(self):
        endpoints = (
            Endpoint(Cell(0, 0), 0, Role.SOURCE),
            Endpoint(Cell(2, 2), 0, Role.SOURCE),
        )
        with pytest.raises(ValueError, match="exactly one source"):
            GridModel(size=3, endpoints=endpoints)

    def test_lone_endpoint(self):
        with pytest.raises(ValueError, match="exactly one source"):
            GridModel(size=3, endpoints=(Endpoint(Cell(0, 0), 0, Role.SOURCE),))
