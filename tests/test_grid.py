import math

import numpy as np
import pytest

from pendulum_portrait.config import InvalidConfigurationError
from pendulum_portrait.grid import cell_index, initial_conditions, initial_grid


def test_corner_cell_maps_to_minus_pi():
    state = initial_conditions(0, 0, 4, 4)
    assert state[0] == np.float32(-math.pi)
    assert state[1] == np.float32(-math.pi)
    assert state[2] == 0.0 and state[3] == 0.0


def test_four_columns_span_half_open_interval():
    theta1 = [initial_conditions(x, 0, 4, 4)[0] for x in range(4)]
    assert len(set(theta1)) == 4
    np.testing.assert_allclose(theta1, [-math.pi, -math.pi / 2, 0.0, math.pi / 2], atol=1e-6)
    assert min(theta1) >= np.float32(-math.pi)
    assert max(theta1) < math.pi


def test_last_cell_stops_short_of_pi():
    width = 16
    state = initial_conditions(width - 1, width - 1, width, width)
    expected = math.pi * (width - 2) / width
    np.testing.assert_allclose(state[:2], [expected, expected], rtol=1e-6)


def test_mapping_is_injective():
    grid = initial_grid(8, 6)
    pairs = {(float(s[0]), float(s[1])) for s in grid.reshape(-1, 4)}
    assert len(pairs) == 8 * 6


def test_initial_grid_is_row_major():
    width, height = 5, 3
    grid = initial_grid(width, height)
    assert grid.shape == (height, width, 4)
    assert grid.dtype == np.float32
    flat = grid.reshape(-1, 4)
    for y in range(height):
        for x in range(width):
            np.testing.assert_array_equal(flat[cell_index(x, y, width)],
                                          initial_conditions(x, y, width, height))
    assert np.all(grid[..., 2:] == 0.0)


def test_cell_index_is_row_major():
    assert cell_index(3, 2, 7) == 17


@pytest.mark.parametrize("x,y", [(-1, 0), (4, 0), (0, 4)])
def test_cell_outside_grid_rejected(x, y):
    with pytest.raises(InvalidConfigurationError):
        initial_conditions(x, y, 4, 4)
