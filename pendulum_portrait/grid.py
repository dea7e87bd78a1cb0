"""
Pixel grid → initial condition mapping.

Cell (x, y) of a width × height grid starts at rest with
    θ₁ = (x / width  · 2 − 1) · π
    θ₂ = (y / height · 2 − 1) · π
The left/top edge is sampled (x = 0 → −π exactly); the right/bottom edge
is not, the last cell lands on π · (width − 2) / width.
"""

import numpy as np

from pendulum_portrait.config import InvalidConfigurationError, validate_grid_size


def initial_conditions(x, y, width, height):
    """Initial state (θ₁, θ₂, ω₁, ω₂) of one cell as a float32 array."""
    width, height = validate_grid_size(width, height)
    if not (0 <= x < width and 0 <= y < height):
        raise InvalidConfigurationError(
            f"cell ({x}, {y}) outside {width}x{height} grid")
    theta1 = (x / width * 2 - 1) * np.pi
    theta2 = (y / height * 2 - 1) * np.pi
    return np.array([theta1, theta2, 0.0, 0.0], dtype=np.float32)


def initial_grid(width, height):
    """Initial states of every cell, row-major [height × width × 4] float32."""
    width, height = validate_grid_size(width, height)
    theta1 = (np.arange(width, dtype=np.float64) / width * 2 - 1) * np.pi
    theta2 = (np.arange(height, dtype=np.float64) / height * 2 - 1) * np.pi
    states = np.zeros((height, width, 4), dtype=np.float32)
    states[:, :, 0] = theta1[np.newaxis, :]
    states[:, :, 1] = theta2[:, np.newaxis]
    return states


def cell_index(x, y, width):
    """Flat row-major index of cell (x, y)."""
    return y * width + x
