"""
Run configuration for the double pendulum phase portrait.

Physical parameters and integration settings are plain immutable values.
Both validate on construction so an invalid run fails before any kernel
is launched.
"""

import math
from dataclasses import dataclass

# Defaults of the interactive portrait
CANVAS_SIZE = 1024
TIME_STEP = 0.01
GRAVITY = 9.81
MASS = 1.0
LENGTH = 1.0

# Angular velocity range (rad/s) assumed by the byte encoding
OMEGA_RANGE = 10.0

# |den| below this is replaced by ±DENOMINATOR_EPSILON in the equations of motion
DENOMINATOR_EPSILON = 1e-6

# Fraction of a step below which the T/dt remainder counts as a whole step
STEP_ROUNDING_SLACK = 1e-6


class InvalidConfigurationError(ValueError):
    """Raised for a configuration that must not be integrated."""


class EvaluationCancelled(RuntimeError):
    """Raised when a batch evaluation is cancelled between row tiles."""


def _require_positive(name, value):
    if not (math.isfinite(value) and value > 0):
        raise InvalidConfigurationError(f"{name} must be a finite positive number, got {value!r}")


@dataclass(frozen=True)
class PhysicalParameters:
    """Two point masses on two massless rods, shared by every grid cell.

    Parameters:
        mass1: First pendulum mass m₁ (kg)
        mass2: Second pendulum mass m₂ (kg)
        length1: First pendulum length L₁ (m)
        length2: Second pendulum length L₂ (m)
        gravity: Gravitational acceleration g (m/s²)
    """

    mass1: float = MASS
    mass2: float = MASS
    length1: float = LENGTH
    length2: float = LENGTH
    gravity: float = GRAVITY

    def __post_init__(self):
        for name in ("mass1", "mass2", "length1", "length2", "gravity"):
            _require_positive(name, float(getattr(self, name)))


@dataclass(frozen=True)
class IntegrationConfig:
    """Fixed step size plus the simulated time a batch evaluation targets."""

    dt: float = TIME_STEP
    elapsed_time: float = 0.0

    def __post_init__(self):
        _require_positive("dt", float(self.dt))
        if not (math.isfinite(self.elapsed_time) and self.elapsed_time >= 0):
            raise InvalidConfigurationError(
                f"elapsed_time must be finite and >= 0, got {self.elapsed_time!r}")

    @property
    def steps(self):
        return step_count(self.elapsed_time, self.dt)


def step_count(elapsed_time, dt):
    """Number of whole RK4 steps covering elapsed_time: floor(T / dt).

    The fractional remainder is dropped. A remainder within
    STEP_ROUNDING_SLACK of a full step is rounded up, so 3 * 0.01 gives 3.
    """
    config = IntegrationConfig(dt=dt, elapsed_time=elapsed_time)
    return int(math.floor(config.elapsed_time / config.dt + STEP_ROUNDING_SLACK))


def validate_grid_size(width, height):
    for name, value in (("width", width), ("height", height)):
        if not math.isfinite(value) or int(value) != value or value <= 0:
            raise InvalidConfigurationError(f"grid {name} must be a positive integer, got {value!r}")
    return int(width), int(height)
