"""Phase-space portraits of the double pendulum with fixed-step RK4."""

from .config import (
    EvaluationCancelled,
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    step_count,
)
from .encoding import decode, encode
from .grid import initial_conditions, initial_grid
from .sequential.rk4_double_pendulum import deriv, integrate, rk4_step

__all__ = [
    "EvaluationCancelled",
    "IntegrationConfig",
    "InvalidConfigurationError",
    "PhysicalParameters",
    "decode",
    "deriv",
    "encode",
    "initial_conditions",
    "initial_grid",
    "integrate",
    "rk4_step",
    "step_count",
]
