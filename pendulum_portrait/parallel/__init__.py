"""Data-parallel phase portrait evaluation using NVIDIA Warp."""

from .incremental_double_pendulum_warp import IncrementalStepper
from .rk4_double_pendulum_warp import PhaseGridEvaluator, evaluate_grid, evaluate_states

__all__ = ["IncrementalStepper", "PhaseGridEvaluator", "evaluate_grid", "evaluate_states"]
