"""
Fixed-Step RK4 Phase Portrait - NVIDIA Warp Parallel Version

Every grid cell is an independent double pendulum. One thread integrates
one cell from t = 0 to the requested time T using floor(T / dt) RK4 steps
and writes its final state to its own output slot, so cells never read or
write each other's data.

Recomputing from scratch keeps each frame exactly the state at time T,
but an animation that grows T every frame costs O(W·H·T/dt) per frame and
O(W·H·T²/dt) in total. Use IncrementalStepper to follow a few
trajectories over long horizons.

State per cell: [θ₁, θ₂, ω₁, ω₂] (wp.vec4)
"""

import time

import numpy as np
import warp as wp

from pendulum_portrait.config import (
    DENOMINATOR_EPSILON,
    EvaluationCancelled,
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    TIME_STEP,
    validate_grid_size,
)
from pendulum_portrait.grid import initial_grid

wp.init()

DENOM_EPS = wp.constant(DENOMINATOR_EPSILON)


@wp.func
def floor_denominator(den: wp.float32) -> wp.float32:
    """Replace |den| < ε by ±ε (sign kept, +ε for zero)."""
    if wp.abs(den) < DENOM_EPS:
        if den < 0.0:
            return -DENOM_EPS
        return DENOM_EPS
    return den


@wp.func
def pendulum_deriv(
    s: wp.vec4,
    L1: wp.float32, L2: wp.float32,
    m1: wp.float32, m2: wp.float32,
    g:  wp.float32,
) -> wp.vec4:
    """Compute (ω₁, ω₂, α₁, α₂) for double pendulum, callable from within a kernel."""
    t1 = s[0]
    t2 = s[1]
    w1 = s[2]
    w2 = s[3]
    delta = t2 - t1
    sin_d = wp.sin(delta)
    cos_d = wp.cos(delta)
    den1 = floor_denominator((m1 + m2) * L1 - m2 * L1 * cos_d * cos_d)
    den2 = floor_denominator((L2 / L1) * den1)
    a1 = (m2 * L1 * w1 * w1 * sin_d * cos_d
          + m2 * g * wp.sin(t2) * cos_d
          + m2 * L2 * w2 * w2 * sin_d
          - (m1 + m2) * g * wp.sin(t1)) / den1
    a2 = (-m2 * L2 * w2 * w2 * sin_d * cos_d
          + (m1 + m2) * g * wp.sin(t1) * cos_d
          - (m1 + m2) * L1 * w1 * w1 * sin_d
          - (m1 + m2) * g * wp.sin(t2)) / den2
    return wp.vec4(w1, w2, a1, a2)


@wp.func
def rk4_step(
    s: wp.vec4, dt: wp.float32,
    L1: wp.float32, L2: wp.float32,
    m1: wp.float32, m2: wp.float32,
    g:  wp.float32,
) -> wp.vec4:
    """One classical RK4 step of size dt."""
    half = dt * 0.5
    k1 = pendulum_deriv(s, L1, L2, m1, m2, g)
    k2 = pendulum_deriv(s + half * k1, L1, L2, m1, m2, g)
    k3 = pendulum_deriv(s + half * k2, L1, L2, m1, m2, g)
    k4 = pendulum_deriv(s + dt * k3, L1, L2, m1, m2, g)
    return s + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


@wp.kernel
def rk4_integrate_cells(
    initial: wp.array(dtype=wp.vec4),
    final: wp.array(dtype=wp.vec4),
    offset: wp.int32, steps: wp.int32, dt: wp.float32,
    L1: wp.float32, L2: wp.float32, m1: wp.float32, m2: wp.float32, g: wp.float32,
):
    """Integrate cell offset + tid from its initial state. One cell per thread."""
    idx = offset + wp.tid()
    s = initial[idx]
    for _step in range(steps):
        s = rk4_step(s, dt, L1, L2, m1, m2, g)
    final[idx] = s


@wp.kernel
def rk4_advance(
    state: wp.array(dtype=wp.vec4),
    dt: wp.float32,
    L1: wp.float32, L2: wp.float32, m1: wp.float32, m2: wp.float32, g: wp.float32,
):
    """Advance each trajectory in place by one RK4 step."""
    tid = wp.tid()
    state[tid] = rk4_step(state[tid], dt, L1, L2, m1, m2, g)


def snapshot_params(params):
    """Freeze the physical parameters as float32 kernel arguments (L1, L2, m1, m2, g)."""
    if not isinstance(params, PhysicalParameters):
        raise InvalidConfigurationError(f"expected PhysicalParameters, got {type(params).__name__}")
    return (np.float32(params.length1), np.float32(params.length2),
            np.float32(params.mass1), np.float32(params.mass2),
            np.float32(params.gravity))


def as_flat_states(states):
    """Contiguous float32 [N×4] copy of an array of states."""
    states = np.asarray(states, dtype=np.float32)
    if states.ndim == 0 or states.shape[-1] != 4:
        raise InvalidConfigurationError(
            f"states must have a trailing axis of length 4, got shape {states.shape}")
    return np.ascontiguousarray(states.reshape(-1, 4))


def evaluate_states(initial_states, params, dt, elapsed_time,
                    tile_size=None, cancel=None, device=None):
    """
    Integrate every initial state independently to time elapsed_time.

    Parameters:
        initial_states: array [..., 4] of initial states
        params: PhysicalParameters shared by all states
        dt: Fixed RK4 step size (s)
        elapsed_time: Simulated time T; floor(T / dt) steps are taken
        tile_size: States per kernel launch (default: all at once)
        cancel: Optional token with is_set(), checked between tiles
        device: Warp device (default: Warp's preferred device)

    Returns the final states with the same shape as initial_states.
    """
    config = IntegrationConfig(dt=dt, elapsed_time=elapsed_time)
    L1, L2, m1, m2, g = snapshot_params(params)
    steps = config.steps

    shape = np.shape(initial_states)
    flat = as_flat_states(initial_states)
    n = flat.shape[0]
    if n == 0:
        return flat.reshape(shape)
    if tile_size is None:
        tile_size = n
    if int(tile_size) != tile_size or tile_size <= 0:
        raise InvalidConfigurationError(f"tile_size must be a positive integer, got {tile_size!r}")
    tile_size = int(tile_size)

    initial = wp.array(flat, dtype=wp.vec4, device=device)
    final = wp.zeros(n, dtype=wp.vec4, device=initial.device)

    for offset in range(0, n, tile_size):
        if cancel is not None and cancel.is_set():
            raise EvaluationCancelled(f"evaluation cancelled after {offset}/{n} cells")
        count = min(tile_size, n - offset)
        wp.launch(rk4_integrate_cells,
                  dim=count,
                  inputs=[initial, final, np.int32(offset), np.int32(steps),
                          np.float32(config.dt), L1, L2, m1, m2, g],
                  device=initial.device)
        if cancel is not None:
            wp.synchronize_device(initial.device)

    wp.synchronize_device(initial.device)
    return final.numpy().reshape(shape)


def evaluate_grid(width, height, params, dt, elapsed_time,
                  tile_rows=None, cancel=None, device=None):
    """Final states of a width × height phase portrait, row-major [height × width × 4]."""
    width, height = validate_grid_size(width, height)
    IntegrationConfig(dt=dt, elapsed_time=elapsed_time)
    snapshot_params(params)
    tile_size = None if tile_rows is None else int(tile_rows) * width
    return evaluate_states(initial_grid(width, height), params, dt, elapsed_time,
                           tile_size=tile_size, cancel=cancel, device=device)


class PhaseGridEvaluator:
    def __init__(self, width, height, params=None, dt=TIME_STEP,
                 tile_rows=None, device=None, quiet=True):
        """
        Batch-from-scratch evaluator for a phase portrait grid

        Parameters:
            width: Grid width in cells (θ₁ axis)
            height: Grid height in cells (θ₂ axis)
            params: PhysicalParameters, defaults to unit masses and rods
            dt: Fixed RK4 step size (s)
            tile_rows: Grid rows per kernel launch (default: whole grid)
            device: Warp device (default: Warp's preferred device)
            quiet: Suppress per-evaluation print output
        """
        self.width, self.height = validate_grid_size(width, height)
        self.params = params if params is not None else PhysicalParameters()
        snapshot_params(self.params)
        self.dt = IntegrationConfig(dt=dt).dt
        if tile_rows is not None and (int(tile_rows) != tile_rows or tile_rows <= 0):
            raise InvalidConfigurationError(f"tile_rows must be a positive integer, got {tile_rows!r}")
        self.tile_rows = tile_rows
        self.device = device
        self.quiet = quiet

        self.initial_states = initial_grid(self.width, self.height)

        # Statistics of the most recent evaluation
        self.elapsed_time = 0.0
        self.steps = 0
        self.wall_clock_time = 0.0
        self.nonfinite_cells = 0
        self.evaluations = 0

    @property
    def num_cells(self):
        return self.width * self.height

    def evaluate(self, elapsed_time, cancel=None, verbose=False):
        """Final state of every cell at simulated time elapsed_time, [height × width × 4]"""
        start_time = time.perf_counter()
        # Parameters are read once here; later edits apply to the next call
        params = self.params
        tile_size = None if self.tile_rows is None else int(self.tile_rows) * self.width

        final = evaluate_states(self.initial_states, params, self.dt, elapsed_time,
                                tile_size=tile_size, cancel=cancel, device=self.device)

        self.elapsed_time = float(elapsed_time)
        self.steps = IntegrationConfig(dt=self.dt, elapsed_time=elapsed_time).steps
        self.nonfinite_cells = int(np.count_nonzero(~np.all(np.isfinite(final), axis=-1)))
        self.evaluations += 1
        self.wall_clock_time = time.perf_counter() - start_time

        if verbose or not self.quiet:
            self.print_summary()

        return final

    def print_summary(self):
        """Print statistics of the most recent evaluation"""
        print(f"\nPhase Portrait WARP Evaluation ({self.width}x{self.height} cells):")
        print(f"  Simulated time: {self.elapsed_time:.4f}s")
        print(f"  RK4 steps per cell: {self.steps}")
        print(f"  Total RK4 steps: {self.steps * self.num_cells}")
        print(f"  Wall clock time: {self.wall_clock_time:.4f}s")
        print(f"  Non-finite cells: {self.nonfinite_cells}")
