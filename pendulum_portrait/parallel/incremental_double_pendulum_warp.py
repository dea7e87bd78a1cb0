"""
Incremental RK4 Stepper - NVIDIA Warp GPU Version

Holds persistent on-device state for one or more tracked trajectories and
advances all of them by exactly one RK4 step per tick(). Each trajectory
keeps its own step counter, so a single trajectory can be replaced with
reset_trajectory() without disturbing the others.

N ticks from state S reproduce the batch evaluator at T = N·dt from S:
both call the same rk4_step the same number of times.

State per trajectory: [θ₁, θ₂, ω₁, ω₂] (wp.vec4)
"""

import numpy as np
import warp as wp

from pendulum_portrait.config import (
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    TIME_STEP,
)
from pendulum_portrait.parallel.rk4_double_pendulum_warp import (
    as_flat_states,
    rk4_advance,
    snapshot_params,
)


@wp.kernel
def selective_update_state(
    state: wp.array(dtype=wp.vec4),
    new_state: wp.array(dtype=wp.vec4),
    replace: wp.array(dtype=wp.int32),
):
    """In-place state update: only copy from new_state where replace[tid] == 1."""
    tid = wp.tid()
    if replace[tid]:
        state[tid] = new_state[tid]


class IncrementalStepper:
    def __init__(self, initial_states, params=None, dt=TIME_STEP, device=None):
        """
        Per-tick stepper for tracked trajectories

        Parameters:
            initial_states: One state [4] or several [n × 4]
            params: PhysicalParameters, defaults to unit masses and rods
            dt: Fixed RK4 step size (s), applied once per tick
            device: Warp device (default: Warp's preferred device)
        """
        self.params = params if params is not None else PhysicalParameters()
        self._kernel_params = snapshot_params(self.params)
        self.dt = IntegrationConfig(dt=dt).dt
        self.device = device

        self._state = None
        self._single = False
        self.step_counts = np.zeros(0, dtype=np.int64)
        self.reset(initial_states)

    @property
    def num_trajectories(self):
        return self._state.shape[0]

    @property
    def state(self):
        """Current state, [4] for a single trajectory, [n × 4] otherwise"""
        states = self._state.numpy()
        return states[0].copy() if self._single else states.copy()

    @property
    def elapsed_time(self):
        """Simulated time of each trajectory (step count × dt)"""
        elapsed = self.step_counts * self.dt
        return float(elapsed[0]) if self._single else elapsed

    @property
    def steps(self):
        return int(self.step_counts[0]) if self._single else self.step_counts.copy()

    def tick(self):
        """Advance every trajectory by one RK4 step of size dt and return the new state"""
        L1, L2, m1, m2, g = self._kernel_params
        wp.launch(rk4_advance,
                  dim=self.num_trajectories,
                  inputs=[self._state, np.float32(self.dt), L1, L2, m1, m2, g],
                  device=self._state.device)
        self.step_counts += 1
        return self.state

    def advance(self, num_ticks):
        """Apply num_ticks ticks and return the final state"""
        if num_ticks < 0:
            raise InvalidConfigurationError(f"num_ticks must be >= 0, got {num_ticks}")
        for _ in range(int(num_ticks)):
            self.tick()
        return self.state

    def reset(self, initial_states):
        """Replace every tracked trajectory and zero the elapsed time"""
        initial = np.asarray(initial_states, dtype=np.float32)
        self._single = initial.ndim == 1
        flat = as_flat_states(initial)
        if flat.shape[0] == 0:
            raise InvalidConfigurationError("at least one trajectory must be tracked")
        self._state = wp.array(flat, dtype=wp.vec4, device=self.device)
        self.step_counts = np.zeros(flat.shape[0], dtype=np.int64)

    def reset_trajectory(self, index, state):
        """Replace one trajectory and zero its elapsed time, leaving the others untouched"""
        n = self.num_trajectories
        if not 0 <= index < n:
            raise InvalidConfigurationError(f"trajectory index {index} out of range for {n} trajectories")
        new_state = np.zeros((n, 4), dtype=np.float32)
        new_state[index] = as_flat_states(state)[0]
        replace = np.zeros(n, dtype=np.int32)
        replace[index] = 1

        device = self._state.device
        wp.launch(selective_update_state, dim=n,
                  inputs=[self._state,
                          wp.array(new_state, dtype=wp.vec4, device=device),
                          wp.array(replace, dtype=wp.int32, device=device)],
                  device=device)
        self.step_counts[index] = 0
