"""
Fixed-Step RK4 Double Pendulum - numpy reference implementation

Classical fourth-order Runge-Kutta on the Lagrangian double pendulum.
Every function is vectorised over arrays shaped [..., 4], so the same code
advances one trajectory or a whole grid of them.

State vector: [θ₁, θ₂, ω₁, ω₂] (angles from the downward vertical, rad;
angular velocities, rad/s). Angles are never wrapped during integration.

Near-singular denominators are floored to ±DENOMINATOR_EPSILON, the same
policy the Warp kernels apply.
"""

import time

import numpy as np

from pendulum_portrait.config import (
    DENOMINATOR_EPSILON,
    IntegrationConfig,
    InvalidConfigurationError,
    PhysicalParameters,
    TIME_STEP,
    step_count,
)


def as_state(state, dtype=np.float32):
    """Coerce to a floating point array with a trailing axis of length 4."""
    state = np.asarray(state)
    if not np.issubdtype(state.dtype, np.floating):
        state = state.astype(dtype)
    if state.ndim == 0 or state.shape[-1] != 4:
        raise InvalidConfigurationError(
            f"state must have a trailing axis of length 4, got shape {state.shape}")
    return state


def floor_denominator(den):
    """Replace |den| < ε by ±ε (sign kept, +ε for zero)."""
    den = np.asarray(den)
    floored = np.where(np.abs(den) < DENOMINATOR_EPSILON,
                       np.copysign(DENOMINATOR_EPSILON, den), den)
    return floored.astype(den.dtype, copy=False)


def deriv(state, params):
    """
    State derivative of the double pendulum (Lagrangian mechanics)

    State: [θ₁, θ₂, ω₁, ω₂]
    Returns: [θ̇₁, θ̇₂, ω̇₁, ω̇₂] = [ω₁, ω₂, α₁, α₂]
    """
    state = as_state(state)
    theta1 = state[..., 0]
    theta2 = state[..., 1]
    omega1 = state[..., 2]
    omega2 = state[..., 3]
    m1 = params.mass1
    m2 = params.mass2
    L1 = params.length1
    L2 = params.length2
    g = params.gravity

    delta = theta2 - theta1
    sin_delta = np.sin(delta)
    cos_delta = np.cos(delta)

    den1 = floor_denominator((m1 + m2) * L1 - m2 * L1 * cos_delta * cos_delta)
    den2 = floor_denominator((L2 / L1) * den1)

    alpha1 = (m2 * L1 * omega1 * omega1 * sin_delta * cos_delta
              + m2 * g * np.sin(theta2) * cos_delta
              + m2 * L2 * omega2 * omega2 * sin_delta
              - (m1 + m2) * g * np.sin(theta1)) / den1

    alpha2 = (-m2 * L2 * omega2 * omega2 * sin_delta * cos_delta
              + (m1 + m2) * g * np.sin(theta1) * cos_delta
              - (m1 + m2) * L1 * omega1 * omega1 * sin_delta
              - (m1 + m2) * g * np.sin(theta2)) / den2

    return np.stack([omega1, omega2, alpha1, alpha2], axis=-1).astype(state.dtype, copy=False)


def rk4_step(state, params, dt):
    """One classical RK4 step of size dt"""
    s = as_state(state)
    k1 = deriv(s, params)
    k2 = deriv(s + (dt / 2) * k1, params)
    k3 = deriv(s + (dt / 2) * k2, params)
    k4 = deriv(s + dt * k3, params)
    return (s + (dt / 6) * (k1 + 2 * k2 + 2 * k3 + k4)).astype(s.dtype, copy=False)


def integrate(state, params, dt, steps):
    """Apply rk4_step `steps` times"""
    IntegrationConfig(dt=dt)
    if steps < 0:
        raise InvalidConfigurationError(f"steps must be >= 0, got {steps}")
    s = as_state(state).copy()
    for _ in range(int(steps)):
        s = rk4_step(s, params, dt)
    return s


def total_energy(state, params):
    """Total mechanical energy H = T + V, pivot at height zero (float64)."""
    state = as_state(state).astype(np.float64)
    theta1 = state[..., 0]
    theta2 = state[..., 1]
    omega1 = state[..., 2]
    omega2 = state[..., 3]
    m1, m2 = params.mass1, params.mass2
    L1, L2 = params.length1, params.length2
    g = params.gravity

    T = (0.5 * m1 * L1**2 * omega1**2
         + 0.5 * m2 * (L1**2 * omega1**2 + L2**2 * omega2**2
                        + 2 * L1 * L2 * omega1 * omega2 * np.cos(theta1 - theta2)))
    V = -(m1 + m2) * g * L1 * np.cos(theta1) - m2 * g * L2 * np.cos(theta2)
    return T + V


def positions_from_state(state, params):
    """Bob positions relative to the pivot, y pointing down: ((x1, y1), (x2, y2))"""
    state = as_state(state)
    theta1 = state[..., 0]
    theta2 = state[..., 1]
    x1 = params.length1 * np.sin(theta1)
    y1 = params.length1 * np.cos(theta1)
    x2 = x1 + params.length2 * np.sin(theta2)
    y2 = y1 + params.length2 * np.cos(theta2)
    return (x1, y1), (x2, y2)


class DoublePendulumRK4:
    def __init__(self, initial_theta1, initial_theta2,
                 initial_omega1=0.0, initial_omega2=0.0,
                 end_time=10.0, dt=TIME_STEP, params=None,
                 dtype=np.float32):
        """
        Initialize fixed-step double pendulum simulator

        Parameters:
            initial_theta1: Initial angle of first pendulum (rad), θ₁₀
            initial_theta2: Initial angle of second pendulum (rad), θ₂₀
            initial_omega1: Initial angular velocity of first pendulum (rad/s), ω₁₀
            initial_omega2: Initial angular velocity of second pendulum (rad/s), ω₂₀
            end_time: Simulation end time (s), truncated to whole steps
            dt: Fixed time step size δt (s)
            params: PhysicalParameters, defaults to unit masses and rods
            dtype: Floating point type of the state
        """
        self.params = params if params is not None else PhysicalParameters()
        self.dt = dt
        self.end_time = end_time
        self.num_steps = step_count(end_time, dt)
        self.initial_state = np.array([initial_theta1, initial_theta2,
                                       initial_omega1, initial_omega2], dtype=dtype)

        # Simulation results
        self.time = []
        self.states = []
        self.energies = []
        self.wall_clock_time = 0.0

    def run(self, verbose=False):
        """Integrate num_steps RK4 steps, recording every state"""
        start_time = time.perf_counter()

        state = self.initial_state.copy()
        self.time = [0.0]
        self.states = [state.copy()]

        for n in range(1, self.num_steps + 1):
            state = rk4_step(state, self.params, self.dt)
            self.time.append(n * self.dt)
            self.states.append(state.copy())

        self.energies = list(total_energy(np.array(self.states), self.params))
        self.wall_clock_time = time.perf_counter() - start_time

        if verbose:
            self.print_summary()

        return self

    def energy_drift(self):
        """Max |H(t) - H(0)| over the recorded trajectory"""
        if not self.energies:
            return 0.0
        energies = np.asarray(self.energies)
        return float(np.max(np.abs(energies - energies[0])))

    def print_summary(self):
        """Print simulation statistics"""
        print(f"\nDouble Pendulum RK4 Simulation completed:")
        print(f"  Steps: {self.num_steps}")
        print(f"  Step size: {self.dt:.2e}s")
        print(f"  Wall clock time: {self.wall_clock_time:.4f}s")
        print(f"  Final time: {self.time[-1]:.6f}s")
        print(f"  Final state: {np.array2string(self.states[-1], precision=5)}")
        print(f"  Max energy drift: {self.energy_drift():.2e}")

    def get_states_array(self):
        """Return states as numpy array [N×4]"""
        return np.array(self.states)


if __name__ == "__main__":
    integrator = DoublePendulumRK4(
        initial_theta1=np.pi / 4,
        initial_theta2=np.pi / 2,
        end_time=10.0,
        dt=TIME_STEP,
    )

    integrator.run(verbose=True)
