"""Incremental stepper tests, including equivalence with the batch evaluator."""

import numpy as np
import pytest

from pendulum_portrait.config import InvalidConfigurationError
from pendulum_portrait.grid import initial_conditions, initial_grid
from pendulum_portrait.parallel.incremental_double_pendulum_warp import IncrementalStepper
from pendulum_portrait.parallel.rk4_double_pendulum_warp import evaluate_grid, evaluate_states
from pendulum_portrait.sequential.rk4_double_pendulum import integrate

EQUIVALENCE_RTOL = 1e-5
EQUIVALENCE_ATOL = 1e-5


@pytest.mark.parametrize("n_ticks", [1, 7, 50])
def test_ticks_match_batch_recompute(params, device, n_ticks):
    dt = 0.01
    initial = initial_conditions(5, 2, 8, 8)
    stepper = IncrementalStepper(initial, params=params, dt=dt, device=device)
    for _ in range(n_ticks):
        state = stepper.tick()
    batch = evaluate_states(initial[np.newaxis], params, dt, n_ticks * dt, device=device)[0]
    np.testing.assert_allclose(state, batch, rtol=EQUIVALENCE_RTOL, atol=EQUIVALENCE_ATOL)


def test_whole_grid_ticks_match_batch(params, device):
    dt, n_ticks = 0.01, 30
    stepper = IncrementalStepper(initial_grid(6, 6).reshape(-1, 4), params=params, dt=dt, device=device)
    states = stepper.advance(n_ticks)
    frame = evaluate_grid(6, 6, params, dt, n_ticks * dt, device=device)
    np.testing.assert_allclose(states, frame.reshape(-1, 4),
                               rtol=EQUIVALENCE_RTOL, atol=EQUIVALENCE_ATOL)


def test_ticks_match_numpy_reference(params, device):
    initial = np.array([1.2, -0.4, 0.0, 0.5], dtype=np.float32)
    stepper = IncrementalStepper(initial, params=params, dt=0.005, device=device)
    state = stepper.advance(40)
    np.testing.assert_allclose(state, integrate(initial, params, 0.005, 40), atol=1e-4)


def test_elapsed_time_accumulates(params, device):
    stepper = IncrementalStepper(np.zeros(4), params=params, dt=0.01, device=device)
    assert stepper.elapsed_time == 0.0
    stepper.advance(3)
    assert stepper.steps == 3
    assert stepper.elapsed_time == pytest.approx(0.03)


def test_single_and_multiple_shapes(params, device):
    single = IncrementalStepper(np.zeros(4), params=params, device=device)
    assert single.tick().shape == (4,)
    assert single.num_trajectories == 1
    several = IncrementalStepper(np.zeros((3, 4)), params=params, device=device)
    assert several.tick().shape == (3, 4)
    assert several.elapsed_time.shape == (3,)


def test_reset_replaces_state_and_zeroes_time(params, device):
    stepper = IncrementalStepper(np.array([1.0, 0.5, 0.0, 0.0]), params=params, device=device)
    stepper.advance(10)
    fresh = np.array([-0.3, 0.2, 0.0, 0.0], dtype=np.float32)
    stepper.reset(fresh)
    assert stepper.elapsed_time == 0.0
    np.testing.assert_array_equal(stepper.state, fresh)


def test_reset_trajectory_leaves_others_untouched(params, device):
    initial = np.array([[1.0, 0.5, 0.0, 0.0], [-2.0, 1.0, 0.0, 0.0]], dtype=np.float32)
    stepper = IncrementalStepper(initial, params=params, dt=0.01, device=device)
    stepper.advance(5)
    before = stepper.state

    stepper.reset_trajectory(0, [0.2, 0.1, 0.0, 0.0])
    after = stepper.state
    np.testing.assert_array_equal(after[0], np.array([0.2, 0.1, 0.0, 0.0], dtype=np.float32))
    np.testing.assert_array_equal(after[1], before[1])
    np.testing.assert_array_equal(stepper.steps, [0, 5])

    # Trajectories keep independent clocks
    stepper.advance(2)
    np.testing.assert_allclose(stepper.elapsed_time, [0.02, 0.07])
    alone = IncrementalStepper(initial[1], params=params, dt=0.01, device=device)
    np.testing.assert_array_equal(stepper.state[1], alone.advance(7))


def test_independent_steppers_do_not_interfere(params, device):
    a = IncrementalStepper(np.array([1.0, 0.5, 0.0, 0.0]), params=params, device=device)
    b = IncrementalStepper(np.array([1.0, 0.5, 0.0, 0.0]), params=params, device=device)
    a.advance(20)
    assert b.steps == 0
    np.testing.assert_array_equal(b.advance(20), a.state)


def test_invalid_usage_rejected(params, device):
    with pytest.raises(InvalidConfigurationError):
        IncrementalStepper(np.zeros(4), params=params, dt=-0.01, device=device)
    with pytest.raises(InvalidConfigurationError):
        IncrementalStepper(np.zeros((0, 4)), params=params, device=device)
    stepper = IncrementalStepper(np.zeros((2, 4)), params=params, device=device)
    with pytest.raises(InvalidConfigurationError):
        stepper.reset_trajectory(2, np.zeros(4))
    with pytest.raises(InvalidConfigurationError):
        stepper.advance(-1)
