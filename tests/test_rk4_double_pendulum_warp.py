"""Batch evaluator tests, cross-checked against the numpy reference integrator."""

import numpy as np
import pytest

from pendulum_portrait.config import EvaluationCancelled, InvalidConfigurationError, PhysicalParameters
from pendulum_portrait.grid import initial_conditions, initial_grid
from pendulum_portrait.parallel.rk4_double_pendulum_warp import (
    PhaseGridEvaluator,
    evaluate_grid,
    evaluate_states,
)
from pendulum_portrait.sequential.rk4_double_pendulum import deriv, integrate

PARITY_TOLERANCE = 1e-3   # Warp vs numpy sin/cos may differ by an ulp, chaos amplifies it


class CountingToken:
    """Cancellation token that trips after a number of checks."""

    def __init__(self, trip_after):
        self.trip_after = trip_after
        self.checks = 0

    def is_set(self):
        self.checks += 1
        return self.checks > self.trip_after


def test_zero_time_returns_initial_grid(params, device):
    frame = evaluate_grid(8, 6, params, 0.01, 0.0, device=device)
    assert frame.shape == (6, 8, 4)
    assert frame.dtype == np.float32
    np.testing.assert_array_equal(frame, initial_grid(8, 6))


def test_fractional_step_is_dropped(params, device):
    a = evaluate_grid(4, 4, params, 0.01, 0.05, device=device)
    b = evaluate_grid(4, 4, params, 0.01, 0.0599, device=device)
    np.testing.assert_array_equal(a, b)


def test_single_step_matches_numpy_derivative(params, device):
    dt = 0.01
    final = evaluate_states(np.array([[0.1, 0.0, 0.0, 0.0]], dtype=np.float32),
                            params, dt, dt, device=device)
    reference = integrate(np.array([0.1, 0.0, 0.0, 0.0], dtype=np.float32), params, dt, 1)
    np.testing.assert_allclose(final[0], reference, rtol=1e-5, atol=1e-7)
    rate = deriv(np.array([0.1, 0.0, 0.0, 0.0]), params)
    np.testing.assert_allclose(final[0, 2:], rate[2:] * dt, atol=1e-4)


def test_grid_parity_with_numpy(params, device):
    width, height, dt, T = 8, 8, 0.01, 0.5
    frame = evaluate_grid(width, height, params, dt, T, device=device)
    reference = integrate(initial_grid(width, height), params, dt, 50)
    max_diff = np.max(np.abs(frame - reference))
    assert max_diff < PARITY_TOLERANCE, f"Warp/numpy diff {max_diff} exceeds tolerance"


def test_cells_are_independent(params, device):
    width, height, T = 6, 5, 0.3
    frame = evaluate_grid(width, height, params, 0.01, T, device=device)
    for x, y in [(0, 0), (2, 3), (5, 4)]:
        alone = evaluate_states(initial_conditions(x, y, width, height)[np.newaxis],
                                params, 0.01, T, device=device)
        np.testing.assert_array_equal(frame[y, x], alone[0])


@pytest.mark.parametrize("tile_rows", [1, 3, 8, 100])
def test_result_independent_of_tile_size(params, device, tile_rows):
    whole = evaluate_grid(8, 8, params, 0.01, 0.4, device=device)
    tiled = evaluate_grid(8, 8, params, 0.01, 0.4, tile_rows=tile_rows, device=device)
    np.testing.assert_array_equal(whole, tiled)


def test_batch_is_deterministic(params, device):
    a = evaluate_grid(4, 4, params, 0.01, 0.2, device=device)
    b = evaluate_grid(4, 4, params, 0.01, 0.2, device=device)
    np.testing.assert_array_equal(a, b)


def test_cancel_before_start(params, device):
    token = CountingToken(trip_after=0)
    with pytest.raises(EvaluationCancelled):
        evaluate_grid(4, 4, params, 0.01, 0.1, tile_rows=1, cancel=token, device=device)


def test_cancel_between_tiles(params, device):
    token = CountingToken(trip_after=2)
    with pytest.raises(EvaluationCancelled, match="after 8/16 cells"):
        evaluate_grid(4, 4, params, 0.01, 0.1, tile_rows=1, cancel=token, device=device)


def test_uncancelled_token_completes(params, device):
    token = CountingToken(trip_after=100)
    frame = evaluate_grid(4, 4, params, 0.01, 0.1, tile_rows=1, cancel=token, device=device)
    assert token.checks == 4
    np.testing.assert_array_equal(frame, evaluate_grid(4, 4, params, 0.01, 0.1, device=device))


def test_near_singular_cells_stay_finite(device):
    params = PhysicalParameters(mass1=1e-9, mass2=1.0)
    states = np.array([[0.5, 0.5, 0.0, 0.0], [1.0, 1.0, 0.0, 0.0]], dtype=np.float32)
    final = evaluate_states(states, params, 0.01, 0.5, device=device)
    assert np.all(np.isfinite(final))


@pytest.mark.parametrize("kwargs", [
    dict(width=0, height=4, dt=0.01, elapsed_time=1.0),
    dict(width=4, height=4, dt=0.0, elapsed_time=1.0),
    dict(width=4, height=4, dt=0.01, elapsed_time=-1.0),
])
def test_invalid_configuration_fails_fast(params, device, kwargs):
    with pytest.raises(InvalidConfigurationError):
        evaluate_grid(kwargs["width"], kwargs["height"], params, kwargs["dt"],
                      kwargs["elapsed_time"], device=device)


def test_invalid_parameters_object_rejected(device):
    with pytest.raises(InvalidConfigurationError):
        evaluate_grid(4, 4, {"m1": 1.0}, 0.01, 1.0, device=device)


def test_evaluator_statistics(params, device, capsys):
    evaluator = PhaseGridEvaluator(4, 3, params=params, dt=0.01, device=device)
    frame = evaluator.evaluate(0.25, verbose=True)
    assert frame.shape == (3, 4, 4)
    assert evaluator.steps == 25
    assert evaluator.num_cells == 12
    assert evaluator.nonfinite_cells == 0
    assert evaluator.evaluations == 1
    out = capsys.readouterr().out
    assert "RK4 steps per cell: 25" in out
    assert "Total RK4 steps: 300" in out


def test_evaluator_rejects_bad_tile_rows(params):
    with pytest.raises(InvalidConfigurationError):
        PhaseGridEvaluator(4, 4, params=params, tile_rows=0)
