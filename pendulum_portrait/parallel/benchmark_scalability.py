"""
Scalability Benchmarks
Batch-from-scratch grid evaluation vs incremental stepping

Collects timing, step counts, and energy drift data.
Results saved as .npz for separate plotting (plot_benchmarks.py).

Usage:
    python -m pendulum_portrait.parallel.benchmark_scalability --grid-size
    python -m pendulum_portrait.parallel.benchmark_scalability --horizon
    python -m pendulum_portrait.parallel.benchmark_scalability --animation
    python -m pendulum_portrait.parallel.benchmark_scalability --all
"""

import argparse
import time

import numpy as np

from pendulum_portrait.config import TIME_STEP, PhysicalParameters, step_count
from pendulum_portrait.grid import initial_grid
from pendulum_portrait.parallel.incremental_double_pendulum_warp import IncrementalStepper
from pendulum_portrait.parallel.rk4_double_pendulum_warp import PhaseGridEvaluator
from pendulum_portrait.sequential.rk4_double_pendulum import total_energy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def compute_energy_drift(initial, final, params):
    """Max |H_final - H_initial| across all finite cells."""
    H0 = total_energy(initial, params)
    Hf = total_energy(final, params)
    drift = np.abs(Hf - H0)
    drift = drift[np.isfinite(drift)]
    return float(np.max(drift)) if drift.size else float('nan')


def warmup_gpu(device=None):
    """Run a tiny evaluation to JIT-compile Warp kernels before benchmarking."""
    evaluator = PhaseGridEvaluator(2, 2, dt=TIME_STEP, device=device)
    evaluator.evaluate(2 * TIME_STEP)
    stepper = IncrementalStepper(np.zeros(4, dtype=np.float32), device=device)
    stepper.tick()


def time_evaluation(evaluator, elapsed_time):
    start = time.perf_counter()
    final = evaluator.evaluate(elapsed_time)
    return time.perf_counter() - start, final


# ---------------------------------------------------------------------------
# Grid size benchmark (wall time vs cells)
# ---------------------------------------------------------------------------

def run_grid_size_benchmark(sizes=None, elapsed_time=2.0, dt=TIME_STEP,
                            num_repeats=3, params=None, device=None,
                            output='benchmark_results_grid_size.npz'):
    if sizes is None:
        sizes = [16, 32, 64, 128, 256, 512, 1024]
    params = params if params is not None else PhysicalParameters()

    n_pts = len(sizes)
    results = dict(
        sizes=np.array(sizes),
        cells=np.array(sizes) ** 2,
        elapsed_time=elapsed_time,
        dt=dt,
        steps=step_count(elapsed_time, dt),
        num_repeats=num_repeats,
        times=np.zeros((n_pts, num_repeats)),
        nonfinite_cells=np.zeros(n_pts, dtype=int),
    )

    for i, size in enumerate(sizes):
        print(f"Grid size: {size}x{size}")
        evaluator = PhaseGridEvaluator(size, size, params=params, dt=dt, device=device)
        for rep in range(num_repeats):
            wall, _ = time_evaluation(evaluator, elapsed_time)
            results['times'][i, rep] = wall
            print(f"  Rep {rep+1}/{num_repeats}: {wall:.4f}s "
                  f"({evaluator.steps * evaluator.num_cells} RK4 steps)")
        results['nonfinite_cells'][i] = evaluator.nonfinite_cells

    if output:
        np.savez(output, **results)
    return results


# ---------------------------------------------------------------------------
# Horizon benchmark (wall time and energy drift vs T)
# ---------------------------------------------------------------------------

def run_horizon_benchmark(horizons=None, size=128, dt=TIME_STEP,
                          num_repeats=3, params=None, device=None,
                          output='benchmark_results_horizon.npz'):
    if horizons is None:
        horizons = [0.5, 1.0, 2.0, 4.0, 8.0, 16.0]
    params = params if params is not None else PhysicalParameters()

    n_pts = len(horizons)
    results = dict(
        horizons=np.array(horizons, dtype=float),
        steps=np.array([step_count(T, dt) for T in horizons]),
        size=size,
        dt=dt,
        num_repeats=num_repeats,
        times=np.zeros((n_pts, num_repeats)),
        energy_drift=np.zeros(n_pts),
    )

    evaluator = PhaseGridEvaluator(size, size, params=params, dt=dt, device=device)
    initial = initial_grid(size, size)
    for i, T in enumerate(horizons):
        print(f"Horizon: T = {T:.2f}s ({results['steps'][i]} steps/cell)")
        final = None
        for rep in range(num_repeats):
            wall, final = time_evaluation(evaluator, T)
            results['times'][i, rep] = wall
        results['energy_drift'][i] = compute_energy_drift(initial, final, params)
        print(f"  median {np.median(results['times'][i]):.4f}s, "
              f"E_drift={results['energy_drift'][i]:.2e}")

    if output:
        np.savez(output, **results)
    return results


# ---------------------------------------------------------------------------
# Animation benchmark (cumulative cost across frames)
# ---------------------------------------------------------------------------

def run_animation_benchmark(num_frames=60, frame_interval=1.0 / 30.0, size=128,
                            dt=TIME_STEP, params=None, device=None,
                            output='benchmark_results_animation.npz'):
    """Replay an animation whose simulated time grows every frame.

    From-scratch evaluation redoes every earlier step each frame, so its
    cumulative work grows quadratically with the frame count; the
    incremental stepper only performs the new steps.
    """
    params = params if params is not None else PhysicalParameters()
    frame_times = np.arange(1, num_frames + 1) * frame_interval

    evaluator = PhaseGridEvaluator(size, size, params=params, dt=dt, device=device)
    stepper = IncrementalStepper(initial_grid(size, size).reshape(-1, 4),
                                 params=params, dt=dt, device=device)

    batch_times = np.zeros(num_frames)
    incremental_times = np.zeros(num_frames)
    batch_steps = np.zeros(num_frames, dtype=np.int64)
    incremental_steps = np.zeros(num_frames, dtype=np.int64)
    max_difference = np.zeros(num_frames)

    for k, T in enumerate(frame_times):
        wall, final = time_evaluation(evaluator, T)
        batch_times[k] = wall
        batch_steps[k] = evaluator.steps * evaluator.num_cells

        target = step_count(T, dt)
        ticks = target - int(stepper.step_counts[0])
        start = time.perf_counter()
        state = stepper.advance(ticks)
        incremental_times[k] = time.perf_counter() - start
        incremental_steps[k] = ticks * evaluator.num_cells

        diff = np.abs(state - final.reshape(-1, 4))
        diff = diff[np.isfinite(diff)]
        max_difference[k] = float(np.max(diff)) if diff.size else 0.0

    results = dict(
        frame_times=frame_times,
        size=size,
        dt=dt,
        batch_times=batch_times,
        incremental_times=incremental_times,
        batch_cumulative_steps=np.cumsum(batch_steps),
        incremental_cumulative_steps=np.cumsum(incremental_steps),
        max_difference=max_difference,
    )
    print(f"Animation: {num_frames} frames, {size}x{size} grid")
    print(f"  From scratch: {np.sum(batch_times):.4f}s, "
          f"{results['batch_cumulative_steps'][-1]} RK4 steps")
    print(f"  Incremental:  {np.sum(incremental_times):.4f}s, "
          f"{results['incremental_cumulative_steps'][-1]} RK4 steps")
    print(f"  Max |batch - incremental|: {np.max(max_difference):.2e}")

    if output:
        np.savez(output, **results)
    return results


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description='Scalability benchmarks for the phase portrait evaluators')
    parser.add_argument('--grid-size', action='store_true',
                        help='Run grid size benchmark (wall time vs cells)')
    parser.add_argument('--horizon', action='store_true',
                        help='Run horizon benchmark (wall time vs simulated time)')
    parser.add_argument('--animation', action='store_true',
                        help='Run animation benchmark (from scratch vs incremental)')
    parser.add_argument('--all', action='store_true',
                        help='Run all benchmarks')
    parser.add_argument('--size', type=int, default=128,
                        help='Grid size for horizon and animation benchmarks (default: 128)')
    parser.add_argument('--dt', type=float, default=TIME_STEP,
                        help=f'RK4 step size (default: {TIME_STEP})')
    parser.add_argument('--repeats', type=int, default=3,
                        help='Repetitions per configuration (default: 3)')
    args = parser.parse_args()

    if args.all:
        args.grid_size = True
        args.horizon = True
        args.animation = True

    if not (args.grid_size or args.horizon or args.animation):
        args.grid_size = True

    warmup_gpu()

    if args.grid_size:
        run_grid_size_benchmark(dt=args.dt, num_repeats=args.repeats)

    if args.horizon:
        run_horizon_benchmark(size=args.size, dt=args.dt, num_repeats=args.repeats)

    if args.animation:
        run_animation_benchmark(size=args.size, dt=args.dt)


if __name__ == '__main__':
    main()
