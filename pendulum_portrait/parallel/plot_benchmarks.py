"""
Benchmark Visualization: Grid Size, Horizon and Animation Plots

Loads .npz files produced by benchmark_scalability.py and generates:
  1. Grid size plot (wall time vs cells)
  2. Horizon plot (wall time and energy drift vs simulated time)
  3. Animation plot (cumulative work, from scratch vs incremental)

Usage:
    python -m pendulum_portrait.parallel.plot_benchmarks
    python -m pendulum_portrait.parallel.plot_benchmarks --no-show
"""

import argparse
import os
import sys

import numpy as np
import matplotlib.pyplot as plt


COLOR_BATCH = '#1f77b4'
COLOR_INCREMENTAL = '#ff7f0e'

GRID_SIZE_FILE = 'benchmark_results_grid_size.npz'
HORIZON_FILE = 'benchmark_results_horizon.npz'
ANIMATION_FILE = 'benchmark_results_animation.npz'


# ---------------------------------------------------------------------------
# Plot 1: Grid size (wall time vs cells)
# ---------------------------------------------------------------------------

def plot_grid_size(data, output='fig_grid_size.png', show=True):
    cells = data['cells']
    T = float(data['elapsed_time'])

    med = np.median(data['times'], axis=1)
    lo = np.min(data['times'], axis=1)
    hi = np.max(data['times'], axis=1)

    fig, ax = plt.subplots(figsize=(10, 7))
    ax.loglog(cells, med, 'o-', color=COLOR_BATCH, linewidth=2.5,
              markersize=8, markerfacecolor='white', markeredgewidth=2.5,
              label='Batch from scratch', zorder=5)
    ax.fill_between(cells, lo, hi, alpha=0.15, color=COLOR_BATCH)

    # O(cells) reference line
    mid = len(cells) // 2
    ref = cells.astype(float)
    ax.loglog(cells, med[mid] / ref[mid] * ref, '--', color='gray', alpha=0.5,
              linewidth=1.5, label='O(W·H) reference')

    ax.set_xlabel('Grid Cells (W·H)', fontsize=14)
    ax.set_ylabel('Wall Time (s)', fontsize=14)
    ax.set_title(f'Scalability: Wall Time vs Grid Cells\n'
                 f'(T={T:.1f}s, {int(data["steps"])} steps/cell)',
                 fontsize=15, fontweight='bold')
    ax.legend(fontsize=12, loc='best')
    ax.grid(True, alpha=0.3, which='both', linestyle='--')
    ax.tick_params(labelsize=12)
    fig.tight_layout()
    if output:
        fig.savefig(output, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


# ---------------------------------------------------------------------------
# Plot 2: Horizon (wall time and energy drift vs T)
# ---------------------------------------------------------------------------

def plot_horizon(data, output='fig_horizon.png', show=True):
    horizons = data['horizons']
    size = int(data['size'])
    med = np.median(data['times'], axis=1)

    fig, axes = plt.subplots(2, 1, figsize=(10, 12))

    # --- Top: wall time vs T ---
    ax = axes[0]
    ax.loglog(horizons, med, 'o-', color=COLOR_BATCH, linewidth=2.5,
              markersize=8, markerfacecolor='white', markeredgewidth=2.5,
              label='Batch from scratch')
    ax.set_xlabel('Simulated Time T (s)', fontsize=14)
    ax.set_ylabel('Wall Time per Frame (s)', fontsize=14)
    ax.set_title(f'Per-Frame Cost vs Horizon\n({size}x{size}, dt={float(data["dt"]):.0e}s)',
                 fontsize=15, fontweight='bold')
    ax.legend(fontsize=12)
    ax.grid(True, alpha=0.3, which='both', linestyle='--')
    ax.tick_params(labelsize=12)

    # --- Bottom: energy drift vs T ---
    ax = axes[1]
    ax.semilogy(horizons, np.maximum(data['energy_drift'], 1e-16), 's-', color='#d62728',
                linewidth=2.5, markersize=8, markerfacecolor='white', markeredgewidth=2.5)
    ax.set_xlabel('Simulated Time T (s)', fontsize=14)
    ax.set_ylabel('Max |H(T) - H(0)| over cells (J)', fontsize=14)
    ax.set_title('Energy Drift of Fixed-Step RK4', fontsize=15, fontweight='bold')
    ax.grid(True, alpha=0.3, which='both', linestyle='--')
    ax.tick_params(labelsize=12)

    fig.tight_layout()
    if output:
        fig.savefig(output, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


# ---------------------------------------------------------------------------
# Plot 3: Animation (cumulative work)
# ---------------------------------------------------------------------------

def plot_animation(data, output='fig_animation.png', show=True):
    frame_times = data['frame_times']
    size = int(data['size'])

    fig, axes = plt.subplots(1, 2, figsize=(16, 7))

    ax = axes[0]
    ax.plot(frame_times, data['batch_cumulative_steps'], 'o-', color=COLOR_BATCH,
            linewidth=2.5, markersize=5, label='Batch from scratch (quadratic)')
    ax.plot(frame_times, data['incremental_cumulative_steps'], 's-', color=COLOR_INCREMENTAL,
            linewidth=2.5, markersize=5, label='Incremental (linear)')
    ax.set_xlabel('Simulated Time (s)', fontsize=14)
    ax.set_ylabel('Cumulative RK4 Steps', fontsize=14)
    ax.set_title(f'Cumulative Work Across Frames\n({size}x{size})',
                 fontsize=15, fontweight='bold')
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3, linestyle='--')

    ax = axes[1]
    ax.plot(frame_times, np.cumsum(data['batch_times']), 'o-', color=COLOR_BATCH,
            linewidth=2.5, markersize=5, label='Batch from scratch')
    ax.plot(frame_times, np.cumsum(data['incremental_times']), 's-', color=COLOR_INCREMENTAL,
            linewidth=2.5, markersize=5, label='Incremental')
    ax.set_xlabel('Simulated Time (s)', fontsize=14)
    ax.set_ylabel('Cumulative Wall Time (s)', fontsize=14)
    ax.set_title(f'Cumulative Wall Time\n(max |difference| = {np.max(data["max_difference"]):.1e})',
                 fontsize=15, fontweight='bold')
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3, linestyle='--')

    fig.tight_layout()
    if output:
        fig.savefig(output, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def load_results(path):
    if os.path.exists(path):
        return dict(np.load(path, allow_pickle=True))
    return None


def main():
    parser = argparse.ArgumentParser(description='Plot benchmark results')
    parser.add_argument('--no-show', action='store_true',
                        help='Only save the figures')
    args = parser.parse_args()
    show = not args.no_show

    data_gs = load_results(GRID_SIZE_FILE)
    data_hz = load_results(HORIZON_FILE)
    data_an = load_results(ANIMATION_FILE)

    if data_gs is not None:
        plot_grid_size(data_gs, show=show)

    if data_hz is not None:
        plot_horizon(data_hz, show=show)

    if data_an is not None:
        plot_animation(data_an, show=show)

    if data_gs is None and data_hz is None and data_an is None:
        print("No benchmark data found. Run benchmark_scalability.py first.")
        sys.exit(1)


if __name__ == '__main__':
    main()
