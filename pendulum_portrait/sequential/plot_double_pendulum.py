"""Plot a single fixed-step double pendulum trajectory: angles, energy drift, phase space"""

import argparse

import numpy as np
import matplotlib.pyplot as plt

from pendulum_portrait.config import TIME_STEP
from pendulum_portrait.sequential.rk4_double_pendulum import DoublePendulumRK4


def plot_trajectory(integrator, output=None, show=True):
    states = integrator.get_states_array()
    energies = np.asarray(integrator.energies)

    fig, axes = plt.subplots(3, 1, figsize=(10, 15))

    # Plot 1: Both angles vs time
    ax = axes[0]
    ax.plot(integrator.time, states[:, 0], linewidth=2.5, color='#1f77b4', label='θ₁')
    ax.plot(integrator.time, states[:, 1], linewidth=2.5, color='#ff7f0e', label='θ₂')
    ax.set_xlabel('Time (s)', fontsize=14)
    ax.set_ylabel('Angle (rad)', fontsize=14)
    ax.set_title('Double Pendulum Angles Over Time', fontsize=15, fontweight='bold')
    ax.legend(fontsize=12, loc='best')
    ax.grid(True, alpha=0.3, linestyle='--')

    # Plot 2: Energy drift of the fixed-step integrator
    ax = axes[1]
    ax.semilogy(integrator.time, np.maximum(np.abs(energies - energies[0]), 1e-16),
                linewidth=2.5, color='#d62728')
    ax.set_xlabel('Time (s)', fontsize=14)
    ax.set_ylabel('|H(t) - H(0)| (J)', fontsize=14)
    ax.set_title(f'Energy Drift (dt = {integrator.dt:.0e}s)', fontsize=15, fontweight='bold')
    ax.grid(True, alpha=0.3, which='both', linestyle='--')

    # Plot 3: Phase space (θ₁ vs θ₂)
    ax = axes[2]
    ax.plot(states[:, 0], states[:, 1], linewidth=1.5, color='#9467bd')
    ax.set_xlabel('θ₁ (rad)', fontsize=14)
    ax.set_ylabel('θ₂ (rad)', fontsize=14)
    ax.set_title('Double Pendulum Phase Space', fontsize=15, fontweight='bold')
    ax.grid(True, alpha=0.3, linestyle='--')

    fig.tight_layout()
    if output:
        fig.savefig(output, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def main():
    parser = argparse.ArgumentParser(description='Plot one RK4 double pendulum trajectory')
    parser.add_argument('--theta1', type=float, default=np.pi / 4, help='Initial θ₁ (rad)')
    parser.add_argument('--theta2', type=float, default=np.pi / 2, help='Initial θ₂ (rad)')
    parser.add_argument('--end-time', type=float, default=10.0, help='Simulation end time (default: 10.0)')
    parser.add_argument('--dt', type=float, default=TIME_STEP, help=f'Step size (default: {TIME_STEP})')
    parser.add_argument('--output', default=None, help='Save the figure to this file')
    args = parser.parse_args()

    integrator = DoublePendulumRK4(
        initial_theta1=args.theta1,
        initial_theta2=args.theta2,
        end_time=args.end_time,
        dt=args.dt,
        dtype=np.float64,
    )
    integrator.run(verbose=True)
    plot_trajectory(integrator, output=args.output)


if __name__ == '__main__':
    main()
