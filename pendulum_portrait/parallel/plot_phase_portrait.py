"""
Double Pendulum Phase Portrait: Static Image or Live Animation

Each pixel (x, y) starts at rest from θ₁ = (x/W·2−1)·π, θ₂ = (y/H·2−1)·π and
is coloured by its state after T seconds. The right panel draws the
pendulum of the selected pixel, stepped incrementally alongside the grid.

Usage:
    python -m pendulum_portrait.parallel.plot_phase_portrait --time 5 --output portrait.png
    python -m pendulum_portrait.parallel.plot_phase_portrait --animate --size 256
"""

import argparse
import time

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation

from pendulum_portrait.config import CANVAS_SIZE, TIME_STEP, PhysicalParameters
from pendulum_portrait.encoding import hue_value_colors
from pendulum_portrait.sequential.rk4_double_pendulum import positions_from_state
from pendulum_portrait.session import PortraitSession


def portrait_rgb(session, coloring='encoded'):
    """RGB image of the current frame: raw rgb bytes of the encoding, or hue/value"""
    if coloring == 'encoded':
        return session.image[..., :3]
    return hue_value_colors(session.frame)


def draw_pendulum(ax, state, params):
    ax.clear()
    (x1, y1), (x2, y2) = positions_from_state(state, params)
    reach = params.length1 + params.length2
    # Screen coordinates: y grows downwards
    ax.plot([0.0, x1, x2], [0.0, -y1, -y2], color='#888888', linewidth=2)
    ax.plot([x1], [-y1], 'o', color='#ff6b6b', markersize=10)
    ax.plot([x2], [-y2], 'o', color='#4ecdc4', markersize=10)
    ax.plot([0.0], [0.0], 'o', color='black', markersize=5)
    ax.set_xlim(-1.1 * reach, 1.1 * reach)
    ax.set_ylim(-1.1 * reach, 1.1 * reach)
    ax.set_aspect('equal')
    ax.set_xticks([])
    ax.set_yticks([])


def render_portrait(session, elapsed_time, coloring='encoded', output=None, show=True):
    """Evaluate the grid at elapsed_time and plot it next to the selected pendulum"""
    session.advance(elapsed_time)

    fig, (ax_grid, ax_preview) = plt.subplots(1, 2, figsize=(14, 7),
                                              gridspec_kw={'width_ratios': [2, 1]})
    ax_grid.imshow(portrait_rgb(session, coloring), origin='upper',
                   extent=(-np.pi, np.pi, np.pi, -np.pi), interpolation='nearest')
    ax_grid.set_xlabel('θ₁(0) (rad)', fontsize=14)
    ax_grid.set_ylabel('θ₂(0) (rad)', fontsize=14)
    ax_grid.set_title(f'Phase Portrait at t = {elapsed_time:.2f}s '
                      f'({session.width}x{session.height}, dt = {session.dt:.0e}s)',
                      fontsize=15, fontweight='bold')

    draw_pendulum(ax_preview, session.preview_state(), session.params)
    ax_preview.set_title(f'Pixel {session.selected_pixel}', fontsize=13)

    fig.tight_layout()
    if output:
        fig.savefig(output, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def animate_portrait(session, coloring='encoded', time_scale=1.0, interval=30):
    """Live animation: simulated time follows wall clock time, click selects a pixel, 'r' resets"""
    fig, (ax_grid, ax_preview) = plt.subplots(1, 2, figsize=(14, 7),
                                              gridspec_kw={'width_ratios': [2, 1]})
    session.advance(0.0)
    image = ax_grid.imshow(portrait_rgb(session, coloring), origin='upper', interpolation='nearest')
    ax_grid.set_xticks([])
    ax_grid.set_yticks([])
    clock = {'start': time.perf_counter()}

    def on_click(event):
        if event.inaxes is not ax_grid or event.xdata is None:
            return
        x = int(np.clip(np.floor(event.xdata + 0.5), 0, session.width - 1))
        y = int(np.clip(np.floor(event.ydata + 0.5), 0, session.height - 1))
        session.select_pixel(x, y)

    def on_key(event):
        if event.key == 'r':
            clock['start'] = time.perf_counter()
            session.reset()

    def update(_frame):
        elapsed = (time.perf_counter() - clock['start']) * time_scale
        session.advance(elapsed)
        image.set_data(portrait_rgb(session, coloring))
        ax_grid.set_title(f't = {elapsed:.2f}s', fontsize=14)
        draw_pendulum(ax_preview, session.preview_state(), session.params)
        ax_preview.set_title(f'Pixel {session.selected_pixel}', fontsize=13)
        return (image,)

    fig.canvas.mpl_connect('button_press_event', on_click)
    fig.canvas.mpl_connect('key_press_event', on_key)
    animation = FuncAnimation(fig, update, interval=interval, cache_frame_data=False)
    plt.show()
    return animation


def main():
    parser = argparse.ArgumentParser(description='Render a double pendulum phase portrait')
    parser.add_argument('--size', type=int, default=CANVAS_SIZE,
                        help=f'Grid width and height in pixels (default: {CANVAS_SIZE})')
    parser.add_argument('--time', type=float, default=5.0,
                        help='Simulated time of a static portrait (default: 5.0)')
    parser.add_argument('--dt', type=float, default=TIME_STEP,
                        help=f'RK4 step size (default: {TIME_STEP})')
    parser.add_argument('--mass1', type=float, default=1.0)
    parser.add_argument('--mass2', type=float, default=1.0)
    parser.add_argument('--length1', type=float, default=1.0)
    parser.add_argument('--length2', type=float, default=1.0)
    parser.add_argument('--gravity', type=float, default=9.81)
    parser.add_argument('--coloring', choices=['encoded', 'hue'], default='encoded',
                        help='encoded: raw state bytes as RGB; hue: angle/speed colouring')
    parser.add_argument('--tile-rows', type=int, default=None,
                        help='Grid rows per kernel launch (default: whole grid)')
    parser.add_argument('--animate', action='store_true',
                        help='Open a live animation instead of a static portrait')
    parser.add_argument('--time-scale', type=float, default=1.0,
                        help='Simulated seconds per wall clock second when animating')
    parser.add_argument('--output', default=None, help='Save the static portrait to this file')
    args = parser.parse_args()

    params = PhysicalParameters(mass1=args.mass1, mass2=args.mass2,
                                length1=args.length1, length2=args.length2,
                                gravity=args.gravity)
    session = PortraitSession(args.size, args.size, params=params, dt=args.dt,
                              tile_rows=args.tile_rows)

    if args.animate:
        animate_portrait(session, coloring=args.coloring, time_scale=args.time_scale)
    else:
        render_portrait(session, args.time, coloring=args.coloring,
                        output=args.output, show=args.output is None)
        session.evaluator.print_summary()


if __name__ == '__main__':
    main()
