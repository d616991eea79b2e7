"""
N-Pendulum Animation
Create visualization and video of the simulation results
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, FFMpegWriter

import sim_config
from kinematics import TraceBuffer, bob_positions

RAINBOW_COLORS = [
    '#EF4444',  # Red
    '#F97316',  # Orange
    '#EAB308',  # Yellow
    '#22C55E',  # Green
    '#3B82F6',  # Blue
    '#6366F1',  # Indigo
    '#8B5CF6',  # Violet
]


def _setup_axes(axis_limit: float, figsize=(9, 9), dpi: int = 100):
    fig = plt.figure(figsize=figsize, dpi=dpi, facecolor='black')
    ax = fig.add_subplot(111)
    ax.set_facecolor('black')
    ax.set_aspect('equal')
    ax.axis('off')
    ax.set_xlim(-axis_limit, axis_limit)
    ax.set_ylim(-axis_limit, axis_limit)
    return fig, ax


class PendulumArtist:
    """
    Plot objects for one chain: rods, bobs and the trace of the last bob.

    Coordinates come in with y growing downward (as produced by
    kinematics.bob_positions) and are flipped for display.
    """

    def __init__(self, ax, count: int, colors: Sequence[str] | None = None,
                 show_rods: bool = True, show_trace: bool = True):
        self.ax = ax
        self.show_rods = show_rods
        self.show_trace = show_trace
        colors = colors or [RAINBOW_COLORS[i % len(RAINBOW_COLORS)] for i in range(count)]

        self.trace, = ax.plot([], [], '-', linewidth=1, color='#facc15', alpha=0.8, zorder=1)
        self.rods, = ax.plot([], [], '-', linewidth=2, color='#94a3b8', zorder=2)
        self.pivot, = ax.plot([0], [0], 'o', markersize=6, color='#cbd5e1', zorder=3)
        self.bobs = [ax.plot([], [], 'o', markersize=8, color=c, zorder=4)[0] for c in colors]

    def artists(self) -> list:
        return [self.trace, self.rods, self.pivot] + self.bobs

    def update(self, x: np.ndarray, y: np.ndarray, trace: TraceBuffer | None = None) -> list:
        """Move the artists to pivot+bob coordinates x, y (length N+1)."""
        if self.show_rods:
            self.rods.set_data(x, -y)
        else:
            self.rods.set_data([], [])
        for k, bob in enumerate(self.bobs):
            bob.set_data([x[k + 1]], [-y[k + 1]])
        if self.show_trace and trace is not None:
            tx, ty = trace.as_arrays()
            self.trace.set_data(tx, -ty)
        else:
            self.trace.set_data([], [])
        return self.artists()


def run_live(
    simulation,
    steps_per_frame: int = 1,
    show_trace: bool = True,
    show_rods: bool = True,
    fps: int = 60,
):
    """
    Animate a PendulumSimulation interactively.

    Each animation tick advances the simulation by `steps_per_frame` integrator
    steps while running. Space toggles pause/resume, 'r' resets to the state the
    simulation had when the window opened.
    """

    params = simulation.params
    initial_state = simulation.state
    axis_limit = max(1.0, float(np.sum(params.lengths)) * 1.1)
    fig, ax = _setup_axes(axis_limit)
    artist = PendulumArtist(ax, params.count, show_rods=show_rods, show_trace=show_trace)
    trace = TraceBuffer(sim_config.MAX_TRACE_POINTS)
    controls = {'running': True}

    def on_key(event):
        if event.key == ' ':
            controls['running'] = not controls['running']
        elif event.key == 'r':
            simulation.reset(initial_state)
            trace.clear()

    def update(frame):
        if controls['running']:
            simulation.advance(steps_per_frame)
        x, y = bob_positions(simulation.state, simulation.params)
        if controls['running'] and simulation.params.count:
            trace.append(x[-1], y[-1])
        return artist.update(x, y, trace)

    fig.canvas.mpl_connect('key_press_event', on_key)
    anim = FuncAnimation(fig, update, interval=1000 / fps, blit=True, cache_frame_data=False)
    print("Space: pause/resume, r: reset (close window to exit)")
    plt.show()
    plt.close(fig)
    return anim


def animate_pendulum(
    results_file: str = sim_config.RESULTS_FILE,
    save_video: bool = True,
    video_filename: str = 'pendulum_animation.mp4',
    playback_speed: float = 1.0,
):
    """
    Create animation of N-pendulum simulation.

    Parameters
    ----------
    results_file : str
        .npz file written by simulator.simulate_pendulum.
    save_video : bool
        Whether to save animation as video.
    video_filename : str
        Output video filename.
    playback_speed : float
        Relative playback multiplier (>1 faster, <1 slower).
    """

    print("Loading simulation results...")
    try:
        data = np.load(results_file)
        t = data['t']
        x = data['x']
        y = data['y']
        N = int(data['N'])
        M = int(data['M'])
    except FileNotFoundError:
        print(f"Error: {results_file} not found. Please run simulator.py first.")
        return

    Frame = len(t)
    axis_limit = max(1.0, float(np.max(np.abs(np.concatenate([x.ravel(), y.ravel()])))) * 1.1)

    playback_speed = max(playback_speed, 1e-3)
    base_fps = 1.0 / (t[1] - t[0]) if Frame > 1 else 60
    render_fps = max(1, int(round(base_fps * playback_speed)))
    actual_speed = render_fps / base_fps
    print(f"Loaded {Frame} frames for {M} pendulums with {N} segments")

    dpi = 100
    fig, ax = _setup_axes(axis_limit, figsize=(16, 9), dpi=dpi)
    ax.set_xlim(-axis_limit * 16 / 9, axis_limit * 16 / 9)
    pendulums = [
        PendulumArtist(ax, N, colors=['yellow'] * N, show_trace=False)
        for _ in range(M)
    ]

    def init():
        """Initialize animation"""
        empty = np.zeros(N + 1)
        artists = []
        for pendulum in pendulums:
            artists += pendulum.update(empty, empty)
        return artists

    def update(frame):
        """Update animation frame"""
        artists = []
        for k, pendulum in enumerate(pendulums):
            artists += pendulum.update(x[frame, :, k], y[frame, :, k])

        if (frame + 1) % 30 == 0:
            progress = 100 * (frame + 1) / Frame
            print(f'Animating: {progress:.1f}%', end='\r')

        return artists

    print(f"Creating animation at {render_fps} fps (~{actual_speed:.2f}x speed)...")
    anim = FuncAnimation(
        fig,
        update,
        frames=Frame,
        init_func=init,
        blit=True,
        interval=1000 / render_fps,
    )

    if save_video:
        print(f"Saving video to {video_filename}...")
        writer = FFMpegWriter(fps=render_fps, bitrate=5000, extra_args=['-vcodec', 'libx264'])
        anim.save(video_filename, writer=writer, dpi=dpi)
        print("Video saved successfully!")
    else:
        print("Displaying animation (close window to exit)...")
        plt.show()

    plt.close()


if __name__ == '__main__':
    # Create animation and save as video
    animate_pendulum(save_video=True, video_filename='triple_pendulum_100.mp4')
