"""
Pendulum Animation
Interactive matplotlib render loops for the three demos

Keys: space pauses, r resets, i switches integrator; the N-pendulum view
also takes up/down to change the number of links and the single pendulum
view takes p to cycle presets.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, FFMpegWriter

from pendulum import MAX_LINKS, Link, Pendulum, PendulumParameters, PendulumState
from pendulum_wave import PendulumWave
from single_pendulum import PRESETS, SinglePendulum

HISTORY_SECONDS = 60.0
HISTORY_SAMPLES = 1024
DEFAULT_INITIAL_ANGLES = (0.7, 0.4, -0.3)

# Keys handled by the views; matplotlib binds some of them to navigation
_VIEW_KEYS = (' ', 'r', 'i', 'p', 'up', 'down')


def _release_default_keymap() -> None:
    for name in [k for k in plt.rcParams if k.startswith('keymap.')]:
        plt.rcParams[name] = [k for k in plt.rcParams[name] if k not in _VIEW_KEYS]


def _dark_axes(ax) -> None:
    ax.set_facecolor('black')
    for spine in ax.spines.values():
        spine.set_color('gray')
    ax.tick_params(colors='gray')


class _AnimatedView:
    """Frame loop shared by the demos: advance, then redraw."""

    title = ''

    def __init__(self, dt: float, steps_per_frame: int, fps: int):
        if dt <= 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        if steps_per_frame < 1:
            raise ValueError(f"Need at least one step per frame, got {steps_per_frame}")
        if fps <= 0:
            raise ValueError(f"Frame rate must be positive, got {fps}")

        self.dt = dt
        self.steps_per_frame = steps_per_frame
        self.fps = fps
        self.paused = False
        self.animation = None

        _release_default_keymap()
        dpi = 100
        self.dpi = dpi
        self.fig = plt.figure(figsize=(16, 9), dpi=dpi, facecolor='black')
        self.fig.canvas.mpl_connect('key_press_event', self.on_key)

    def advance(self) -> None:
        raise NotImplementedError

    def draw(self) -> list:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError

    def toggle_integrator(self) -> None:
        raise NotImplementedError

    def on_key(self, event) -> None:
        if event.key == ' ':
            self.paused = not self.paused
            print("Paused" if self.paused else "Resumed")
        elif event.key == 'r':
            self.reset()
            print("Reset")
        elif event.key == 'i':
            self.toggle_integrator()

    def update(self, frame):
        """Update animation frame"""
        if not self.paused:
            self.advance()
        return self.draw()

    def run(
        self,
        save_video: bool = False,
        video_filename: str = 'pendulum_animation.mp4',
        duration: float = 30.0,
    ) -> FuncAnimation:
        """
        Start the render loop.

        Parameters
        ----------
        save_video : bool
            Render ``duration`` seconds to ``video_filename`` instead of
            opening an interactive window.
        video_filename : str
            Output video filename.
        duration : float
            Length of the exported video in seconds.
        """
        frames = max(1, int(round(duration * self.fps))) if save_video else None
        self.animation = FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            init_func=self.draw,
            blit=False,
            interval=1000 / self.fps,
            cache_frame_data=False,
        )

        if save_video:
            print(f"Saving video to {video_filename}...")
            writer = FFMpegWriter(fps=self.fps, bitrate=5000, extra_args=['-vcodec', 'libx264'])
            self.animation.save(video_filename, writer=writer, dpi=self.dpi)
            print("Video saved successfully!")
            plt.close(self.fig)
        else:
            print("Displaying animation (close window to exit)...")
            plt.show()
        return self.animation


class NPendulumView(_AnimatedView):
    """Chain drawing on the left, per-link angle history on the right."""

    title = 'N-Pendulum Simulator'

    def __init__(
        self,
        pendulum: Pendulum,
        dt: float = 0.005,
        steps_per_frame: int = 3,
        fps: int = 60,
    ):
        super().__init__(dt, steps_per_frame, fps)
        self.pendulum = pendulum
        self._diverged_reported = False

        grid = self.fig.add_gridspec(1, 2, width_ratios=(3, 2))
        self.ax = self.fig.add_subplot(grid[0, 0])
        self.ax.set_facecolor('black')
        self.ax.set_aspect('equal')
        self.ax.axis('off')
        self.history_ax = self.fig.add_subplot(grid[0, 1])
        _dark_axes(self.history_ax)
        self.history_ax.set_xlabel('time (s)', color='gray')
        self.history_ax.set_ylabel('angle (rad)', color='gray')

        self.title_text = self.ax.text(0.02, 0.98, '', transform=self.ax.transAxes,
                                       color='white', va='top', family='monospace')
        self.origin_point, = self.ax.plot([0], [0], 'o', markersize=6, color='red', zorder=3)
        self.rods, = self.ax.plot([], [], '-', linewidth=2, color='white', zorder=1)
        self.bobs, = self.ax.plot([], [], 'o', markersize=10, color='yellow', zorder=2)
        self.history_lines: List = []
        self.histories: List[Deque[Tuple[float, float]]] = []
        self._rebuild_artists()

    def _rebuild_artists(self) -> None:
        for line in self.history_lines:
            line.remove()
        n = self.pendulum.n_links
        colors = plt.cm.viridis(np.linspace(0.2, 0.9, n))
        self.history_lines = [
            self.history_ax.plot([], [], '-', linewidth=1, color=colors[k], label=f'Link #{k + 1}')[0]
            for k in range(n)
        ]
        self.history_ax.legend(loc='upper right', facecolor='black', labelcolor='white', fontsize=8)
        self.histories = [deque(maxlen=HISTORY_SAMPLES) for _ in range(n)]

        reach = float(np.sum(self.pendulum.parameters.lengths)) * 1.1
        self.ax.set_xlim(-reach, reach)
        # y grows downward
        self.ax.set_ylim(reach, -0.25 * reach)

    def push_histories(self) -> None:
        t = self.pendulum.time
        for history, angle in zip(self.histories, self.pendulum.angles):
            history.append((t, float(angle)))
            while history and t - history[0][0] > HISTORY_SECONDS:
                history.popleft()

    def advance(self) -> None:
        for _ in range(self.steps_per_frame):
            self.pendulum.advance(self.dt)
        self.push_histories()

        if self.pendulum.has_diverged and not self._diverged_reported:
            print("Warning: simulation diverged (non-finite state); press r to reset")
            self._diverged_reported = True

    def draw(self) -> list:
        x, y = self.pendulum.positions()
        self.rods.set_data(x, y)
        self.bobs.set_data(x[1:], y[1:])

        for line, history in zip(self.history_lines, self.histories):
            if history:
                t, angle = zip(*history)
                line.set_data(t, angle)
        if any(self.histories):
            self.history_ax.relim()
            self.history_ax.autoscale_view()

        state = 'paused' if self.paused else 'running'
        self.title_text.set_text(
            f'{self.title}  N={self.pendulum.n_links}  {self.pendulum.integrator.label}  '
            f't={self.pendulum.time:6.2f}s  E={self.pendulum.energy():8.3f}J  [{state}]'
        )
        return [self.origin_point, self.rods, self.bobs, self.title_text] + self.history_lines

    def set_links(self, n: int) -> None:
        """Rebuild parameters and state for ``n`` links, keeping the existing links."""
        n = int(np.clip(n, 1, MAX_LINKS))
        if n == self.pendulum.n_links:
            return
        links = list(self.pendulum.parameters.links[:n])
        links += [Link() for _ in range(n - len(links))]
        parameters = PendulumParameters(tuple(links), self.pendulum.parameters.gravity)

        angles = np.zeros(n)
        defaults = DEFAULT_INITIAL_ANGLES[:n]
        angles[:len(defaults)] = defaults
        self.pendulum = Pendulum(parameters, PendulumState(angles), self.pendulum.integrator)
        self._diverged_reported = False
        self._rebuild_artists()
        print(f"Links: {n}")

    def reset(self) -> None:
        self.pendulum.reset()
        self._diverged_reported = False
        for history in self.histories:
            history.clear()

    def toggle_integrator(self) -> None:
        self.pendulum.integrator = self.pendulum.integrator.next()
        print(f"Integrator: {self.pendulum.integrator.label}")

    def on_key(self, event) -> None:
        if event.key == 'up':
            self.set_links(self.pendulum.n_links + 1)
        elif event.key == 'down':
            self.set_links(self.pendulum.n_links - 1)
        else:
            super().on_key(event)


class SinglePendulumView(_AnimatedView):
    """Pendulum drawing with its energy and angle traces."""

    title = 'Pendulum Simulator'

    def __init__(self, pendulum: SinglePendulum, fps: int = 60, plot_seconds: float = 10.0):
        # SinglePendulum sub-steps internally
        super().__init__(1.0 / fps, 1, fps)
        self.pendulum = pendulum
        self.plot_seconds = plot_seconds

        grid = self.fig.add_gridspec(2, 2, width_ratios=(1, 1))
        self.ax = self.fig.add_subplot(grid[:, 0])
        self.ax.set_facecolor('black')
        self.ax.set_aspect('equal')
        self.ax.axis('off')
        self.angle_ax = self.fig.add_subplot(grid[0, 1])
        self.phase_ax = self.fig.add_subplot(grid[1, 1])
        for ax in (self.angle_ax, self.phase_ax):
            _dark_axes(ax)
        self.angle_ax.set_ylabel('angle (deg)', color='gray')
        self.phase_ax.set_xlabel('angle (deg)', color='gray')
        self.phase_ax.set_ylabel('velocity (deg/s)', color='gray')

        self.info_text = self.ax.text(0.02, 0.98, '', transform=self.ax.transAxes,
                                      color='white', va='top', family='monospace')
        self.ax.plot([0], [0], 'o', markersize=6, color='lightgray', zorder=3)
        self.rod, = self.ax.plot([], [], '-', linewidth=3, color='royalblue', zorder=1)
        self.bob, = self.ax.plot([], [], 'o', markersize=18, color='indianred', zorder=2)
        self.angle_line, = self.angle_ax.plot([], [], '-', color='royalblue')
        self.phase_line, = self.phase_ax.plot([], [], '-', color='mediumseagreen')
        self._set_limits()

    def _set_limits(self) -> None:
        reach = self.pendulum.length * 1.2
        self.ax.set_xlim(-reach, reach)
        self.ax.set_ylim(reach, -reach)

    def advance(self) -> None:
        self.pendulum.advance(self.dt)

    def draw(self) -> list:
        self.pendulum.clamp_parameters()
        x, y = self.pendulum.position()
        self.rod.set_data([0, x], [0, y])
        self.bob.set_data([x], [y])

        window = [s for s in self.pendulum.history if s[0] >= self.pendulum.time - self.plot_seconds]
        if len(window) >= 2:
            t, theta, omega = (np.array(v) for v in zip(*window))
            self.angle_line.set_data(t, theta)
            self.phase_line.set_data(theta, omega)
            for ax in (self.angle_ax, self.phase_ax):
                ax.relim()
                ax.autoscale_view()

        _, _, energy = self.pendulum.energy()
        self.info_text.set_text(
            f'L:{self.pendulum.length:.2f}m  theta:{np.degrees(self.pendulum.theta):.1f}deg  '
            f'omega:{np.degrees(self.pendulum.omega):.1f}deg/s  T:{self.pendulum.period:.2f}s  '
            f'E:{energy:.2f}J  {self.pendulum.integrator.label}'
            f'  preset:{self.pendulum.preset_name or "custom"}'
        )
        return [self.rod, self.bob, self.angle_line, self.phase_line, self.info_text]

    def reset(self) -> None:
        self.pendulum.reset()
        self._set_limits()

    def toggle_integrator(self) -> None:
        self.pendulum.integrator = self.pendulum.integrator.next()
        print(f"Integrator: {self.pendulum.integrator.label}")

    def next_preset(self) -> None:
        names = [p.name for p in PRESETS]
        if self.pendulum.preset_name in names:
            index = (names.index(self.pendulum.preset_name) + 1) % len(PRESETS)
        else:
            index = 0
        chosen = self.pendulum.apply_preset(index)
        self._set_limits()
        print(f"Preset: {chosen.name}")

    def on_key(self, event) -> None:
        if event.key == 'p':
            self.next_preset()
        else:
            super().on_key(event)


class PendulumWaveView(_AnimatedView):
    """Row of pendulums above the recent angle trace of each one."""

    title = 'Pendulum Wave'

    def __init__(self, wave: PendulumWave, fps: int = 60, spacing: float = 0.5, trace_seconds: float = 10.0):
        super().__init__(1.0 / fps, 1, fps)
        self.wave = wave
        self.spacing = spacing
        self.trace_seconds = trace_seconds

        grid = self.fig.add_gridspec(2, 1, height_ratios=(3, 1))
        self.ax = self.fig.add_subplot(grid[0, 0])
        self.ax.set_facecolor('black')
        self.ax.set_aspect('equal')
        self.ax.axis('off')
        self.wave_ax = self.fig.add_subplot(grid[1, 0])
        _dark_axes(self.wave_ax)
        reach = max(abs(wave.amplitude), 0.1) * 1.1
        self.wave_ax.set_ylim(-reach, reach)
        self.wave_ax.set_xlim(0, trace_seconds)
        self.wave_ax.set_xlabel('time (s)', color='gray')
        self.wave_ax.set_ylabel('angle (rad)', color='gray')

        pivots, _, _ = wave.positions(spacing)
        half_width = (pivots[-1] - pivots[0]) / 2 + float(wave.lengths.max()) + spacing
        self.ax.set_xlim(-half_width, half_width)
        self.ax.set_ylim(float(wave.lengths.max()) * 1.15, -0.2)
        self.ax.plot([pivots[0] - spacing / 2, pivots[-1] + spacing / 2], [0, 0],
                     '-', linewidth=6, color='saddlebrown')

        colors = wave.colors()
        self.strings = [self.ax.plot([], [], '-', linewidth=1.5, color=c)[0] for c in colors]
        self.bobs = [self.ax.plot([], [], 'o', markersize=12, color=c)[0] for c in colors]
        self.waves = [self.wave_ax.plot([], [], '-', linewidth=1.5, color=c)[0] for c in colors]
        self.time_text = self.ax.text(0.02, 0.98, '', transform=self.ax.transAxes,
                                      color='white', va='top', family='monospace')
        self.histories: List[Deque[Tuple[float, float]]] = [deque() for _ in range(len(wave))]

    def push_histories(self) -> None:
        t = self.wave.time
        for history, angle in zip(self.histories, self.wave.theta):
            history.append((t, float(angle)))
            while t - history[0][0] > self.trace_seconds:
                history.popleft()

    def advance(self) -> None:
        self.wave.advance(self.dt)
        self.push_histories()

    def draw(self) -> list:
        pivots, x, y = self.wave.positions(self.spacing)
        for k, (string, bob) in enumerate(zip(self.strings, self.bobs)):
            string.set_data([pivots[k], x[k]], [0, y[k]])
            bob.set_data([x[k]], [y[k]])

        for line, history in zip(self.waves, self.histories):
            if history:
                t, angle = zip(*history)
                line.set_data(t, angle)
        start = max(0.0, self.wave.time - self.trace_seconds)
        self.wave_ax.set_xlim(start, start + self.trace_seconds)

        self.time_text.set_text(
            f'{self.title}  t={self.wave.time:6.2f}s  {self.wave.integrator.label}'
            f'{"  [paused]" if self.paused else ""}'
        )
        return self.strings + self.bobs + self.waves + [self.time_text]

    def reset(self) -> None:
        self.wave.reset()
        for history in self.histories:
            history.clear()

    def toggle_integrator(self) -> None:
        self.wave.integrator = self.wave.integrator.next()
        print(f"Integrator: {self.wave.integrator.label}")


def animate_pendulum(
    pendulum: Pendulum,
    dt: float = 0.005,
    steps_per_frame: int = 3,
    fps: int = 60,
    save_video: bool = False,
    video_filename: str = 'n_pendulum.mp4',
    duration: float = 30.0,
) -> FuncAnimation:
    """Create animation of an N-pendulum simulation."""
    view = NPendulumView(pendulum, dt=dt, steps_per_frame=steps_per_frame, fps=fps)
    return view.run(save_video=save_video, video_filename=video_filename, duration=duration)


def animate_single_pendulum(
    pendulum: SinglePendulum,
    fps: int = 60,
    save_video: bool = False,
    video_filename: str = 'single_pendulum.mp4',
    duration: float = 30.0,
) -> FuncAnimation:
    view = SinglePendulumView(pendulum, fps=fps)
    return view.run(save_video=save_video, video_filename=video_filename, duration=duration)


def animate_pendulum_wave(
    wave: PendulumWave,
    fps: int = 60,
    save_video: bool = False,
    video_filename: str = 'pendulum_wave.mp4',
    duration: float = 30.0,
) -> FuncAnimation:
    view = PendulumWaveView(wave, fps=fps)
    return view.run(save_video=save_video, video_filename=video_filename, duration=duration)


if __name__ == '__main__':
    animate_pendulum(
        Pendulum(
            PendulumParameters.uniform(3),
            PendulumState(DEFAULT_INITIAL_ANGLES),
        )
    )
