"""
Pendulum Wave
A row of independent simple pendulums whose lengths grow step by step
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from matplotlib.colors import hsv_to_rgb

from solver import Integrator, step


class PendulumWave:
    def __init__(
        self,
        n_pendulums: int = 9,
        base_length: float = 1.0,
        length_step: float = 0.1,
        amplitude: float = math.pi / 2,
        gravity: float = 9.8,
        damping: float = 0.9999,
        integrator: Integrator | str = Integrator.EULER,
    ):
        if n_pendulums < 1:
            raise ValueError(f"Need at least one pendulum, got {n_pendulums}")
        if not 0 < damping <= 1:
            raise ValueError(f"Damping factor must be in (0, 1], got {damping}")

        self.lengths = base_length + length_step * np.arange(n_pendulums, dtype=float)
        if np.any(self.lengths <= 0):
            raise ValueError("Every pendulum length must be positive")

        self.amplitude = amplitude
        self.gravity = gravity
        self.damping = damping
        self.integrator = Integrator.parse(integrator)

        self.theta = np.full(n_pendulums, amplitude, dtype=float)
        self.omega = np.zeros(n_pendulums)
        self.time = 0.0

    def __len__(self) -> int:
        return self.lengths.size

    def _derivative(self, t: float, u: np.ndarray) -> np.ndarray:
        n = self.lengths.size
        theta, omega = u[:n], u[n:]
        return np.concatenate([omega, -self.gravity / self.lengths * np.sin(theta)])

    def advance(self, dt: float) -> None:
        n = self.lengths.size
        u = step(self._derivative, np.concatenate([self.theta, self.omega]), dt, self.integrator, self.time)
        self.theta = u[:n]
        self.omega = u[n:] * self.damping
        self.time += dt

    def reset(self) -> None:
        self.theta = np.full(self.lengths.size, self.amplitude, dtype=float)
        self.omega = np.zeros(self.lengths.size)
        self.time = 0.0

    @property
    def periods(self) -> np.ndarray:
        """Small-angle period of every pendulum."""
        return 2.0 * np.pi * np.sqrt(self.lengths / self.gravity)

    def positions(self, spacing: float = 0.5) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Pivot x positions and bob (x, y); pivots sit on y = 0, centred on x = 0."""
        pivots = spacing * (np.arange(self.lengths.size) - (self.lengths.size - 1) / 2)
        x = pivots + self.lengths * np.sin(self.theta)
        y = self.lengths * np.cos(self.theta)
        return pivots, x, y

    def colors(self) -> np.ndarray:
        """Distinct RGB colours, evenly spread hues with alternating saturation and value."""
        idx = np.arange(self.lengths.size)
        hsv = np.stack(
            [
                idx / self.lengths.size,
                0.7 + (idx % 3) * 0.15,
                0.8 + (idx % 2) * 0.15,
            ],
            axis=-1,
        )
        return hsv_to_rgb(hsv)
