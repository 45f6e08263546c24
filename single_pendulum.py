"""
Single Pendulum
Damped simple pendulum with presets and a bounded sample history
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Tuple

import numpy as np

from pendulum import DEFAULT_GRAVITY
from solver import Integrator, step

MAX_SUBSTEP = 0.005
SAMPLE_DT = 1.0 / 60.0
HISTORY_CAPACITY = 4096

# (low, high) bounds applied on construction and before every advance
LENGTH_RANGE = (0.1, 10.0)
MASS_RANGE = (0.1, 10.0)
DRAG_RANGE = (0.0, 2.0)
GRAVITY_RANGE = (0.1, 20.0)


@dataclass(frozen=True)
class Preset:
    name: str
    length: float
    mass: float
    drag: float
    gravity: float
    initial_angle: float  # degrees


PRESETS = (
    Preset("Simple", length=1.0, mass=1.0, drag=0.0, gravity=DEFAULT_GRAVITY, initial_angle=45.0),
    Preset("Damped", length=1.0, mass=1.0, drag=0.45, gravity=DEFAULT_GRAVITY, initial_angle=30.0),
    Preset("Long", length=2.0, mass=0.6, drag=0.08, gravity=DEFAULT_GRAVITY, initial_angle=60.0),
)


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    return min(max(value, bounds[0]), bounds[1])


class SinglePendulum:
    """
    Rod of length ``length`` with a bob of mass ``mass`` under linear drag.

    ``alpha = -(g / L) sin(theta) - (b / m) omega``
    """

    def __init__(
        self,
        length: float = 1.0,
        mass: float = 1.0,
        drag: float = 0.0,
        gravity: float = DEFAULT_GRAVITY,
        angle: float = 0.35,
        angular_velocity: float = 0.0,
        integrator: Integrator | str = Integrator.RK4,
    ):
        if length <= 0:
            raise ValueError(f"Length must be positive, got {length}")
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        if drag < 0:
            raise ValueError(f"Drag must be non-negative, got {drag}")

        self.length = length
        self.mass = mass
        self.drag = drag
        self.gravity = gravity
        self.integrator = Integrator.parse(integrator)

        self.initial_angle = angle
        self.theta = angle
        self.omega = angular_velocity
        self.time = 0.0
        self.preset_name: str | None = None

        # (time, theta in degrees, omega in degrees per second)
        self.history: Deque[Tuple[float, float, float]] = deque(maxlen=HISTORY_CAPACITY)
        self._sample_accum = 0.0
        self.clamp_parameters()

    def clamp_parameters(self) -> None:
        self.length = _clamp(self.length, LENGTH_RANGE)
        self.mass = _clamp(self.mass, MASS_RANGE)
        self.drag = _clamp(self.drag, DRAG_RANGE)
        self.gravity = _clamp(self.gravity, GRAVITY_RANGE)

    def _derivative(self, t: float, u: np.ndarray) -> np.ndarray:
        theta, omega = u
        alpha = -(self.gravity / self.length) * np.sin(theta) - (self.drag / self.mass) * omega
        return np.array([omega, alpha])

    def advance(self, dt: float) -> None:
        """Advance by ``dt`` in sub-steps no larger than MAX_SUBSTEP."""
        self.clamp_parameters()
        remaining = dt
        while remaining > 0:
            h = min(remaining, MAX_SUBSTEP)
            u = step(self._derivative, np.array([self.theta, self.omega]), h, self.integrator, self.time)
            self.theta, self.omega = float(u[0]), float(u[1])
            self.time += h
            remaining -= h

            self._sample_accum += h
            if self._sample_accum >= SAMPLE_DT:
                self.push_history()
                self._sample_accum -= SAMPLE_DT

    def push_history(self) -> None:
        self.history.append((self.time, math.degrees(self.theta), math.degrees(self.omega)))

    def energy(self) -> Tuple[float, float, float]:
        """(potential, kinetic, total), potential measured from the lowest point."""
        potential = self.mass * self.gravity * self.length * (1.0 - math.cos(self.theta))
        kinetic = 0.5 * self.mass * (self.length * self.omega) ** 2
        return potential, kinetic, potential + kinetic

    @property
    def period(self) -> float:
        """Small-angle period."""
        return 2.0 * math.pi * math.sqrt(self.length / self.gravity)

    def position(self, origin: Tuple[float, float] = (0.0, 0.0)) -> Tuple[float, float]:
        return (
            origin[0] + self.length * math.sin(self.theta),
            origin[1] + self.length * math.cos(self.theta),
        )

    def reset(self) -> None:
        self.theta = self.initial_angle
        self.omega = 0.0
        self.time = 0.0
        self._sample_accum = 0.0
        self.history.clear()

    def apply_preset(self, preset: int | str) -> Preset:
        if isinstance(preset, str):
            by_name = {p.name.lower(): p for p in PRESETS}
            if preset.lower() not in by_name:
                raise KeyError(f"Unknown preset '{preset}'")
            chosen = by_name[preset.lower()]
        else:
            chosen = PRESETS[preset]

        self.length = chosen.length
        self.mass = chosen.mass
        self.drag = chosen.drag
        self.gravity = chosen.gravity
        self.initial_angle = math.radians(chosen.initial_angle)
        self.preset_name = chosen.name
        self.reset()
        return chosen
