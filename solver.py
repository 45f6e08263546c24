"""
Fixed-step integrators
Advance a first-order system u' = f(t, u) by one step of size dt
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np

Derivative = Callable[[float, np.ndarray], np.ndarray]


class Integrator(Enum):
    EULER = "euler"
    RK4 = "rk4"

    @classmethod
    def parse(cls, value: "Integrator | str") -> "Integrator":
        """Accept a member or a case-insensitive name ('euler', 'rk4', 'runge-kutta')."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        aliases = {
            "euler": cls.EULER,
            "explicit-euler": cls.EULER,
            "rk4": cls.RK4,
            "runge-kutta": cls.RK4,
            "runge-kutta-4": cls.RK4,
            "rungekutta4": cls.RK4,
        }
        if key not in aliases:
            raise ValueError(f"Unknown integrator '{value}'. Use 'euler' or 'rk4'.")
        return aliases[key]

    def next(self) -> "Integrator":
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]

    @property
    def label(self) -> str:
        return "Euler" if self is Integrator.EULER else "Runge-Kutta 4"


def euler_step(derivative: Derivative, u: np.ndarray, dt: float, t: float = 0.0) -> np.ndarray:
    """Explicit Euler: every component moves along its derivative at the start of the step."""
    u = np.asarray(u, dtype=float)
    return u + dt * derivative(t, u)


def rk4_step(derivative: Derivative, u: np.ndarray, dt: float, t: float = 0.0) -> np.ndarray:
    """Classical 4th-order Runge-Kutta step."""
    u = np.asarray(u, dtype=float)
    k1 = derivative(t, u)
    k2 = derivative(t + 0.5 * dt, u + 0.5 * dt * k1)
    k3 = derivative(t + 0.5 * dt, u + 0.5 * dt * k2)
    k4 = derivative(t + dt, u + dt * k3)
    return u + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


_STEPPERS = {
    Integrator.EULER: euler_step,
    Integrator.RK4: rk4_step,
}


def step(
    derivative: Derivative,
    u: np.ndarray,
    dt: float,
    integrator: Integrator | str = Integrator.RK4,
    t: float = 0.0,
) -> np.ndarray:
    """
    Advance ``u`` by one fixed step with the selected integrator.

    No error control is performed: non-finite values produced by a too
    large ``dt`` are returned as they are.
    """
    if dt == 0:
        return np.array(u, dtype=float, copy=True)
    return _STEPPERS[Integrator.parse(integrator)](derivative, u, dt, t)
