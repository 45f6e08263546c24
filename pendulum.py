"""
N-Pendulum Model
Physical parameters and dynamic state of an N-link pendulum
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from equations import angular_accelerations, build_equations_of_motion
from kinematics import link_positions, link_velocities
from solver import Integrator, step

DEFAULT_GRAVITY = 9.81
MAX_LINKS = 7  # upper bound of the interactive demo, not of the model


@dataclass(frozen=True)
class Link:
    """One rigid rod of length ``length`` ending in a point mass ``mass``."""

    length: float = 1.0
    mass: float = 1.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.length) and self.length > 0):
            raise ValueError(f"Link length must be positive, got {self.length}")
        if not (math.isfinite(self.mass) and self.mass > 0):
            raise ValueError(f"Link mass must be positive, got {self.mass}")


@dataclass(frozen=True)
class PendulumParameters:
    links: Tuple[Link, ...]
    gravity: float = DEFAULT_GRAVITY

    def __post_init__(self) -> None:
        links = tuple(self.links)
        if len(links) < 1:
            raise ValueError("A pendulum needs at least one link")
        for link in links:
            if not isinstance(link, Link):
                raise ValueError(f"Expected Link records, got {type(link).__name__}")
        if not math.isfinite(self.gravity):
            raise ValueError(f"Gravity must be finite, got {self.gravity}")
        object.__setattr__(self, "links", links)

    @classmethod
    def uniform(
        cls,
        n: int,
        length: float = 1.0,
        mass: float = 1.0,
        gravity: float = DEFAULT_GRAVITY,
    ) -> "PendulumParameters":
        if n < 1:
            raise ValueError(f"Number of links must be at least 1, got {n}")
        return cls(tuple(Link(length, mass) for _ in range(n)), gravity)

    @classmethod
    def from_arrays(
        cls,
        lengths: Sequence[float],
        masses: Sequence[float],
        gravity: float = DEFAULT_GRAVITY,
    ) -> "PendulumParameters":
        lengths = list(lengths)
        masses = list(masses)
        if len(lengths) != len(masses):
            raise ValueError(
                f"Got {len(lengths)} lengths but {len(masses)} masses"
            )
        return cls(tuple(Link(float(l), float(m)) for l, m in zip(lengths, masses)), gravity)

    def __len__(self) -> int:
        return len(self.links)

    @property
    def n_links(self) -> int:
        return len(self.links)

    @property
    def lengths(self) -> np.ndarray:
        lengths = np.array([link.length for link in self.links], dtype=float)
        lengths.flags.writeable = False
        return lengths

    @property
    def masses(self) -> np.ndarray:
        masses = np.array([link.mass for link in self.links], dtype=float)
        masses.flags.writeable = False
        return masses


@dataclass(frozen=True)
class LinkState:
    angle: float
    angular_velocity: float


class PendulumState:
    """Angles and angular velocities of every link, updated in place by the solver."""

    def __init__(self, angles: Iterable[float], angular_velocities: Iterable[float] | None = None):
        self.angles = np.array(list(angles), dtype=float)
        if angular_velocities is None:
            self.angular_velocities = np.zeros_like(self.angles)
        else:
            self.angular_velocities = np.array(list(angular_velocities), dtype=float)

        if self.angles.ndim != 1 or self.angles.size < 1:
            raise ValueError("State needs at least one link angle")
        if self.angular_velocities.shape != self.angles.shape:
            raise ValueError(
                f"Got {self.angles.size} angles but {self.angular_velocities.size} angular velocities"
            )

    @classmethod
    def at_rest(cls, n: int) -> "PendulumState":
        return cls(np.zeros(n))

    @classmethod
    def from_vector(cls, u: np.ndarray) -> "PendulumState":
        u = np.asarray(u, dtype=float)
        n = u.size // 2
        return cls(u[:n], u[n:])

    def __len__(self) -> int:
        return self.angles.size

    def __repr__(self) -> str:
        return f"PendulumState(angles={self.angles.tolist()}, angular_velocities={self.angular_velocities.tolist()})"

    @property
    def links(self) -> list[LinkState]:
        return [LinkState(float(a), float(w)) for a, w in zip(self.angles, self.angular_velocities)]

    def as_vector(self) -> np.ndarray:
        return np.concatenate([self.angles, self.angular_velocities])

    def copy(self) -> "PendulumState":
        return PendulumState(self.angles.copy(), self.angular_velocities.copy())


class Pendulum:
    """
    N-link pendulum simulation.

    Owns its state exclusively; ``advance`` is the only mutating operation
    besides ``reset``.
    """

    def __init__(
        self,
        parameters: PendulumParameters,
        state: PendulumState | None = None,
        integrator: Integrator | str = Integrator.RK4,
    ):
        if state is None:
            state = PendulumState.at_rest(parameters.n_links)
        if len(state) != parameters.n_links:
            raise ValueError(
                f"State has {len(state)} links but parameters describe {parameters.n_links}"
            )

        self._parameters = parameters
        self._state = state.copy()
        self._initial_state = state.copy()
        self._lengths = parameters.lengths
        self._masses = parameters.masses
        self._equations = build_equations_of_motion(self._lengths, self._masses, parameters.gravity)
        self.integrator = Integrator.parse(integrator)
        self.time = 0.0

    @property
    def parameters(self) -> PendulumParameters:
        return self._parameters

    @property
    def state(self) -> PendulumState:
        return self._state

    @property
    def n_links(self) -> int:
        return self._parameters.n_links

    @property
    def angles(self) -> np.ndarray:
        return self._state.angles

    @property
    def angular_velocities(self) -> np.ndarray:
        return self._state.angular_velocities

    @property
    def has_diverged(self) -> bool:
        return not bool(np.all(np.isfinite(self._state.as_vector())))

    def advance(self, dt: float) -> None:
        """Move the state forward by one fixed step ``dt``."""
        u = step(self._equations, self._state.as_vector(), dt, self.integrator, self.time)
        n = self.n_links
        self._state.angles[:] = u[:n]
        self._state.angular_velocities[:] = u[n:]
        self.time += dt

    def reset(self, state: PendulumState | None = None) -> None:
        if state is None:
            state = self._initial_state
        if len(state) != self.n_links:
            raise ValueError(
                f"State has {len(state)} links but parameters describe {self.n_links}"
            )
        self._state = state.copy()
        self.time = 0.0

    def accelerations(self) -> np.ndarray:
        return angular_accelerations(
            self._state.angles,
            self._state.angular_velocities,
            self._lengths,
            self._masses,
            self._parameters.gravity,
        )

    def positions(self, origin: Tuple[float, float] = (0.0, 0.0)) -> Tuple[np.ndarray, np.ndarray]:
        """Pivot and bob coordinates, each of length N+1."""
        return link_positions(self._state.angles, self._lengths, origin)

    def kinetic_energy(self) -> float:
        vx, vy = link_velocities(self._state.angles, self._state.angular_velocities, self._lengths)
        return float(0.5 * np.sum(self._masses * (vx**2 + vy**2)))

    def potential_energy(self) -> float:
        # Pivot is the zero level; y grows downward
        _, y = link_positions(self._state.angles, self._lengths)
        return float(-self._parameters.gravity * np.sum(self._masses * y[1:]))

    def energy(self) -> float:
        return self.kinetic_energy() + self.potential_energy()
