"""
N-Pendulum Equations of Motion
Lagrangian dynamics of a planar chain of point masses on massless rods
"""

from __future__ import annotations

from typing import Callable

import numpy as np


def mass_coupling(masses: np.ndarray) -> np.ndarray:
    """Mass carried beyond joint max(i, j) for every pair of links."""
    masses = np.asarray(masses, dtype=float)
    # tail[k] = m_k + m_{k+1} + ... + m_{N-1}
    tail = np.cumsum(masses[::-1])[::-1]
    idx = np.arange(masses.size)
    return tail[np.maximum.outer(idx, idx)]


def mass_matrix(theta: np.ndarray, lengths: np.ndarray, masses: np.ndarray) -> np.ndarray:
    """Coupling matrix M(theta) of the chain."""
    theta = np.asarray(theta, dtype=float)
    lengths = np.asarray(lengths, dtype=float)
    delta = theta[:, None] - theta[None, :]
    return mass_coupling(masses) * np.outer(lengths, lengths) * np.cos(delta)


def forcing_vector(
    theta: np.ndarray,
    omega: np.ndarray,
    lengths: np.ndarray,
    masses: np.ndarray,
    gravity: float,
) -> np.ndarray:
    """Gravity and velocity-coupling terms f(theta, omega)."""
    theta = np.asarray(theta, dtype=float)
    omega = np.asarray(omega, dtype=float)
    lengths = np.asarray(lengths, dtype=float)
    masses = np.asarray(masses, dtype=float)

    coupling = mass_coupling(masses) * np.outer(lengths, lengths)
    delta = theta[:, None] - theta[None, :]
    centrifugal = (coupling * np.sin(delta)) @ omega**2
    gravity_term = gravity * lengths * np.cumsum(masses[::-1])[::-1] * np.sin(theta)
    return -centrifugal - gravity_term


def _solve(matrix: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    # A diverged state stays diverged instead of tripping LAPACK
    if not np.all(np.isfinite(matrix)):
        return np.full(rhs.shape, np.nan)
    try:
        return np.linalg.solve(matrix, rhs)
    except np.linalg.LinAlgError:
        solution, *_ = np.linalg.lstsq(matrix, rhs, rcond=None)
        return solution


def angular_accelerations(
    theta: np.ndarray,
    omega: np.ndarray,
    lengths: np.ndarray,
    masses: np.ndarray,
    gravity: float,
) -> np.ndarray:
    """
    Solve M(theta) @ alpha = f(theta, omega) for the angular accelerations.

    Parameters:
    -----------
    theta : array
        Link angles measured from the downward vertical (N,)
    omega : array
        Angular velocities (N,)
    lengths, masses : array
        Per-link rod length and bob mass (N,)
    gravity : float
        Gravitational acceleration

    Returns:
    --------
    alpha : array
        Angular accelerations (N,)
    """
    return _solve(
        mass_matrix(theta, lengths, masses),
        forcing_vector(theta, omega, lengths, masses, gravity),
    )


def build_equations_of_motion(
    lengths: np.ndarray,
    masses: np.ndarray,
    gravity: float,
) -> Callable[[float, np.ndarray], np.ndarray]:
    """
    equations of motion for N-link pendulum.

    The returned callable has the ``f(t, u)`` signature expected by
    ``scipy.integrate.solve_ivp`` with ``u = [theta, omega]``.
    """

    lengths = np.asarray(lengths, dtype=float)
    masses = np.asarray(masses, dtype=float)
    N = lengths.size

    # Constant part of the coupling, precomputed once per parameter set
    coupling = mass_coupling(masses) * np.outer(lengths, lengths)
    gravity_multipliers = gravity * lengths * np.cumsum(masses[::-1])[::-1]

    def equations_of_motion(t: float, u: np.ndarray) -> np.ndarray:
        """Return time derivative of state [theta, omega]."""

        theta = u[:N]
        omega = u[N:]

        delta = theta[:, None] - theta[None, :]
        matrix = coupling * np.cos(delta)

        centrifugal = (coupling * np.sin(delta)) @ omega**2
        rhs = -centrifugal - gravity_multipliers * np.sin(theta)

        return np.concatenate([omega, _solve(matrix, rhs)])

    return equations_of_motion
