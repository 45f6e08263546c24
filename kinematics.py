"""
Angle to Cartesian conversion for pendulum chains

Angles are measured from the downward vertical, y grows downward and the
pivot sits at the origin unless told otherwise.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def link_positions(
    angles: np.ndarray,
    lengths: np.ndarray,
    origin: Tuple[float, float] = (0.0, 0.0),
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert link angles to the positions of the pivot and every bob.

    Parameters:
    -----------
    angles : array
        Link angles, shape (N,) for one state or (Frame, N) for a trajectory
    lengths : array
        Rod lengths (N,)
    origin : tuple
        Pivot coordinates

    Returns:
    --------
    x, y : array
        Coordinates including the pivot, shape (..., N+1)
    """
    angles = np.asarray(angles, dtype=float)
    lengths = np.asarray(lengths, dtype=float)
    if angles.shape[-1] != lengths.size:
        raise ValueError(
            f"Got {angles.shape[-1]} angles for {lengths.size} links"
        )

    pad = [(0, 0)] * (angles.ndim - 1) + [(1, 0)]
    x = origin[0] + np.pad(np.cumsum(lengths * np.sin(angles), axis=-1), pad)
    y = origin[1] + np.pad(np.cumsum(lengths * np.cos(angles), axis=-1), pad)
    return x, y


def link_velocities(
    angles: np.ndarray,
    angular_velocities: np.ndarray,
    lengths: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Cartesian velocity of every bob, shape (..., N)."""
    angles = np.asarray(angles, dtype=float)
    angular_velocities = np.asarray(angular_velocities, dtype=float)
    lengths = np.asarray(lengths, dtype=float)

    vx = np.cumsum(lengths * np.cos(angles) * angular_velocities, axis=-1)
    vy = np.cumsum(-lengths * np.sin(angles) * angular_velocities, axis=-1)
    return vx, vy
