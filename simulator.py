"""
N-Pendulum Simulation
Headless runs of the fixed-step solver and of an adaptive scipy reference
"""

import math
import time
from dataclasses import dataclass

import numpy as np
from scipy.integrate import solve_ivp

from equations import build_equations_of_motion
from kinematics import link_positions, link_velocities
from pendulum import Pendulum, PendulumParameters, PendulumState

REFERENCE_SOLVER_KWARGS = dict(
    method='DOP853',  # High-order Runge-Kutta method (similar to ode89)
    rtol=1e-12,
    atol=1e-14,
    max_step=5e-3,
    first_step=1e-5,
)


@dataclass
class Trajectory:
    t: np.ndarray       # (Frame,)
    theta: np.ndarray   # (Frame, N)
    omega: np.ndarray   # (Frame, N)
    x: np.ndarray       # (Frame, N+1)
    y: np.ndarray       # (Frame, N+1)
    energy: np.ndarray  # (Frame,)

    def __len__(self) -> int:
        return self.t.size


def _energies(theta: np.ndarray, omega: np.ndarray, y: np.ndarray, parameters: PendulumParameters) -> np.ndarray:
    masses = parameters.masses
    vx, vy = link_velocities(theta, omega, parameters.lengths)
    kinetic = 0.5 * np.sum(masses * (vx**2 + vy**2), axis=-1)
    potential = -parameters.gravity * np.sum(masses * y[..., 1:], axis=-1)
    return kinetic + potential


def _trajectory(t: np.ndarray, theta: np.ndarray, omega: np.ndarray, parameters: PendulumParameters) -> Trajectory:
    x, y = link_positions(theta, parameters.lengths)
    return Trajectory(t=t, theta=theta, omega=omega, x=x, y=y, energy=_energies(theta, omega, y, parameters))


def simulate(
    pendulum: Pendulum,
    duration: float = 10.0,
    dt: float = 1e-3,
    fps: int = 60,
    verbose: bool = True,
) -> Trajectory:
    """
    Advance ``pendulum`` with its fixed-step integrator and sample the motion

    Parameters:
    -----------
    pendulum : Pendulum
        Simulation instance, mutated in place
    duration : float
        Simulated time in seconds
    dt : float
        Largest integrator step; each frame is split into equal steps
        no larger than dt so samples fall exactly on k/fps
    fps : int
        Sampling rate of the returned trajectory
    verbose : bool
        Print progress

    Returns:
    --------
    trajectory : Trajectory
        Samples at ``fps`` starting with the initial state
    """
    if duration < 0:
        raise ValueError(f"Duration must be non-negative, got {duration}")
    if dt <= 0:
        raise ValueError(f"Time step must be positive, got {dt}")
    if fps <= 0:
        raise ValueError(f"Frame rate must be positive, got {fps}")

    Frame = int(duration * fps) + 1
    # Equal steps no larger than dt; the 1e-9 absorbs rounding of exact divisors
    steps_per_frame = max(1, math.ceil(1.0 / (fps * dt) - 1e-9))
    h = 1.0 / (fps * steps_per_frame)
    N = pendulum.n_links

    t = np.zeros(Frame)
    theta = np.zeros((Frame, N))
    omega = np.zeros((Frame, N))

    if verbose:
        print(f"Simulating N={N} pendulum with {pendulum.integrator.label} "
              f"(dt={h:g}, {steps_per_frame} steps per frame)...")
    tic = time.time()

    for frame in range(Frame):
        if frame > 0:
            for _ in range(steps_per_frame):
                pendulum.advance(h)
        t[frame] = pendulum.time
        theta[frame] = pendulum.angles
        omega[frame] = pendulum.angular_velocities

        if verbose and ((frame + 1) % 600 == 0 or frame + 1 == Frame):
            print(f"Progress: {frame + 1}/{Frame}")

    if verbose:
        toc = time.time()
        print(f"Simulation completed in {toc - tic:.1f} seconds")
        if pendulum.has_diverged:
            print("Warning: state is no longer finite, try a smaller time step")

    return _trajectory(t, theta, omega, pendulum.parameters)


def simulate_reference(
    parameters: PendulumParameters,
    state: PendulumState,
    duration: float = 10.0,
    fps: int = 60,
    verbose: bool = False,
) -> Trajectory:
    """Same sampling as ``simulate`` computed by an adaptive high-order scipy integrator."""
    if len(state) != parameters.n_links:
        raise ValueError(
            f"State has {len(state)} links but parameters describe {parameters.n_links}"
        )
    if duration < 0:
        raise ValueError(f"Duration must be non-negative, got {duration}")
    if fps <= 0:
        raise ValueError(f"Frame rate must be positive, got {fps}")

    N = parameters.n_links
    Frame = int(duration * fps) + 1
    t = np.arange(Frame) / fps

    equations_of_motion = build_equations_of_motion(parameters.lengths, parameters.masses, parameters.gravity)

    if verbose:
        print(f"Computing reference trajectory for N={N} pendulum...")
    if Frame == 1:
        u = state.as_vector()[None, :]
    else:
        sol = solve_ivp(
            equations_of_motion,
            [0, t[-1]],
            state.as_vector(),
            t_eval=t,
            **REFERENCE_SOLVER_KWARGS,
        )
        if not sol.success:
            raise RuntimeError(f"Reference integration failed: {sol.message}")
        u = sol.y.T

    return _trajectory(t, u[:, :N].copy(), u[:, N:].copy(), parameters)


def energy_drift(energies: np.ndarray) -> np.ndarray:
    """Relative deviation from the first sample (absolute when it is zero)."""
    energies = np.asarray(energies, dtype=float)
    reference = energies[0]
    drift = np.abs(energies - reference)
    if reference != 0:
        drift = drift / abs(reference)
    return drift


if __name__ == '__main__':
    pendulum = Pendulum(
        PendulumParameters.uniform(3),
        PendulumState(np.ones(3) * np.pi / 2),
    )
    trajectory = simulate(pendulum, duration=10, dt=1e-3)
    print(f"Max energy drift: {energy_drift(trajectory.energy).max():.2e}")
