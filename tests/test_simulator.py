"""
Tests for headless simulation runs and the scipy reference trajectory.
"""

import numpy as np
import pytest

from pendulum import Pendulum, PendulumParameters, PendulumState
from simulator import energy_drift, simulate, simulate_reference
from solver import Integrator


@pytest.fixture
def parameters():
    return PendulumParameters.from_arrays([1.0, 0.8, 0.6], [1.0, 0.5, 0.25], 9.81)


@pytest.fixture
def state():
    return PendulumState([0.9, 0.3, -0.4], [0.0, 0.5, 0.0])


def test_simulate_shapes_and_sampling(parameters, state):
    pendulum = Pendulum(parameters, state)
    trajectory = simulate(pendulum, duration=1.0, dt=0.001, fps=50, verbose=False)

    assert len(trajectory) == 51
    assert trajectory.theta.shape == (51, 3)
    assert trajectory.omega.shape == (51, 3)
    assert trajectory.x.shape == (51, 4)
    assert trajectory.y.shape == (51, 4)
    assert trajectory.energy.shape == (51,)
    assert trajectory.t[0] == 0.0
    assert trajectory.t[-1] == pytest.approx(1.0)
    np.testing.assert_array_equal(trajectory.theta[0], state.angles)
    np.testing.assert_array_equal(trajectory.theta[-1], pendulum.angles)


def test_rk4_matches_reference_trajectory(parameters, state):
    pendulum = Pendulum(parameters, state, Integrator.RK4)
    fixed = simulate(pendulum, duration=2.0, dt=0.001, fps=50, verbose=False)
    reference = simulate_reference(parameters, state, duration=2.0, fps=50)

    np.testing.assert_allclose(fixed.t, reference.t, atol=1e-9)
    np.testing.assert_allclose(fixed.theta, reference.theta, atol=1e-6)
    np.testing.assert_allclose(fixed.x, reference.x, atol=1e-6)


@pytest.mark.parametrize("dt,fps", [(1e-3, 60), (0.005, 60), (0.007, 30)])
def test_samples_fall_on_frame_times_when_dt_does_not_divide_frame(parameters, state, dt, fps):
    pendulum = Pendulum(parameters, state, Integrator.RK4)
    fixed = simulate(pendulum, duration=1.0, dt=dt, fps=fps, verbose=False)
    reference = simulate_reference(parameters, state, duration=1.0, fps=fps)

    assert len(fixed) == len(reference)
    np.testing.assert_allclose(fixed.t, reference.t, atol=1e-9)
    assert fixed.t[-1] == pytest.approx(1.0)
    np.testing.assert_allclose(fixed.theta, reference.theta, atol=1e-5)


def test_default_sampling_covers_requested_duration(parameters, state):
    trajectory = simulate(Pendulum(parameters, state), duration=5.0, verbose=False)
    assert len(trajectory) == 301
    assert trajectory.t[-1] == pytest.approx(5.0)


def test_reference_conserves_energy(parameters, state):
    reference = simulate_reference(parameters, state, duration=5.0, fps=20)
    assert energy_drift(reference.energy).max() < 1e-8


def test_trajectory_energy_matches_model(parameters, state):
    pendulum = Pendulum(parameters, state)
    trajectory = simulate(pendulum, duration=0.5, dt=0.001, fps=50, verbose=False)
    assert trajectory.energy[-1] == pytest.approx(pendulum.energy(), rel=1e-12)


def test_simulate_prints_progress(parameters, state, capsys):
    simulate(Pendulum(parameters, state), duration=0.1, dt=0.01, fps=10, verbose=True)
    out = capsys.readouterr().out
    assert "Simulating N=3 pendulum" in out
    assert "Progress: 2/2" in out


@pytest.mark.parametrize("kwargs", [{"duration": -1.0}, {"dt": 0.0}, {"fps": 0}])
def test_simulate_rejects_bad_arguments(parameters, state, kwargs):
    with pytest.raises(ValueError):
        simulate(Pendulum(parameters, state), verbose=False, **kwargs)


def test_reference_rejects_mismatched_state(parameters):
    with pytest.raises(ValueError):
        simulate_reference(parameters, PendulumState([0.1]), duration=1.0)


def test_energy_drift_is_relative():
    np.testing.assert_allclose(energy_drift([-10.0, -10.5, -9.0]), [0.0, 0.05, 0.1])


def test_energy_drift_falls_back_to_absolute():
    np.testing.assert_allclose(energy_drift([0.0, 0.5, -0.25]), [0.0, 0.5, 0.25])
