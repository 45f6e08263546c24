"""
Tests for the N-pendulum model: construction, stepping and energy behaviour.
"""

import numpy as np
import pytest

from pendulum import Link, LinkState, Pendulum, PendulumParameters, PendulumState
from solver import Integrator


def double_pendulum(integrator=Integrator.RK4, angles=(0.7, 0.4)):
    return Pendulum(
        PendulumParameters.from_arrays([1.0, 1.0], [1.0, 1.0], 9.81),
        PendulumState(angles),
        integrator,
    )


def relative_drift(pendulum, steps, dt):
    e0 = pendulum.energy()
    for _ in range(steps):
        pendulum.advance(dt)
    return abs(pendulum.energy() - e0) / abs(e0)


# --- construction ---------------------------------------------------------

def test_zero_links_is_rejected():
    with pytest.raises(ValueError):
        PendulumParameters(())
    with pytest.raises(ValueError):
        PendulumParameters.uniform(0)


@pytest.mark.parametrize("length,mass", [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0), (1.0, -2.0), (np.nan, 1.0)])
def test_non_positive_link_is_rejected(length, mass):
    with pytest.raises(ValueError):
        Link(length, mass)


def test_mismatched_lengths_and_masses_are_rejected():
    with pytest.raises(ValueError, match="lengths"):
        PendulumParameters.from_arrays([1.0, 1.0], [1.0])


def test_state_length_must_match_parameters():
    with pytest.raises(ValueError, match="links"):
        Pendulum(PendulumParameters.uniform(3), PendulumState([0.1, 0.2]))


def test_state_velocity_count_must_match_angles():
    with pytest.raises(ValueError):
        PendulumState([0.1, 0.2], [0.0])


def test_parameter_arrays_are_read_only():
    parameters = PendulumParameters.from_arrays([1.0, 2.0], [3.0, 4.0])
    np.testing.assert_array_equal(parameters.lengths, [1.0, 2.0])
    np.testing.assert_array_equal(parameters.masses, [3.0, 4.0])
    with pytest.raises(ValueError):
        parameters.lengths[0] = 5.0


def test_state_exposes_link_records():
    state = PendulumState([0.5, -0.25], [1.0, 2.0])
    assert state.links == [LinkState(0.5, 1.0), LinkState(-0.25, 2.0)]
    assert len(state) == 2


def test_default_state_hangs_at_rest():
    pendulum = Pendulum(PendulumParameters.uniform(4))
    np.testing.assert_array_equal(pendulum.angles, np.zeros(4))
    np.testing.assert_array_equal(pendulum.angular_velocities, np.zeros(4))


def test_constructor_copies_the_given_state():
    state = PendulumState([0.3])
    pendulum = Pendulum(PendulumParameters.uniform(1), state)
    pendulum.advance(0.01)
    assert state.angles[0] == 0.3


# --- stepping -------------------------------------------------------------

@pytest.mark.parametrize("n", [1, 2, 5])
@pytest.mark.parametrize("integrator", list(Integrator))
def test_null_step_leaves_state_unchanged(n, integrator):
    rng = np.random.default_rng(n)
    state = PendulumState(rng.uniform(-2, 2, n), rng.uniform(-1, 1, n))
    pendulum = Pendulum(PendulumParameters.uniform(n), state, integrator)
    pendulum.advance(0.0)
    np.testing.assert_array_equal(pendulum.angles, state.angles)
    np.testing.assert_array_equal(pendulum.angular_velocities, state.angular_velocities)


@pytest.mark.parametrize("integrator", list(Integrator))
def test_equilibrium_is_a_fixed_point(integrator):
    pendulum = Pendulum(PendulumParameters.uniform(4), integrator=integrator)
    for _ in range(200):
        pendulum.advance(0.01)
    np.testing.assert_array_equal(pendulum.angles, np.zeros(4))
    np.testing.assert_array_equal(pendulum.angular_velocities, np.zeros(4))


def test_euler_regression_baseline_double_pendulum():
    pendulum = Pendulum(
        PendulumParameters.from_arrays([1.0, 1.0], [1.0, 1.0], 9.81),
        PendulumState([np.pi / 2, np.pi / 2], [0.0, 0.0]),
        Integrator.EULER,
    )
    pendulum.advance(0.01)
    np.testing.assert_array_equal(pendulum.angles, [np.pi / 2, np.pi / 2])
    np.testing.assert_allclose(pendulum.angular_velocities, [-0.0981, 0.0], atol=1e-12)
    assert pendulum.time == pytest.approx(0.01)


def test_accelerations_follow_current_state():
    pendulum = Pendulum(PendulumParameters.uniform(1, length=2.0), PendulumState([0.4]))
    assert pendulum.accelerations()[0] == pytest.approx(-9.81 / 2.0 * np.sin(0.4))


def test_integrator_can_be_switched_at_runtime():
    pendulum = double_pendulum(Integrator.EULER)
    pendulum.integrator = Integrator.RK4
    pendulum.advance(0.01)
    assert pendulum.integrator is Integrator.RK4


# --- energy ---------------------------------------------------------------

def test_single_link_energy():
    pendulum = Pendulum(
        PendulumParameters.uniform(1, length=2.0, mass=3.0, gravity=10.0),
        PendulumState([np.pi / 3], [0.5]),
    )
    assert pendulum.kinetic_energy() == pytest.approx(0.5 * 3.0 * (2.0 * 0.5) ** 2)
    assert pendulum.potential_energy() == pytest.approx(-3.0 * 10.0 * 2.0 * np.cos(np.pi / 3))


def test_rk4_conserves_energy():
    assert relative_drift(double_pendulum(Integrator.RK4), 10_000, 0.001) < 0.01


def test_euler_drifts_faster_than_rk4():
    rk4 = relative_drift(double_pendulum(Integrator.RK4), 10_000, 0.001)
    euler = relative_drift(double_pendulum(Integrator.EULER), 10_000, 0.001)
    assert euler > 10 * rk4


def test_euler_energy_grows_monotonically_for_small_swing():
    pendulum = Pendulum(PendulumParameters.uniform(1), PendulumState([0.5]), Integrator.EULER)
    energies = [pendulum.energy()]
    for _ in range(10):
        for _ in range(1000):
            pendulum.advance(0.001)
        energies.append(pendulum.energy())
    assert np.all(np.diff(energies) > 0)


# --- reset and divergence -------------------------------------------------

def test_reset_restores_initial_state():
    pendulum = double_pendulum()
    for _ in range(50):
        pendulum.advance(0.01)
    pendulum.reset()
    np.testing.assert_array_equal(pendulum.angles, [0.7, 0.4])
    np.testing.assert_array_equal(pendulum.angular_velocities, [0.0, 0.0])
    assert pendulum.time == 0.0


def test_reset_replaces_state_wholesale():
    pendulum = double_pendulum()
    old_state = pendulum.state
    pendulum.reset(PendulumState([0.1, 0.2], [0.3, 0.4]))
    assert pendulum.state is not old_state
    np.testing.assert_array_equal(pendulum.angular_velocities, [0.3, 0.4])
    with pytest.raises(ValueError):
        pendulum.reset(PendulumState([0.1]))


def test_divergence_is_reported_not_raised():
    pendulum = double_pendulum()
    assert not pendulum.has_diverged
    pendulum.reset(PendulumState([np.nan, 0.0]))
    pendulum.advance(0.01)
    assert pendulum.has_diverged


def test_positions_start_at_pivot():
    x, y = double_pendulum(angles=(0.0, np.pi / 2)).positions()
    np.testing.assert_allclose(x, [0.0, 0.0, 1.0], atol=1e-12)
    np.testing.assert_allclose(y, [0.0, 1.0, 1.0], atol=1e-12)
