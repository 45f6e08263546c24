"""
Tests for the N-link equations of motion.
"""

import numpy as np
import pytest

from equations import (
    angular_accelerations,
    build_equations_of_motion,
    forcing_vector,
    mass_coupling,
    mass_matrix,
)


@pytest.mark.parametrize("theta", [-2.5, -0.3, 0.0, 0.7, np.pi / 2, 3.0])
@pytest.mark.parametrize("length,mass", [(1.0, 1.0), (0.5, 2.0), (2.5, 0.3)])
def test_single_link_reduces_to_simple_pendulum(theta, length, mass):
    g = 9.81
    alpha = angular_accelerations([theta], [1.3], [length], [mass], g)
    assert alpha.shape == (1,)
    assert alpha[0] == pytest.approx(-(g / length) * np.sin(theta), rel=1e-12, abs=1e-12)


def test_mass_coupling_counts_mass_beyond_joint():
    expected = np.array([
        [6.0, 5.0, 3.0],
        [5.0, 5.0, 3.0],
        [3.0, 3.0, 3.0],
    ])
    np.testing.assert_allclose(mass_coupling([1.0, 2.0, 3.0]), expected)


def test_unit_chain_coupling_is_links_beyond_joint():
    N = 5
    idx = np.arange(N)
    expected = N - np.maximum.outer(idx, idx)
    np.testing.assert_allclose(mass_coupling(np.ones(N)), expected)


def test_mass_matrix_is_symmetric_positive_definite():
    rng = np.random.default_rng(3)
    theta = rng.uniform(-np.pi, np.pi, 4)
    M = mass_matrix(theta, [1.0, 0.5, 2.0, 1.5], [1.0, 3.0, 0.2, 1.0])
    np.testing.assert_allclose(M, M.T)
    assert np.all(np.linalg.eigvalsh(M) > 0)


def test_double_pendulum_horizontal_release():
    g = 9.81
    alpha = angular_accelerations([np.pi / 2, np.pi / 2], [0.0, 0.0], [1.0, 1.0], [1.0, 1.0], g)
    np.testing.assert_allclose(alpha, [-g, 0.0], atol=1e-12)


def test_forcing_vector_vanishes_at_rest_hanging_down():
    f = forcing_vector(np.zeros(3), np.zeros(3), np.ones(3), np.ones(3), 9.81)
    np.testing.assert_array_equal(f, np.zeros(3))


def test_equations_of_motion_match_direct_solve():
    rng = np.random.default_rng(7)
    lengths = rng.uniform(0.5, 2.0, 4)
    masses = rng.uniform(0.5, 2.0, 4)
    theta = rng.uniform(-1.0, 1.0, 4)
    omega = rng.uniform(-2.0, 2.0, 4)

    equations_of_motion = build_equations_of_motion(lengths, masses, 9.81)
    du = equations_of_motion(0.0, np.concatenate([theta, omega]))

    np.testing.assert_allclose(du[:4], omega)
    np.testing.assert_allclose(du[4:], angular_accelerations(theta, omega, lengths, masses, 9.81))
