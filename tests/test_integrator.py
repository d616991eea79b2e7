import numpy as np
import pytest

from kinematics import total_energy
from pendulum_types import DimensionMismatchError, PendulumParameters, PendulumState
from simulator import DT, integrate_reference, rk4_step


def _simple_pendulum_rk4(theta, omega, g, length, dt):
    def f(s):
        return np.array([s[1], -(g / length) * np.sin(s[0])])

    s = np.array([theta, omega])
    k1 = f(s)
    k2 = f(s + 0.5 * dt * k1)
    k3 = f(s + 0.5 * dt * k2)
    k4 = f(s + dt * k3)
    return s + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


@pytest.mark.parametrize("theta, omega, g, length", [
    (np.pi / 4, 0.0, 9.81, 1.0),
    (1.2, -0.7, 9.81, 2.5),
    (-0.4, 3.0, 1.62, 0.3),
])
def test_single_link_step_matches_simple_pendulum(theta, omega, g, length):
    params = PendulumParameters([2.0], [length], g)
    new = rk4_step(PendulumState([theta], [omega]), params, DT)
    expected = _simple_pendulum_rk4(theta, omega, g, length, DT)
    np.testing.assert_allclose([new.thetas[0], new.omegas[0]], expected, atol=1e-9)


def test_step_does_not_mutate_input(double_pendulum):
    params, state = double_pendulum
    before = state.as_vector().copy()
    new = rk4_step(state, params, DT)
    np.testing.assert_array_equal(state.as_vector(), before)
    assert new is not state
    assert not np.array_equal(new.as_vector(), before)


def test_step_is_deterministic(double_pendulum):
    params, state = double_pendulum
    a = rk4_step(state, params, DT)
    b = rk4_step(state, params, DT)
    np.testing.assert_array_equal(a.thetas, b.thetas)
    np.testing.assert_array_equal(a.omegas, b.omegas)


@pytest.mark.parametrize("params, state", [
    (PendulumParameters([1.0], [1.0]), PendulumState.at_rest([np.pi / 3])),
    (PendulumParameters([1.0, 1.0], [1.0, 1.0]), PendulumState.at_rest([np.pi / 6, np.pi / 4])),
    (PendulumParameters([3.0, 1.0], [1.0, 0.5], 9.81), PendulumState.at_rest([np.pi / 5, -np.pi / 8])),
])
def test_energy_drift_is_small(params, state):
    e0 = total_energy(state, params)
    for _ in range(1000):
        state = rk4_step(state, params, DT)
    assert abs(total_energy(state, params) - e0) < 0.01 * abs(e0)


def test_agrees_with_reference_integrator(gentle_double_pendulum):
    params, state = gentle_double_pendulum
    s = state
    for _ in range(100):
        s = rk4_step(s, params, DT)
    _, u = integrate_reference(params, state, 1.0, t_eval=[1.0])
    np.testing.assert_allclose(s.as_vector(), u[-1], atol=1e-6)


def test_empty_chain_steps():
    new = rk4_step(PendulumState([], []), PendulumParameters([], []), DT)
    assert new.count == 0


def test_dimension_mismatch_rejected():
    params = PendulumParameters([1.0, 1.0, 1.0], [1.0, 1.0, 1.0])
    with pytest.raises(DimensionMismatchError):
        rk4_step(PendulumState.at_rest([0.1, 0.2]), params, DT)


@pytest.mark.parametrize("dt", [0.0, -0.01])
def test_non_positive_dt_rejected(double_pendulum, dt):
    params, state = double_pendulum
    with pytest.raises(ValueError):
        rk4_step(state, params, dt)


def test_singular_dynamics_freezes_acceleration():
    # Zero masses make the mass matrix all zeros
    params = PendulumParameters([0.0, 0.0], [1.0, 1.0])
    state = PendulumState([0.3, 0.5], [1.0, -2.0])
    new = rk4_step(state, params, DT)
    np.testing.assert_allclose(new.omegas, state.omegas)
    np.testing.assert_allclose(new.thetas, state.thetas + DT * state.omegas)
