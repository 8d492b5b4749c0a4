"""Tests for the lift and the lifted propagation step.

The reference IMU kinematics are

    Ṙ = R (ω - b_g)^,   v̇ = R (a - b_a) + g,   ṗ = v

with biases, extrinsic, time offset and features constant.
"""

import numpy as np
import pytest
from scipy.integrate import solve_ivp

from msceqf.lie import se23_inverse, se23_vee, so3_wedge
from msceqf.sensors import Imu
from msceqf.state import SystemState, group_exp, identity
from msceqf.symmetry import D, gravity_generator, lift, phi, propagate

GRAVITY = np.array([0.0, 0.0, -9.81])
FEATURE_IDS = (1, 2)


def make_state():
    return SystemState(
        q=np.array([0.9, 0.1, -0.3, 0.2]),
        v=np.array([1.0, -0.5, 0.3]),
        p=np.array([2.0, 1.0, -1.0]),
        b_g=np.array([0.01, -0.02, 0.005]),
        b_a=np.array([0.1, 0.05, -0.08]),
        q_ic=np.array([0.5, -0.5, 0.5, -0.5]),
        p_ic=np.array([0.05, 0.0, 0.02]),
        t_d=0.003,
        features={1: np.array([5.0, 1.0, 2.0]), 2: np.array([-3.0, 4.0, 0.5])},
    )


def make_imu():
    return Imu(t=0.0, gyro=np.array([0.3, -0.2, 0.5]), accel=np.array([0.4, 0.2, 9.6]))


def integrate_kinematics(xi, u, dt):
    """Reference solution of the IMU kinematics over [0, dt]."""
    w = u.gyro - xi.b_g
    a = u.accel - xi.b_a

    def f(_, y):
        R = y[0:9].reshape(3, 3)
        return np.concatenate([(R @ so3_wedge(w)).ravel(), R @ a + GRAVITY, y[9:12]])

    y0 = np.concatenate([xi.R.ravel(), xi.v, xi.p])
    sol = solve_ivp(f, (0.0, dt), y0, method="DOP853", rtol=1e-12, atol=1e-12)
    y = sol.y[:, -1]
    return y[0:9].reshape(3, 3), y[9:12], y[12:15]


def one_step_error(xi, u, dt):
    X = propagate(identity(xi.feature_ids), xi, u, dt)
    xi_new = phi(X, xi)
    R, v, p = integrate_kinematics(xi, u, dt)
    return (
        np.linalg.norm(xi_new.R - R)
        + np.linalg.norm(xi_new.v - v)
        + np.linalg.norm(xi_new.p - p)
    )


class TestLift:
    """Test suite for the lift of the IMU input."""

    def test_stationary_level_state_lifts_to_zero(self):
        xi = SystemState(features={4: np.array([1.0, 2.0, 3.0])})
        u = Imu(t=0.0, gyro=np.zeros(3), accel=np.array([0.0, 0.0, 9.81]))
        Lambda = lift(xi, u)
        np.testing.assert_allclose(Lambda.to_vector(), np.zeros(25), atol=1e-12)

    def test_matches_closed_form(self):
        """Λ_C = [R ω̃, R ã + v × R ω̃ + g, p × R ω̃ + v]."""
        xi = make_state()
        u = make_imu()
        omega = xi.R @ (u.gyro - xi.b_g)
        nu = xi.R @ (u.accel - xi.b_a) + np.cross(xi.v, omega) + GRAVITY
        rho = np.cross(xi.p, omega) + xi.v
        expected = np.concatenate([omega, nu, rho])
        np.testing.assert_allclose(lift(xi, u).extended_pose, expected, atol=1e-12)

    def test_structure_matrix_moves_velocity_into_position(self):
        """T D T⁻¹ - D carries v into the position column only."""
        T = make_state().T
        np.testing.assert_allclose(
            se23_vee(T @ D @ se23_inverse(T) - D),
            np.concatenate([np.zeros(6), make_state().v]),
            atol=1e-12,
        )
        np.testing.assert_allclose(
            se23_vee(gravity_generator(3.71)), [0, 0, 0, 0, 0, -3.71, 0, 0, 0]
        )

    def test_keeps_feature_ids_and_zero_calibration_blocks(self):
        Lambda = lift(make_state(), make_imu())
        assert Lambda.feature_ids == FEATURE_IDS
        np.testing.assert_array_equal(Lambda.extrinsic, np.zeros(6))
        assert Lambda.time_offset == 0.0

    def test_flow_derivative_matches_kinematics(self):
        """d/dt phi(exp(tΛ), ξ) at t = 0 equals the system vector field."""
        xi = make_state()
        u = make_imu()
        Lambda = lift(xi, u)
        h = 1e-6

        plus = phi(group_exp(Lambda.scaled(h)), xi)
        minus = phi(group_exp(Lambda.scaled(-h)), xi)

        R = xi.R
        np.testing.assert_allclose(
            (plus.R - minus.R) / (2 * h), R @ so3_wedge(u.gyro - xi.b_g), atol=1e-6
        )
        np.testing.assert_allclose(
            (plus.v - minus.v) / (2 * h), R @ (u.accel - xi.b_a) + GRAVITY, atol=1e-6
        )
        np.testing.assert_allclose((plus.p - minus.p) / (2 * h), xi.v, atol=1e-6)
        np.testing.assert_allclose((plus.b - minus.b) / (2 * h), np.zeros(6), atol=1e-6)
        for fid in FEATURE_IDS:
            np.testing.assert_allclose(
                (plus.features[fid] - minus.features[fid]) / (2 * h), np.zeros(3), atol=1e-6
            )

    def test_custom_gravity(self):
        xi = SystemState()
        u = Imu(t=0.0, gyro=np.zeros(3), accel=np.array([0.0, 0.0, 3.71]))
        Lambda = lift(xi, u, gravity_magnitude=3.71)
        np.testing.assert_allclose(Lambda.extended_pose, np.zeros(9), atol=1e-12)


class TestPropagate:
    """Test suite for the single-step group integrator."""

    def test_second_order_local_error(self):
        """Halving dt divides the one-step error by about four."""
        xi = make_state()
        u = make_imu()
        e1 = one_step_error(xi, u, 0.01)
        e2 = one_step_error(xi, u, 0.005)
        assert e1 > 1e-9
        assert 3.0 < e1 / e2 < 5.0

    def test_constant_blocks_are_preserved(self):
        xi = make_state()
        X = propagate(identity(FEATURE_IDS), xi, make_imu(), 0.05)
        out = phi(X, xi)
        np.testing.assert_allclose(out.b, xi.b, atol=1e-12)
        np.testing.assert_allclose(out.S, xi.S, atol=1e-12)
        assert abs(out.t_d - xi.t_d) < 1e-15
        for fid in FEATURE_IDS:
            np.testing.assert_allclose(out.features[fid], xi.features[fid], atol=1e-12)

    def test_stationary_state_stays_put(self):
        xi = SystemState(features={fid: np.ones(3) for fid in FEATURE_IDS})
        X = identity(FEATURE_IDS)
        for k in range(10):
            u = Imu(t=0.01 * k, gyro=np.zeros(3), accel=np.array([0.0, 0.0, 9.81]))
            X = propagate(X, xi, u, 0.01)
        out = phi(X, xi)
        np.testing.assert_allclose(out.T, np.eye(5), atol=1e-12)
        for fid in FEATURE_IDS:
            np.testing.assert_allclose(out.features[fid], np.ones(3), atol=1e-12)

    def test_multi_step_tracks_kinematics(self):
        xi = make_state()
        u = make_imu()
        X = identity(FEATURE_IDS)
        n_steps, dt = 100, 0.001
        for _ in range(n_steps):
            X = propagate(X, xi, u, dt)
        out = phi(X, xi)
        R, v, p = integrate_kinematics(xi, u, n_steps * dt)
        np.testing.assert_allclose(out.R, R, atol=1e-3)
        np.testing.assert_allclose(out.v, v, atol=1e-2)
        np.testing.assert_allclose(out.p, p, atol=1e-2)

    @pytest.mark.parametrize("dt", [0.0, -0.01])
    def test_rejects_non_positive_dt(self, dt):
        with pytest.raises(ValueError, match="dt must be positive"):
            propagate(identity(FEATURE_IDS), make_state(), make_imu(), dt)
