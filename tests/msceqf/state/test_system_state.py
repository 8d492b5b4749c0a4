"""Unit tests for SystemState and SystemStateAlgebraMap."""

import unittest

import numpy as np

from msceqf.lie import se3_from_rotation_translation, se23_from_components, so3_exp
from msceqf.state import SystemState, SystemStateAlgebraMap


class TestSystemState(unittest.TestCase):
    """Test cases for the navigation state container."""

    def test_defaults_are_identity(self) -> None:
        xi = SystemState()
        np.testing.assert_allclose(xi.T, np.eye(5))
        np.testing.assert_allclose(xi.S, np.eye(4))
        np.testing.assert_allclose(xi.b, np.zeros(6))
        self.assertEqual(xi.t_d, 0.0)
        self.assertEqual(xi.feature_ids, ())

    def test_quaternion_normalized_on_construction(self) -> None:
        xi = SystemState(q=np.array([2.0, 0.0, 0.0, 2.0]), q_ic=np.array([0.0, 0.0, 5.0, 0.0]))
        self.assertAlmostEqual(np.linalg.norm(xi.q), 1.0, places=12)
        np.testing.assert_allclose(xi.q_ic, [0.0, 0.0, 1.0, 0.0])

    def test_quaternion_normalized_on_assignment(self) -> None:
        xi = SystemState()
        xi.q = np.array([1.0, 1.0, 1.0, 1.0])
        np.testing.assert_allclose(xi.q, [0.5, 0.5, 0.5, 0.5])
        xi.q_ic = np.array([0.0, 3.0, 0.0, 4.0])
        self.assertAlmostEqual(np.linalg.norm(xi.q_ic), 1.0, places=14)

    def test_rejects_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            SystemState(q=np.zeros(4))
        with self.assertRaises(ValueError):
            SystemState(v=np.array([np.nan, 0.0, 0.0]))
        with self.assertRaises(ValueError):
            SystemState(p=np.zeros(2))
        with self.assertRaises(ValueError):
            SystemState(t_d=float("inf"))
        with self.assertRaises(ValueError):
            SystemState(features={1: np.zeros(4)})
        xi = SystemState()
        with self.assertRaises(ValueError):
            xi.b_a = np.array([0.0, np.inf, 0.0])

    def test_from_matrices_round_trip(self) -> None:
        R = so3_exp(np.array([0.2, -0.4, 1.1]))
        T = se23_from_components(R, np.array([1.0, 2.0, 3.0]), np.array([-1.0, 0.5, 4.0]))
        S = se3_from_rotation_translation(
            so3_exp(np.array([0.0, 0.1, 0.0])), np.array([0.05, 0.0, 0.01])
        )
        b = np.arange(6.0)
        xi = SystemState.from_matrices(T, b, S, t_d=0.01, features={3: np.ones(3)})

        np.testing.assert_allclose(xi.T, T, atol=1e-12)
        np.testing.assert_allclose(xi.S, S, atol=1e-12)
        np.testing.assert_allclose(xi.b, b)
        np.testing.assert_allclose(xi.b_g, b[0:3])
        self.assertEqual(xi.t_d, 0.01)
        self.assertEqual(xi.feature_ids, (3,))

    def test_from_matrices_rejects_invalid_pose(self) -> None:
        T = np.eye(5)
        T[0, 0] = 2.0
        with self.assertRaises(ValueError):
            SystemState.from_matrices(T, np.zeros(6), np.eye(4))

    def test_copy_is_deep(self) -> None:
        xi = SystemState(features={1: np.ones(3)})
        other = xi.copy()
        other.features[1][0] = 5.0
        other.p = np.ones(3)
        self.assertEqual(xi.features[1][0], 1.0)
        np.testing.assert_allclose(xi.p, np.zeros(3))

    def test_features_mapping_is_read_only(self) -> None:
        xi = SystemState(features={1: np.ones(3)})
        with self.assertRaises(TypeError):
            xi.features[2] = np.array([np.nan, 0.0, 0.0])
        self.assertEqual(xi.feature_ids, (1,))

    def test_features_reassignment_is_validated(self) -> None:
        xi = SystemState(features={1: np.ones(3)})
        xi.features = {**xi.features, 2: np.zeros(3)}
        self.assertEqual(xi.feature_ids, (1, 2))
        with self.assertRaises(ValueError):
            xi.features = {3: np.array([np.nan, 0.0, 0.0])}

    def test_inputs_are_copied(self) -> None:
        v = np.zeros(3)
        xi = SystemState(v=v)
        v[0] = 1.0
        self.assertEqual(xi.v[0], 0.0)


class TestSystemStateAlgebraMap(unittest.TestCase):
    """Test cases for Lie-algebra elements."""

    def test_vector_layout(self) -> None:
        Lambda = SystemStateAlgebraMap(
            extended_pose=np.arange(9.0),
            bias=np.arange(9.0, 15.0),
            extrinsic=np.arange(15.0, 21.0),
            time_offset=21.0,
            features={7: np.array([25.0, 26.0, 27.0]), 2: np.array([22.0, 23.0, 24.0])},
        )
        np.testing.assert_array_equal(Lambda.to_vector(), np.arange(28.0))

    def test_from_vector_inverts_to_vector(self) -> None:
        vec = np.linspace(-1.0, 1.0, 28)
        Lambda = SystemStateAlgebraMap.from_vector(vec, feature_ids=[9, 4])
        self.assertEqual(Lambda.feature_ids, (4, 9))
        np.testing.assert_array_equal(Lambda.features[4], vec[22:25])
        np.testing.assert_array_equal(Lambda.to_vector(), vec)

    def test_from_vector_rejects_wrong_length(self) -> None:
        with self.assertRaises(ValueError):
            SystemStateAlgebraMap.from_vector(np.zeros(24), feature_ids=[1])

    def test_scaled(self) -> None:
        vec = np.linspace(-1.0, 1.0, 25)
        Lambda = SystemStateAlgebraMap.from_vector(vec, feature_ids=[0])
        np.testing.assert_allclose(Lambda.scaled(-2.5).to_vector(), -2.5 * vec)
        np.testing.assert_array_equal(Lambda.to_vector(), vec)

    def test_defaults_are_zero(self) -> None:
        np.testing.assert_array_equal(SystemStateAlgebraMap().to_vector(), np.zeros(22))


if __name__ == "__main__":
    unittest.main()
