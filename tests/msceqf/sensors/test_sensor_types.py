"""Unit tests for sensor record types."""

import unittest

import numpy as np

from msceqf.sensors import CameraRecord, Groundtruth, Imu


class TestImu(unittest.TestCase):
    """Test cases for Imu records."""

    def test_stores_float_copies(self) -> None:
        gyro = [0, 1, 2]
        u = Imu(t=1, gyro=gyro, accel=np.array([0.0, 0.0, 9.81]))
        self.assertIsInstance(u.t, float)
        self.assertEqual(u.gyro.dtype, np.float64)
        gyro[0] = 5
        self.assertEqual(u.gyro[0], 0.0)

    def test_rejects_bad_shape(self) -> None:
        with self.assertRaises(ValueError):
            Imu(t=0.0, gyro=np.zeros(2), accel=np.zeros(3))

    def test_rejects_nan(self) -> None:
        with self.assertRaises(ValueError):
            Imu(t=0.0, gyro=np.zeros(3), accel=np.array([np.nan, 0.0, 0.0]))
        with self.assertRaises(ValueError):
            Imu(t=float("nan"), gyro=np.zeros(3), accel=np.zeros(3))

    def test_orders_by_time(self) -> None:
        a = Imu(t=2.0, gyro=np.zeros(3), accel=np.zeros(3))
        b = Imu(t=1.0, gyro=np.ones(3), accel=np.ones(3))
        self.assertEqual(sorted([a, b])[0].t, 1.0)


class TestGroundtruth(unittest.TestCase):
    """Test cases for Groundtruth records."""

    def test_optional_blocks_default_to_zero(self) -> None:
        gt = Groundtruth(t=0.0, q=np.array([1.0, 0.0, 0.0, 0.0]), p=np.ones(3))
        np.testing.assert_array_equal(gt.v, np.zeros(3))
        np.testing.assert_array_equal(gt.b_g, np.zeros(3))
        np.testing.assert_array_equal(gt.b_a, np.zeros(3))

    def test_keeps_nan_entries(self) -> None:
        gt = Groundtruth(t=0.0, q=np.full(4, np.nan), p=np.zeros(3))
        self.assertTrue(np.all(np.isnan(gt.q)))

    def test_rejects_bad_shape(self) -> None:
        with self.assertRaises(ValueError):
            Groundtruth(t=0.0, q=np.zeros(3), p=np.zeros(3))


class TestCameraRecord(unittest.TestCase):
    """Test cases for CameraRecord."""

    def test_fields(self) -> None:
        cam = CameraRecord(t=3.5, filename="frame.png")
        self.assertEqual(cam.t, 3.5)
        self.assertEqual(cam.filename, "frame.png")

    def test_rejects_empty_filename(self) -> None:
        with self.assertRaises(ValueError):
            CameraRecord(t=0.0, filename="")


if __name__ == "__main__":
    unittest.main()
