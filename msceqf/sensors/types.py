"""Sensor records consumed by the MSCEqF.

This module defines one-sample records for the three streams of a
visual-inertial dataset:
    - Imu: gyroscope and accelerometer reading (the lift input)
    - Groundtruth: reference pose, velocity and biases
    - CameraRecord: timestamp and image filename (images are not decoded)

Time Base Convention:
    All timestamps are float seconds. Nanosecond timestamps are converted
    by the data parser before records are built.

Records order by timestamp, so lists of them can be sorted directly.
"""

from dataclasses import dataclass, field

import numpy as np


def _as_vector(owner: str, name: str, value, size: int) -> np.ndarray:
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (size,):
        raise ValueError(f"{owner}.{name} must have shape ({size},), got {arr.shape}")
    return arr


def _check_timestamp(owner: str, t: float) -> float:
    t = float(t)
    if not np.isfinite(t):
        raise ValueError(f"{owner}.t must be finite, got {t}")
    return t


@dataclass(frozen=True, order=True)
class Imu:
    """
    Single Inertial Measurement Unit (IMU) sample.

    Attributes:
        t: Timestamp in seconds.
        gyro: Angular velocity in the body frame, shape (3,). Units: rad/s.
        accel: Specific force in the body frame, shape (3,). Units: m/s².
               Includes gravity: a level IMU at rest reads [0, 0, +g].

    Raises:
        ValueError: On wrong shapes or non-finite values.

    Example:
        >>> u = Imu(t=0.0, gyro=np.zeros(3), accel=np.array([0.0, 0.0, 9.81]))
    """

    t: float
    gyro: np.ndarray = field(compare=False)
    accel: np.ndarray = field(compare=False)

    def __post_init__(self) -> None:
        """Validate and store float copies of the measurements."""
        object.__setattr__(self, "t", _check_timestamp("Imu", self.t))
        for name in ("gyro", "accel"):
            arr = _as_vector("Imu", name, getattr(self, name), 3)
            if not np.all(np.isfinite(arr)):
                raise ValueError(f"Imu.{name} contains non-finite entries")
            object.__setattr__(self, name, arr)


@dataclass(frozen=True, order=True)
class Groundtruth:
    """
    Reference navigation state at one timestamp.

    Attributes:
        t: Timestamp in seconds.
        q: Orientation, unit quaternion [qw, qx, qy, qz], body to global.
        p: Position in the global frame, shape (3,).
        v: Velocity in the global frame, shape (3,). Zero when the source
           file does not provide it.
        b_g: Gyroscope bias, shape (3,). Zero when not provided.
        b_a: Accelerometer bias, shape (3,). Zero when not provided.

    Notes:
        - NaN entries are kept as they are: groundtruth files mark
          missing samples with 'nan'.
    """

    t: float
    q: np.ndarray = field(compare=False)
    p: np.ndarray = field(compare=False)
    v: np.ndarray = field(default_factory=lambda: np.zeros(3), compare=False)
    b_g: np.ndarray = field(default_factory=lambda: np.zeros(3), compare=False)
    b_a: np.ndarray = field(default_factory=lambda: np.zeros(3), compare=False)

    def __post_init__(self) -> None:
        """Validate shapes of the reference state."""
        object.__setattr__(self, "t", _check_timestamp("Groundtruth", self.t))
        object.__setattr__(self, "q", _as_vector("Groundtruth", "q", self.q, 4))
        for name in ("p", "v", "b_g", "b_a"):
            object.__setattr__(
                self, name, _as_vector("Groundtruth", name, getattr(self, name), 3)
            )


@dataclass(frozen=True, order=True)
class CameraRecord:
    """
    Camera frame reference.

    Attributes:
        t: Timestamp in seconds, already shifted by the camera-IMU time
           offset.
        filename: Path of the image file.
    """

    t: float
    filename: str = field(compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "t", _check_timestamp("CameraRecord", self.t))
        if not isinstance(self.filename, str) or not self.filename:
            raise ValueError("CameraRecord.filename must be a non-empty string")
