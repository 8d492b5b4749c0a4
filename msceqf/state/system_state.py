"""Physical navigation state and its Lie-algebra coordinates.

SystemState is the point ξ of the homogeneous space the MSCEqF symmetry acts
on: IMU extended pose, IMU biases, camera extrinsic calibration, camera-IMU
time offset and a set of persistent feature positions.

SystemStateAlgebraMap is an element Λ of the Lie algebra of the symmetry
group, the output of the lift and the argument of the group exponential. Its
vector form is the error-state ordering used by covariance matrices:

    [ extended pose (9) | bias (6) | extrinsic (6) | time offset (1) | features (3 each) ]

with features stacked by ascending id.

Frame conventions:
    - Quaternions are scalar-first [qw, qx, qy, qz], body to global.
    - v, p and the feature positions are expressed in the global frame.
    - (q_ic, p_ic) is the camera pose in the IMU frame.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from ..lie import (
    quat_normalize,
    quat_to_rotation_matrix,
    rotation_matrix_to_quat,
    se3_from_rotation_translation,
    se23_from_components,
    validate_se3,
    validate_se23,
)

# Length of the fixed (non-feature) part of an algebra vector
FIXED_ALGEBRA_DIM = 22

_VECTOR_SIZES = {"v": 3, "p": 3, "b_g": 3, "b_a": 3, "p_ic": 3}


def finite_vector(value, size: int, name: str) -> np.ndarray:
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (size,):
        raise ValueError(f"{name} must have shape ({size},), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite entries")
    return arr


def finite_scalar(value, name: str) -> float:
    value = float(value)
    if not np.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


def feature_dict(features, name: str) -> Dict[int, np.ndarray]:
    return {
        int(fid): finite_vector(f, 3, f"{name}[{fid}]")
        for fid, f in dict(features).items()
    }


def _identity_quat() -> np.ndarray:
    return np.array([1.0, 0.0, 0.0, 0.0])


@dataclass
class SystemState:
    """Navigation state of a visual-inertial system.

    Mutable: fields may be reassigned, and every assignment is validated.
    Both quaternions are renormalized whenever they are set, so R and the
    extrinsic rotation are always proper rotations.

    Attributes:
        q: IMU orientation, unit quaternion [qw, qx, qy, qz], body to global.
        v: IMU velocity in the global frame, shape (3,). Units: m/s.
        p: IMU position in the global frame, shape (3,). Units: m.
        b_g: Gyroscope bias, shape (3,). Units: rad/s.
        b_a: Accelerometer bias, shape (3,). Units: m/s².
        q_ic: Camera orientation in the IMU frame, unit quaternion.
        p_ic: Camera position in the IMU frame, shape (3,). Units: m.
        t_d: Camera-IMU time offset. Units: s.
        features: Persistent feature positions in the global frame, keyed
            by feature id. Held as a read-only mapping; assign a new mapping
            to add or remove features.

    Raises:
        ValueError: On wrong shapes, non-finite values or a zero quaternion.

    Example:
        >>> state = SystemState(q=np.array([2.0, 0.0, 0.0, 0.0]))
        >>> state.q
        array([1., 0., 0., 0.])
    """

    q: np.ndarray = field(default_factory=_identity_quat)
    v: np.ndarray = field(default_factory=lambda: np.zeros(3))
    p: np.ndarray = field(default_factory=lambda: np.zeros(3))
    b_g: np.ndarray = field(default_factory=lambda: np.zeros(3))
    b_a: np.ndarray = field(default_factory=lambda: np.zeros(3))
    q_ic: np.ndarray = field(default_factory=_identity_quat)
    p_ic: np.ndarray = field(default_factory=lambda: np.zeros(3))
    t_d: float = 0.0
    features: Mapping[int, np.ndarray] = field(default_factory=dict)

    def __setattr__(self, name, value) -> None:
        if name in ("q", "q_ic"):
            value = quat_normalize(value)
        elif name in _VECTOR_SIZES:
            value = finite_vector(value, _VECTOR_SIZES[name], name)
        elif name == "t_d":
            value = finite_scalar(value, name)
        elif name == "features":
            value = MappingProxyType(feature_dict(value, name))
        super().__setattr__(name, value)

    @classmethod
    def from_matrices(
        cls,
        T: np.ndarray,
        b: np.ndarray,
        S: np.ndarray,
        t_d: float = 0.0,
        features: Optional[Dict[int, np.ndarray]] = None,
    ) -> "SystemState":
        """Build a state from its matrix blocks.

        Args:
            T: Extended pose (5x5).
            b: Stacked bias [b_g, b_a], shape (6,).
            S: Camera extrinsic as a homogeneous transform (4x4).
            t_d: Camera-IMU time offset.
            features: Feature positions keyed by id.
        """
        T = validate_se23(T, name="T")
        S = validate_se3(S, name="S")
        b = finite_vector(b, 6, "b")
        return cls(
            q=rotation_matrix_to_quat(T[0:3, 0:3]),
            v=T[0:3, 3],
            p=T[0:3, 4],
            b_g=b[0:3],
            b_a=b[3:6],
            q_ic=rotation_matrix_to_quat(S[0:3, 0:3]),
            p_ic=S[0:3, 3],
            t_d=t_d,
            features=features if features is not None else {},
        )

    @property
    def R(self) -> np.ndarray:
        """IMU orientation as a rotation matrix."""
        return quat_to_rotation_matrix(self.q)

    @property
    def T(self) -> np.ndarray:
        """IMU extended pose [[R, v, p], [0, 1, 0], [0, 0, 1]]."""
        return se23_from_components(self.R, self.v, self.p)

    @property
    def b(self) -> np.ndarray:
        return np.concatenate([self.b_g, self.b_a])

    @property
    def S(self) -> np.ndarray:
        """Camera extrinsic as a 4x4 homogeneous transform."""
        return se3_from_rotation_translation(
            quat_to_rotation_matrix(self.q_ic), self.p_ic
        )

    @property
    def feature_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self.features))

    def copy(self) -> "SystemState":
        return replace(self)


@dataclass
class SystemStateAlgebraMap:
    """Element of the symmetry Lie algebra.

    Attributes:
        extended_pose: se2(3) component [ω, ν, ρ], shape (9,).
        bias: Bias translation component, shape (6,).
        extrinsic: se(3) component of the camera extrinsic, shape (6,).
        time_offset: Time-offset component.
        features: Per-feature translation components, keyed by feature id.
    """

    extended_pose: np.ndarray = field(default_factory=lambda: np.zeros(9))
    bias: np.ndarray = field(default_factory=lambda: np.zeros(6))
    extrinsic: np.ndarray = field(default_factory=lambda: np.zeros(6))
    time_offset: float = 0.0
    features: Dict[int, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.extended_pose = finite_vector(self.extended_pose, 9, "extended_pose")
        self.bias = finite_vector(self.bias, 6, "bias")
        self.extrinsic = finite_vector(self.extrinsic, 6, "extrinsic")
        self.time_offset = finite_scalar(self.time_offset, "time_offset")
        self.features = feature_dict(self.features, "features")

    @property
    def feature_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self.features))

    def to_vector(self) -> np.ndarray:
        """Stack all components into one vector of length 22 + 3n."""
        parts = [
            self.extended_pose,
            self.bias,
            self.extrinsic,
            np.array([self.time_offset]),
        ]
        parts.extend(self.features[fid] for fid in self.feature_ids)
        return np.concatenate(parts)

    @classmethod
    def from_vector(cls, vec: np.ndarray, feature_ids=()) -> "SystemStateAlgebraMap":
        """Inverse of to_vector.

        Args:
            vec: Stacked algebra vector, shape (22 + 3n,).
            feature_ids: Ids of the n features. They are assigned to the
                trailing 3-blocks in ascending order.

        Raises:
            ValueError: If the length of vec does not match feature_ids.
        """
        vec = np.asarray(vec, dtype=np.float64)
        ids = sorted(int(fid) for fid in feature_ids)
        expected = FIXED_ALGEBRA_DIM + 3 * len(ids)
        if vec.shape != (expected,):
            raise ValueError(
                f"Algebra vector for {len(ids)} features must have shape "
                f"({expected},), got {vec.shape}"
            )
        features = {
            fid: vec[FIXED_ALGEBRA_DIM + 3 * k:FIXED_ALGEBRA_DIM + 3 * k + 3]
            for k, fid in enumerate(ids)
        }
        return cls(
            extended_pose=vec[0:9],
            bias=vec[9:15],
            extrinsic=vec[15:21],
            time_offset=vec[21],
            features=features,
        )

    def scaled(self, s: float) -> "SystemStateAlgebraMap":
        """Return a copy with every component multiplied by s."""
        return SystemStateAlgebraMap(
            extended_pose=s * self.extended_pose,
            bias=s * self.bias,
            extrinsic=s * self.extrinsic,
            time_offset=s * self.time_offset,
            features={fid: s * f for fid, f in self.features.items()},
        )
