"""Elements of the MSCEqF symmetry group and their group operations.

The symmetry group is

    G = (SE2(3) ⋉ (R⁶ ⊕ R³ⁿ)) × SE(3) × R

An element X = (C, delta, E, tau, Q) holds:
    - C: extended pose block (5x5), written C = (A, a, b) with rotation A,
      velocity column a and position column b
    - delta: translation acting on the stacked IMU bias, shape (6,)
    - E: camera extrinsic block (4x4)
    - tau: time-offset translation
    - Q: per-feature translations, keyed by feature id

C acts on delta through the Adjoint of χ(C) = (A, a) ∈ SE(3) and on each
feature translation through the rotation A. Group operations are free
functions over MSCEqFState, matching the lie package.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

import numpy as np

from ..lie import (
    se3_adjoint,
    se3_exp,
    se3_from_rotation_translation,
    se3_inverse,
    se3_left_jacobian,
    se3_log,
    se23_exp,
    se23_inverse,
    se23_log,
    so3_inverse,
    so3_left_jacobian,
    so3_left_jacobian_inv,
    validate_se3,
    validate_se23,
)
from .system_state import (
    FIXED_ALGEBRA_DIM,
    SystemState,
    SystemStateAlgebraMap,
    feature_dict,
    finite_scalar,
    finite_vector,
)


@dataclass(frozen=True)
class MSCEqFState:
    """Element of the MSCEqF symmetry group.

    Immutable; group operations return new elements.

    Attributes:
        C: Extended pose block in SE2(3), shape (5, 5).
        delta: Bias translation, shape (6,).
        E: Camera extrinsic block in SE(3), shape (4, 4).
        tau: Time-offset translation.
        Q: Feature translations keyed by feature id, each shape (3,).

    Raises:
        ValueError: If a block is malformed (wrong shape, non-finite entries
            or a rotation block that is not orthonormal within 1e-6).
    """

    C: np.ndarray = field(default_factory=lambda: np.eye(5))
    delta: np.ndarray = field(default_factory=lambda: np.zeros(6))
    E: np.ndarray = field(default_factory=lambda: np.eye(4))
    tau: float = 0.0
    Q: Dict[int, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Frozen: store validated float copies through object.__setattr__
        C = validate_se23(np.array(self.C, dtype=np.float64), name="C")
        E = validate_se3(np.array(self.E, dtype=np.float64), name="E")
        object.__setattr__(self, "C", C)
        object.__setattr__(self, "delta", finite_vector(self.delta, 6, "delta"))
        object.__setattr__(self, "E", E)
        object.__setattr__(self, "tau", finite_scalar(self.tau, "tau"))
        object.__setattr__(self, "Q", feature_dict(self.Q, "Q"))

    @property
    def A(self) -> np.ndarray:
        """Rotation block of C."""
        return self.C[0:3, 0:3]

    @property
    def a(self) -> np.ndarray:
        """Velocity column of C."""
        return self.C[0:3, 3]

    @property
    def b(self) -> np.ndarray:
        """Position column of C."""
        return self.C[0:3, 4]

    @property
    def chi(self) -> np.ndarray:
        """SE(3) image χ(C) = (A, a) acting on the bias translation."""
        return se3_from_rotation_translation(self.A, self.a)

    @property
    def feature_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self.Q))


def check_feature_ids(ids_1: Iterable[int], ids_2: Iterable[int], context: str) -> None:
    """Raise ValueError unless both collections hold the same feature ids."""
    ids_1 = set(ids_1)
    ids_2 = set(ids_2)
    if ids_1 != ids_2:
        raise ValueError(
            f"{context}: feature ids differ, "
            f"{sorted(ids_1 - ids_2)} vs {sorted(ids_2 - ids_1)}"
        )


def identity(feature_ids: Iterable[int] = ()) -> MSCEqFState:
    """Identity element with a zero translation for every feature id."""
    return MSCEqFState(Q={int(fid): np.zeros(3) for fid in feature_ids})


def compose(X1: MSCEqFState, X2: MSCEqFState) -> MSCEqFState:
    """Group product X1 · X2.

        C = C1 C2
        delta = delta1 + Ad_χ(C1) delta2
        E = E1 E2
        tau = tau1 + tau2
        Q_i = Q1_i + A1 Q2_i

    Raises:
        ValueError: If X1 and X2 carry different feature ids.
    """
    check_feature_ids(X1.Q, X2.Q, "compose")
    A1 = X1.A
    return MSCEqFState(
        C=X1.C @ X2.C,
        delta=X1.delta + se3_adjoint(X1.chi) @ X2.delta,
        E=X1.E @ X2.E,
        tau=X1.tau + X2.tau,
        Q={fid: X1.Q[fid] + A1 @ X2.Q[fid] for fid in X1.Q},
    )


def inverse(X: MSCEqFState) -> MSCEqFState:
    """Group inverse X⁻¹, so that compose(X, inverse(X)) is the identity."""
    At = so3_inverse(X.A)
    return MSCEqFState(
        C=se23_inverse(X.C),
        delta=-se3_adjoint(se3_inverse(X.chi)) @ X.delta,
        E=se3_inverse(X.E),
        tau=-X.tau,
        Q={fid: -At @ Qi for fid, Qi in X.Q.items()},
    )


def group_exp(Lambda: SystemStateAlgebraMap) -> MSCEqFState:
    """Exponential map from the symmetry Lie algebra to the group.

    Computes:
        C = Exp_SE2(3)(Λ_C)
        delta = J_SE(3)(ω, ν) Λ_delta
        E = Exp_SE(3)(Λ_E)
        tau = Λ_tau
        Q_i = J_SO(3)(ω) Λ_Qi

    where (ω, ν, ρ) = Λ_C. The map t ↦ group_exp(t Λ) is a one-parameter
    subgroup, so group_exp(2Λ) equals compose(group_exp(Λ), group_exp(Λ)).

    Args:
        Lambda: Lie-algebra element.

    Returns:
        Group element.
    """
    xi_C = Lambda.extended_pose
    J_rot = so3_left_jacobian(xi_C[0:3])
    return MSCEqFState(
        C=se23_exp(xi_C),
        delta=se3_left_jacobian(xi_C[0:6]) @ Lambda.bias,
        E=se3_exp(Lambda.extrinsic),
        tau=Lambda.time_offset,
        Q={fid: J_rot @ Qi for fid, Qi in Lambda.features.items()},
    )


def group_log(X: MSCEqFState) -> SystemStateAlgebraMap:
    """Logarithm map, the inverse of group_exp for rotations below π."""
    xi_C = se23_log(X.C)
    J_rot_inv = so3_left_jacobian_inv(xi_C[0:3])
    return SystemStateAlgebraMap(
        extended_pose=xi_C,
        bias=np.linalg.solve(se3_left_jacobian(xi_C[0:6]), X.delta),
        extrinsic=se3_log(X.E),
        time_offset=X.tau,
        features={fid: J_rot_inv @ Qi for fid, Qi in X.Q.items()},
    )


def dimension(X: MSCEqFState) -> int:
    """Dimension of the group, 22 + 3n for n features."""
    return FIXED_ALGEBRA_DIM + 3 * len(X.Q)


def random_group_element(
    rng: np.random.Generator, feature_ids: Iterable[int] = (), scale: float = 0.5
) -> MSCEqFState:
    """Draw a group element as the exponential of a Gaussian algebra vector.

    Rotation components are drawn with standard deviation scale / 2 so
    that rotation angles stay well below π for the default scale.
    """
    ids = sorted(int(fid) for fid in feature_ids)
    vec = rng.normal(0.0, scale, FIXED_ALGEBRA_DIM + 3 * len(ids))
    vec[0:3] *= 0.5
    vec[15:18] *= 0.5
    return group_exp(SystemStateAlgebraMap.from_vector(vec, ids))


def random_system_state(
    rng: np.random.Generator, feature_ids: Iterable[int] = ()
) -> SystemState:
    """Draw a well-formed system state with random entries."""
    return SystemState(
        q=rng.normal(size=4),
        v=rng.normal(size=3),
        p=rng.normal(0.0, 5.0, 3),
        b_g=rng.normal(0.0, 0.01, 3),
        b_a=rng.normal(0.0, 0.1, 3),
        q_ic=rng.normal(size=4),
        p_ic=rng.normal(0.0, 0.1, 3),
        t_d=rng.normal(0.0, 0.01),
        features={int(fid): rng.normal(0.0, 10.0, 3) for fid in feature_ids},
    )
