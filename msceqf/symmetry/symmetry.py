"""Symmetry of the visual-inertial navigation system.

The symmetry group G = (SE2(3) ⋉ (R⁶ ⊕ R³ⁿ)) × SE(3) × R acts on the system
state through phi, the IMU input is lifted to the Lie algebra of G through
lift, and curvature_correction returns the reset matrix applied to the
filter covariance after an update.

IMU kinematics, with ω̃ = ω - b_g and ã = a - b_a:

    Ṫ = T (W - B + D) + (G - D) T,   ḃ = 0,   Ṡ = 0,   ṫ_d = 0,   ḟ_i = 0

where W = wedge(ω, a, 0), B = wedge(b_g, b_a, 0), G = wedge(0, g, 0) are
se2(3) matrices and D is the structure matrix that moves the velocity
column into the position column.

Key functions:
    - phi: left group action, phi(X1, phi(X2, ξ)) = phi(X1 X2, ξ)
    - lift: algebra element Λ with d/dt phi(exp(tΛ), ξ) = f(ξ, u) at t = 0
    - curvature_correction: Γ = I + ½ ad_Δ for an update Δ
    - propagate: one step of the lifted system on the group

References:
    van Goor, Mahony, Equivariant Filter (EqF), IEEE TAC 2023
    Fornasier et al., MSCEqF: A Multi State Constraint Equivariant Filter
    for Vision-aided Inertial Navigation, IEEE RA-L 2023
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import block_diag

from ..config import DEFAULT_GRAVITY_MAGNITUDE
from ..lie import (
    se3_ad,
    se3_adjoint,
    se23_ad,
    se23_inverse,
    se23_vee,
    se23_wedge,
    so3_ad,
    so3_wedge,
)
from ..sensors.types import Imu
from ..state import (
    MSCEqFState,
    SystemState,
    SystemStateAlgebraMap,
    check_feature_ids,
    compose,
    dimension,
    group_exp,
)

logger = logging.getLogger(__name__)

# Structure matrix: T @ D carries the velocity column of T into the position
# column. Shared and read-only.
D = np.zeros((5, 5))
D[3, 4] = 1.0
D.setflags(write=False)


def gravity_generator(
    gravity_magnitude: float = DEFAULT_GRAVITY_MAGNITUDE,
) -> NDArray[np.float64]:
    """se2(3) matrix G = wedge(0, g, 0) with g = [0, 0, -gravity_magnitude]."""
    xi = np.zeros(9)
    xi[5] = -gravity_magnitude
    return se23_wedge(xi)


def phi(X: MSCEqFState, xi: SystemState) -> SystemState:
    """
    Action of the symmetry group on the system state.

    Computes:
        T' = C T
        b' = Ad_χ(C) b + delta
        S' = E S
        t_d' = t_d + tau
        f_i' = A f_i + c + Q_i

    with A the rotation and c the position column of C. Inputs are not
    modified.

    Args:
        X: Symmetry group element.
        xi: System state. Must carry the same feature ids as X.

    Returns:
        New system state with normalized quaternions.

    Raises:
        ValueError: If X and xi carry different feature ids.

    Example:
        >>> from msceqf.state import identity
        >>> xi = SystemState(features={1: np.ones(3)})
        >>> np.allclose(phi(identity([1]), xi).features[1], 1.0)
        True
    """
    check_feature_ids(X.Q, xi.features, "phi")
    A = X.A
    c = X.b
    return SystemState.from_matrices(
        T=X.C @ xi.T,
        b=se3_adjoint(X.chi) @ xi.b + X.delta,
        S=X.E @ xi.S,
        t_d=xi.t_d + X.tau,
        features={fid: A @ f + c + X.Q[fid] for fid, f in xi.features.items()},
    )


def lift(
    xi: SystemState, u: Imu, gravity_magnitude: float = DEFAULT_GRAVITY_MAGNITUDE
) -> SystemStateAlgebraMap:
    """
    Lift the IMU input to the Lie algebra of the symmetry group.

    Computes, with ω̃ = ω - b_g and ã = a - b_a:

        Λ_C = vee(T (W - B + D) T⁻¹ + G - D)
            = [R ω̃,  R ã + v × R ω̃ + g,  p × R ω̃ + v]
        Λ_delta = -ad_χ(Λ_C) b
        Λ_E = 0,  Λ_tau = 0
        Λ_Qi = -(Λ_ω × f_i + Λ_ρ)

    so that the flow of Λ through phi reproduces the system kinematics.
    A level state at rest without biases, measuring a = [0, 0, g], lifts
    to zero.

    Args:
        xi: System state.
        u: IMU sample.
        gravity_magnitude: Magnitude of gravity in m/s².

    Returns:
        Lie-algebra element with the feature ids of xi.
    """
    W = se23_wedge(np.concatenate([u.gyro, u.accel, np.zeros(3)]))
    B = se23_wedge(np.concatenate([xi.b_g, xi.b_a, np.zeros(3)]))
    T = xi.T
    Lambda_C = se23_vee(
        T @ (W - B + D) @ se23_inverse(T) + gravity_generator(gravity_magnitude) - D
    )
    omega, rho = Lambda_C[0:3], Lambda_C[6:9]

    return SystemStateAlgebraMap(
        extended_pose=Lambda_C,
        bias=-se3_ad(Lambda_C[0:6]) @ xi.b,
        extrinsic=np.zeros(6),
        time_offset=0.0,
        features={fid: -(np.cross(omega, f) + rho) for fid, f in xi.features.items()},
    )


def curvature_correction(X: MSCEqFState, inn: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Curvature correction (reset) matrix for an update step.

    The update is applied on the left, X⁺ = exp(Δ) X̂, and the covariance
    is then reset as Σ⁺ = Γ Σ Γᵀ with

        Γ = I + ½ ad_Δ

    where ad_Δ is the adjoint matrix of the full symmetry algebra. Its
    non-zero blocks are ad_se2(3)(Δ_C) for the extended pose, ad_se(3) of
    the bias and of χ(Δ_C) for the bias translation, ad_se(3)(Δ_E) for the
    extrinsic, and Δ_Qi^, Δ_ω^ for each feature translation.

    Args:
        X: Current group estimate; fixes the dimension and feature ids.
        inn: Correction Δ in SystemStateAlgebraMap.to_vector order, shape
             (dimension(X),). An empty vector means no correction.

    Returns:
        Γ, shape (dimension(X), dimension(X)).

    Raises:
        ValueError: If inn is neither empty nor of length dimension(X).
    """
    n = dimension(X)
    inn = np.asarray(inn, dtype=np.float64).reshape(-1)
    if inn.size == 0:
        return np.eye(n)
    if inn.shape != (n,):
        raise ValueError(f"Innovation must have shape ({n},) or be empty, got {inn.shape}")

    delta = SystemStateAlgebraMap.from_vector(inn, X.feature_ids)
    d_C = delta.extended_pose
    W = so3_ad(d_C[0:3])

    ad = block_diag(
        se23_ad(d_C),
        se3_ad(d_C[0:6]),
        se3_ad(delta.extrinsic),
        np.zeros((1, 1)),
        *[W for _ in X.feature_ids],
    )

    # Coupling of the semidirect translations with the extended pose
    ad[9:15, 0:6] = se3_ad(delta.bias)
    for k, fid in enumerate(X.feature_ids):
        i = 22 + 3 * k
        ad[i:i + 3, 0:3] = so3_wedge(delta.features[fid])

    return np.eye(n) + 0.5 * ad


def propagate(
    X: MSCEqFState,
    xi0: SystemState,
    u: Imu,
    dt: float,
    gravity_magnitude: float = DEFAULT_GRAVITY_MAGNITUDE,
) -> MSCEqFState:
    """
    Integrate the lifted system over one IMU interval.

    With ξ = phi(X, ξ0) and Λ = lift(ξ, u), returns exp(dt Λ) X. The input
    is held constant over the step, so the state estimate phi(X, ξ0)
    follows a first-order integration of the IMU kinematics while the bias,
    extrinsic, time offset and feature blocks stay exactly constant.

    Args:
        X: Current group estimate.
        xi0: Fixed origin of the homogeneous space.
        u: IMU sample.
        dt: Step length in seconds, must be positive.
        gravity_magnitude: Magnitude of gravity in m/s².

    Returns:
        Propagated group estimate.

    Raises:
        ValueError: If dt is not positive.
    """
    if not dt > 0:
        raise ValueError(f"dt must be positive, got {dt}")

    Lambda = lift(phi(X, xi0), u, gravity_magnitude)
    logger.debug("Propagating over dt=%.6f s at t=%.6f", dt, u.t)
    return compose(group_exp(Lambda.scaled(dt)), X)
