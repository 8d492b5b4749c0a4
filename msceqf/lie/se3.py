"""SE(3) operations for rigid-body transforms.

Elements are 4x4 homogeneous matrices

    T = [[R, p],
         [0, 1]]

and tangent vectors are ordered rotation first, ξ = [ω, ρ] of shape (6,).
The SE(3) group appears twice in the symmetry: as the camera extrinsic
calibration block and as the image χ(C) of the extended pose, which acts on
the IMU bias through its Adjoint.

Key functions:
    - se3_exp / se3_log: closed-form exponential and logarithm
    - se3_adjoint: big Adjoint Ad_T (6x6)
    - se3_ad: small adjoint ad_ξ (6x6)
    - se3_left_jacobian: closed-form left Jacobian with series fallback

Reference: Barfoot, State Estimation for Robotics, Section 7.1.4
"""

import numpy as np
from numpy.typing import NDArray

from .so3 import (
    SMALL_ANGLE_THRESHOLD,
    so3_ad,
    so3_adjoint,
    so3_exp,
    so3_inverse,
    so3_left_jacobian,
    so3_left_jacobian_inv,
    so3_log,
    so3_wedge,
    validate_rotation_matrix,
)


def _check_tangent(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    xi = np.asarray(xi, dtype=np.float64)
    if xi.shape != (6,):
        raise ValueError(f"Expected 6-element se(3) vector, got shape {xi.shape}")
    return xi


def _check_element(T: NDArray[np.float64]) -> NDArray[np.float64]:
    T = np.asarray(T, dtype=np.float64)
    if T.shape != (4, 4):
        raise ValueError(f"Expected 4x4 SE(3) matrix, got shape {T.shape}")
    return T


def se3_from_rotation_translation(
    R: NDArray[np.float64], p: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Build the homogeneous matrix of (R, p)."""
    T = np.eye(4)
    T[0:3, 0:3] = R
    T[0:3, 3] = p
    return T


def se3_wedge(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Map ξ = [ω, ρ] to the 4x4 matrix [[ω^, ρ], [0, 0]]."""
    xi = _check_tangent(xi)
    X = np.zeros((4, 4))
    X[0:3, 0:3] = so3_wedge(xi[0:3])
    X[0:3, 3] = xi[3:6]
    return X


def se3_vee(X: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of se3_wedge."""
    X = _check_element(X)
    return np.concatenate(
        [np.array([X[2, 1], X[0, 2], X[1, 0]]), X[0:3, 3]]
    )


def se3_inverse(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Closed-form inverse (Rᵀ, -Rᵀ p)."""
    T = _check_element(T)
    Rt = so3_inverse(T[0:3, 0:3])
    return se3_from_rotation_translation(Rt, -Rt @ T[0:3, 3])


def se3_exp(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map from se(3) to SE(3).

    Computes R = Exp(ω) and p = J(ω) ρ, where J is the SO(3) left Jacobian.

    Args:
        xi: Tangent vector [ω, ρ], shape (6,).

    Returns:
        Homogeneous transform, shape (4, 4).
    """
    xi = _check_tangent(xi)
    omega = xi[0:3]
    return se3_from_rotation_translation(
        so3_exp(omega), so3_left_jacobian(omega) @ xi[3:6]
    )


def se3_log(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logarithm map from SE(3) to se(3).

    Valid for rotation angles below π. The identity maps to zero.

    Args:
        T: Homogeneous transform, shape (4, 4).

    Returns:
        Tangent vector [ω, ρ], shape (6,).
    """
    T = _check_element(T)
    omega = so3_log(T[0:3, 0:3])
    rho = so3_left_jacobian_inv(omega) @ T[0:3, 3]
    return np.concatenate([omega, rho])


def se3_adjoint(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Adjoint matrix of an SE(3) element.

    For ξ = [ω, ρ]:

        Ad_T = [[R,      0],
                [p^ R,   R]]

    so that (Ad_T ξ)^ = T ξ^ T⁻¹.
    """
    T = _check_element(T)
    R = T[0:3, 0:3]
    Ad = np.zeros((6, 6))
    Ad[0:3, 0:3] = so3_adjoint(R)
    Ad[3:6, 0:3] = so3_wedge(T[0:3, 3]) @ R
    Ad[3:6, 3:6] = Ad[0:3, 0:3]
    return Ad


def se3_ad(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Small adjoint (Lie bracket) matrix of se(3).

        ad_ξ = [[ω^, 0 ],
                [ρ^, ω^]]

    with ad_ξ1 ξ2 = vee([ξ1^, ξ2^]).
    """
    xi = _check_tangent(xi)
    W = so3_ad(xi[0:3])
    ad = np.zeros((6, 6))
    ad[0:3, 0:3] = W
    ad[3:6, 0:3] = so3_wedge(xi[3:6])
    ad[3:6, 3:6] = W
    return ad


def _q_coefficients(theta: float):
    """Coefficients of the Q block of the SE(3) left Jacobian."""
    if theta < SMALL_ANGLE_THRESHOLD:
        theta_sq = theta * theta
        return (
            1.0 / 6.0 - theta_sq / 120.0,
            1.0 / 24.0 - theta_sq / 720.0,
            1.0 / 120.0 - theta_sq / 2520.0,
        )

    s = np.sin(theta)
    c = np.cos(theta)
    theta_sq = theta * theta
    return (
        (theta - s) / (theta_sq * theta),
        (0.5 * theta_sq + c - 1.0) / (theta_sq * theta_sq),
        (theta - 1.5 * s + 0.5 * theta * c) / (theta_sq * theta_sq * theta),
    )


def se3_q_matrix(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Closed-form Q(ω, ρ) block of the SE(3) left Jacobian.

    Q = ½ ρ^
        + m2 (ω^ρ^ + ρ^ω^ + ω^ρ^ω^)
        + m3 (ω^ω^ρ^ + ρ^ω^ω^ - 3 ω^ρ^ω^)
        + m4 (ω^ρ^ω^ω^ + ω^ω^ρ^ω^)

    with m2 → 1/6, m3 → 1/24 and m4 → 1/120 as θ → 0.
    """
    xi = _check_tangent(xi)
    P = so3_wedge(xi[0:3])
    Rh = so3_wedge(xi[3:6])
    m2, m3, m4 = _q_coefficients(float(np.linalg.norm(xi[0:3])))

    PR = P @ Rh
    RP = Rh @ P
    PRP = PR @ P

    return (
        0.5 * Rh
        + m2 * (PR + RP + PRP)
        + m3 * (P @ PR + RP @ P - 3.0 * PRP)
        + m4 * (PRP @ P + P @ PRP)
    )


def se3_left_jacobian(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Left Jacobian of SE(3).

        J(ξ) = [[J(ω),    0   ],
                [Q(ω, ρ), J(ω)]]

    J(ξ) equals the series Σ ad_ξᵏ / (k + 1)! and the integral of
    Ad_{exp(s ξ)} over s in [0, 1].
    """
    xi = _check_tangent(xi)
    J_so3 = so3_left_jacobian(xi[0:3])
    J = np.zeros((6, 6))
    J[0:3, 0:3] = J_so3
    J[3:6, 0:3] = se3_q_matrix(xi)
    J[3:6, 3:6] = J_so3
    return J


def validate_se3(T: NDArray[np.float64], name: str = "T") -> NDArray[np.float64]:
    """Check that T is a well-formed SE(3) matrix.

    Raises:
        ValueError: On wrong shape, non-finite entries, an invalid rotation
            block or a bottom row other than [0, 0, 0, 1].
    """
    T = np.asarray(T, dtype=np.float64)
    if T.shape != (4, 4):
        raise ValueError(f"{name} must be a 4x4 matrix, got shape {T.shape}")
    if not np.all(np.isfinite(T)):
        raise ValueError(f"{name} contains non-finite entries")
    validate_rotation_matrix(T[0:3, 0:3], name=f"{name} rotation block")
    if not np.allclose(T[3], [0.0, 0.0, 0.0, 1.0]):
        raise ValueError(f"{name} bottom row must be [0, 0, 0, 1]")
    return T
