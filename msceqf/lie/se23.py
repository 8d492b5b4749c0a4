"""SE2(3) operations for the extended pose of an inertial navigation system.

SE2(3) bundles attitude, velocity and position into one 5x5 matrix

    T = [[R, v, p],
         [0, 1, 0],
         [0, 0, 1]]

so that a single exponential map propagates all three consistently. Tangent
vectors are ordered ξ = [ω, ν, ρ] (rotation, velocity, position), shape (9,).

Key functions:
    - se23_exp / se23_log: closed form, translations through the SO(3)
      left Jacobian
    - se23_adjoint / se23_ad: big and small adjoint matrices (9x9)
    - se23_left_jacobian: block form built from the SE(3) Q matrix

Reference: Barrau & Bonnabel, The Invariant Extended Kalman Filter as a
Stable Observer, Section 3
"""

import numpy as np
from numpy.typing import NDArray

from .se3 import se3_q_matrix
from .so3 import (
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
    if xi.shape != (9,):
        raise ValueError(f"Expected 9-element se2(3) vector, got shape {xi.shape}")
    return xi


def _check_element(T: NDArray[np.float64]) -> NDArray[np.float64]:
    T = np.asarray(T, dtype=np.float64)
    if T.shape != (5, 5):
        raise ValueError(f"Expected 5x5 SE2(3) matrix, got shape {T.shape}")
    return T


def se23_from_components(
    R: NDArray[np.float64], v: NDArray[np.float64], p: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Build the extended pose matrix of (R, v, p)."""
    T = np.eye(5)
    T[0:3, 0:3] = R
    T[0:3, 3] = v
    T[0:3, 4] = p
    return T


def se23_wedge(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Map ξ = [ω, ν, ρ] to [[ω^, ν, ρ], [0, 0, 0], [0, 0, 0]]."""
    xi = _check_tangent(xi)
    X = np.zeros((5, 5))
    X[0:3, 0:3] = so3_wedge(xi[0:3])
    X[0:3, 3] = xi[3:6]
    X[0:3, 4] = xi[6:9]
    return X


def se23_vee(X: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of se23_wedge. The last two rows of X are ignored."""
    X = _check_element(X)
    return np.concatenate(
        [np.array([X[2, 1], X[0, 2], X[1, 0]]), X[0:3, 3], X[0:3, 4]]
    )


def se23_inverse(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Closed-form inverse (Rᵀ, -Rᵀ v, -Rᵀ p)."""
    T = _check_element(T)
    Rt = so3_inverse(T[0:3, 0:3])
    return se23_from_components(Rt, -Rt @ T[0:3, 3], -Rt @ T[0:3, 4])


def se23_exp(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map from se2(3) to SE2(3).

    Computes:
        R = Exp(ω),  v = J(ω) ν,  p = J(ω) ρ

    Both Exp and the left Jacobian J switch to Taylor series for rotation
    angles close to zero, so the map is smooth through ω = 0.

    Args:
        xi: Tangent vector [ω, ν, ρ], shape (9,).

    Returns:
        Extended pose, shape (5, 5).

    Example:
        >>> T = se23_exp(np.zeros(9))
        >>> np.allclose(T, np.eye(5))
        True
    """
    xi = _check_tangent(xi)
    omega = xi[0:3]
    J = so3_left_jacobian(omega)
    return se23_from_components(so3_exp(omega), J @ xi[3:6], J @ xi[6:9])


def se23_log(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logarithm map from SE2(3) to se2(3).

    Inverse of se23_exp for rotation angles below π. The identity maps to
    the zero vector.

    Args:
        T: Extended pose, shape (5, 5).

    Returns:
        Tangent vector [ω, ν, ρ], shape (9,).
    """
    T = _check_element(T)
    omega = so3_log(T[0:3, 0:3])
    J_inv = so3_left_jacobian_inv(omega)
    return np.concatenate([omega, J_inv @ T[0:3, 3], J_inv @ T[0:3, 4]])


def se23_adjoint(T: NDArray[np.float64]) -> NDArray[np.float64]:
    """Adjoint matrix of an extended pose.

        Ad_T = [[R,     0, 0],
                [v^ R,  R, 0],
                [p^ R,  0, R]]
    """
    T = _check_element(T)
    R = T[0:3, 0:3]
    Ad = np.zeros((9, 9))
    Ad[0:3, 0:3] = so3_adjoint(R)
    Ad[3:6, 0:3] = so3_wedge(T[0:3, 3]) @ R
    Ad[3:6, 3:6] = Ad[0:3, 0:3]
    Ad[6:9, 0:3] = so3_wedge(T[0:3, 4]) @ R
    Ad[6:9, 6:9] = Ad[0:3, 0:3]
    return Ad


def se23_ad(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Small adjoint matrix of se2(3).

        ad_ξ = [[ω^, 0,  0 ],
                [ν^, ω^, 0 ],
                [ρ^, 0,  ω^]]
    """
    xi = _check_tangent(xi)
    W = so3_ad(xi[0:3])
    ad = np.zeros((9, 9))
    ad[0:3, 0:3] = W
    ad[3:6, 0:3] = so3_wedge(xi[3:6])
    ad[3:6, 3:6] = W
    ad[6:9, 0:3] = so3_wedge(xi[6:9])
    ad[6:9, 6:9] = W
    return ad


def se23_left_jacobian(xi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Left Jacobian of SE2(3).

    Each translational block couples to the rotation through the SE(3)
    Q matrix of (ω, ν) and (ω, ρ) respectively.
    """
    xi = _check_tangent(xi)
    omega = xi[0:3]
    J_so3 = so3_left_jacobian(omega)
    J = np.zeros((9, 9))
    J[0:3, 0:3] = J_so3
    J[3:6, 0:3] = se3_q_matrix(np.concatenate([omega, xi[3:6]]))
    J[3:6, 3:6] = J_so3
    J[6:9, 0:3] = se3_q_matrix(np.concatenate([omega, xi[6:9]]))
    J[6:9, 6:9] = J_so3
    return J


def validate_se23(T: NDArray[np.float64], name: str = "T") -> NDArray[np.float64]:
    """Check that T is a well-formed SE2(3) matrix.

    Raises:
        ValueError: On wrong shape, non-finite entries, an invalid rotation
            block or a bottom block other than [[0, 1, 0], [0, 0, 1]].
    """
    T = np.asarray(T, dtype=np.float64)
    if T.shape != (5, 5):
        raise ValueError(f"{name} must be a 5x5 matrix, got shape {T.shape}")
    if not np.all(np.isfinite(T)):
        raise ValueError(f"{name} contains non-finite entries")
    validate_rotation_matrix(T[0:3, 0:3], name=f"{name} rotation block")
    if not np.allclose(T[3:5], np.eye(5)[3:5]):
        raise ValueError(f"{name} bottom rows must be [[0, 0, 0, 1, 0], [0, 0, 0, 0, 1]]")
    return T
