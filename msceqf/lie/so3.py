"""SO(3) operations: rotation matrices, quaternions and the rotation Lie algebra.

This module provides the rotation primitives every other group in the
package is built on:
- wedge/vee maps between R^3 and so(3) (skew-symmetric 3x3 matrices)
- closed-form exponential and logarithm maps (Rodrigues formula)
- left Jacobian of SO(3) and its inverse
- conversions between rotation matrices and unit quaternions

Conventions:
- Quaternions: [qw, qx, qy, qz] where qw is the scalar part (Hamilton)
- Rotation matrices: 3x3 numpy arrays, R maps body vectors to the
  reference frame, v_ref = R @ v_body
- Tangent vectors: rotation vector ω (axis * angle) in radians

Near-zero rotation angles are handled with Taylor expansions of the
trigonometric coefficients, so none of the maps divides by a vanishing
angle.

Reference: Barfoot, State Estimation for Robotics, Section 7.1
"""

import warnings

import numpy as np
from numpy.typing import NDArray

# Below this angle the trigonometric coefficients are evaluated by series
SMALL_ANGLE_THRESHOLD = 1e-5

# Above pi - NEAR_PI_THRESHOLD the logarithm recovers the axis from the
# symmetric part of R
NEAR_PI_THRESHOLD = 1e-3

# Tolerance used to accept a matrix as an element of SO(3)
ORTHONORMAL_TOLERANCE = 1e-6


def so3_wedge(omega: NDArray[np.float64]) -> NDArray[np.float64]:
    """Map a 3-vector to its skew-symmetric matrix.

    Args:
        omega: Vector [wx, wy, wz], shape (3,).

    Returns:
        Skew-symmetric matrix omega^ such that omega^ @ x = omega x x.

    Raises:
        ValueError: If omega is not a 3-element vector.

    Example:
        >>> W = so3_wedge(np.array([1.0, 2.0, 3.0]))
        >>> np.allclose(W.T, -W)
        True
    """
    omega = np.asarray(omega, dtype=np.float64)
    if omega.shape != (3,):
        raise ValueError(f"Expected 3-element vector, got shape {omega.shape}")

    wx, wy, wz = omega
    return np.array(
        [
            [0.0, -wz, wy],
            [wz, 0.0, -wx],
            [-wy, wx, 0.0],
        ],
        dtype=np.float64,
    )


def so3_vee(W: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of so3_wedge: extract the 3-vector of a skew-symmetric matrix.

    Only the lower-triangular entries are read, so the input is not
    required to be exactly skew-symmetric.

    Raises:
        ValueError: If W is not a 3x3 matrix.
    """
    W = np.asarray(W, dtype=np.float64)
    if W.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {W.shape}")

    return np.array([W[2, 1], W[0, 2], W[1, 0]], dtype=np.float64)


def so3_inverse(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of a rotation matrix (its transpose)."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")
    return R.T.copy()


def so3_adjoint(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Adjoint matrix of SO(3): Ad_R = R."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")
    return R.copy()


def so3_ad(omega: NDArray[np.float64]) -> NDArray[np.float64]:
    """Adjoint of so(3): ad_ω = ω^."""
    return so3_wedge(omega)


def _rodrigues_coefficients(theta: float):
    """Return (sin(t)/t, (1 - cos(t))/t^2, (t - sin(t))/t^3)."""
    if theta < SMALL_ANGLE_THRESHOLD:
        theta_sq = theta * theta
        return (
            1.0 - theta_sq / 6.0,
            0.5 - theta_sq / 24.0,
            1.0 / 6.0 - theta_sq / 120.0,
        )

    s = np.sin(theta)
    c = np.cos(theta)
    return (
        s / theta,
        (1.0 - c) / (theta * theta),
        (theta - s) / (theta * theta * theta),
    )


def so3_exp(omega: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map from so(3) to SO(3) (Rodrigues formula).

    Computes:
        R = I + (sin θ / θ) ω^ + ((1 - cos θ) / θ²) ω^ω^

    where θ = ||ω||. For θ below SMALL_ANGLE_THRESHOLD the coefficients are
    replaced by their second-order Taylor series.

    Args:
        omega: Rotation vector (axis * angle), shape (3,). Units: rad.

    Returns:
        Rotation matrix, shape (3, 3).

    Example:
        >>> R = so3_exp(np.array([0.0, 0.0, np.pi / 2]))
        >>> np.allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
        True
    """
    W = so3_wedge(omega)
    theta = float(np.linalg.norm(omega))
    a, b, _ = _rodrigues_coefficients(theta)

    return np.eye(3) + a * W + b * (W @ W)


def so3_log(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logarithm map from SO(3) to so(3).

    Returns the rotation vector ω with ||ω|| in [0, π] such that
    so3_exp(ω) = R. The identity maps to the zero vector.

    Three regimes are used:
        - θ ≈ 0: ω = (1/2 + θ²/12) vee(R - Rᵀ)
        - generic: ω = θ / (2 sin θ) vee(R - Rᵀ)
        - θ ≈ π: axis from the symmetric part of R, sign from vee(R - Rᵀ)

    Args:
        R: Rotation matrix, shape (3, 3).

    Returns:
        Rotation vector, shape (3,).

    Raises:
        ValueError: If R is not a 3x3 matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")

    cos_theta = np.clip(0.5 * (np.trace(R) - 1.0), -1.0, 1.0)
    theta = float(np.arccos(cos_theta))
    skew = so3_vee(R - R.T)

    if theta < SMALL_ANGLE_THRESHOLD:
        return (0.5 + theta * theta / 12.0) * skew

    if np.pi - theta > NEAR_PI_THRESHOLD:
        return (theta / (2.0 * np.sin(theta))) * skew

    # R + Rᵀ = 2 cos θ I + 2 (1 - cos θ) n nᵀ
    nnT = (0.5 * (R + R.T) - cos_theta * np.eye(3)) / (1.0 - cos_theta)
    i = int(np.argmax(np.diag(nnT)))
    axis = nnT[:, i] / np.sqrt(nnT[i, i])

    if np.linalg.norm(skew) < 1e-12:
        warnings.warn(
            "Rotation angle is pi within numerical precision; "
            "the sign of the logarithm is ambiguous",
            RuntimeWarning,
        )
    elif axis @ skew < 0.0:
        axis = -axis

    return theta * axis


def so3_left_jacobian(omega: NDArray[np.float64]) -> NDArray[np.float64]:
    """Left Jacobian of SO(3).

    J(ω) = I + ((1 - cos θ) / θ²) ω^ + ((θ - sin θ) / θ³) ω^ω^

    This is also the integral of so3_exp(s ω) for s in [0, 1] and is the
    matrix that maps the translational part of an se(3)/se2(3) tangent
    vector into the group.
    """
    W = so3_wedge(omega)
    theta = float(np.linalg.norm(omega))
    _, b, c = _rodrigues_coefficients(theta)

    return np.eye(3) + b * W + c * (W @ W)


def so3_left_jacobian_inv(omega: NDArray[np.float64]) -> NDArray[np.float64]:
    """Inverse of the left Jacobian of SO(3).

    J⁻¹(ω) = I - ½ ω^ + (1/θ² - (1 + cos θ) / (2 θ sin θ)) ω^ω^

    The last coefficient tends to 1/12 as θ → 0 and is singular at θ = 2π.
    """
    W = so3_wedge(omega)
    theta = float(np.linalg.norm(omega))

    if theta < SMALL_ANGLE_THRESHOLD:
        k = 1.0 / 12.0 + theta * theta / 720.0
    else:
        k = 1.0 / (theta * theta) - (1.0 + np.cos(theta)) / (
            2.0 * theta * np.sin(theta)
        )

    return np.eye(3) - 0.5 * W + k * (W @ W)


def validate_rotation_matrix(
    R: NDArray[np.float64], name: str = "R", atol: float = ORTHONORMAL_TOLERANCE
) -> NDArray[np.float64]:
    """Check that R is a finite, orthonormal, right-handed 3x3 matrix.

    Args:
        R: Candidate rotation matrix.
        name: Name used in the error message.
        atol: Tolerance on ||RᵀR - I|| and |det(R) - 1|.

    Returns:
        R as a float64 array.

    Raises:
        ValueError: If R is not a valid rotation matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"{name} must be a 3x3 matrix, got shape {R.shape}")
    if not np.all(np.isfinite(R)):
        raise ValueError(f"{name} contains non-finite entries")
    if not np.allclose(R.T @ R, np.eye(3), atol=atol):
        raise ValueError(f"{name} is not orthonormal")
    if abs(np.linalg.det(R) - 1.0) > atol:
        raise ValueError(f"{name} has determinant {np.linalg.det(R):.6f}, expected 1")
    return R


def quat_normalize(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalize a quaternion to unit norm.

    Raises:
        ValueError: If q is not a finite 4-element array or has zero norm.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")
    if not np.all(np.isfinite(q)):
        raise ValueError("Quaternion contains non-finite entries")

    norm = np.linalg.norm(q)
    if norm < 1e-12:
        raise ValueError("Quaternion has zero norm")

    return q / norm


def quat_to_rotation_matrix(q: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert quaternion to rotation matrix.

    Args:
        q: Unit quaternion as numpy array [qw, qx, qy, qz].

    Returns:
        3x3 rotation matrix R such that v_ref = R @ v_body.

    Raises:
        ValueError: If q is not a 4-element array.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")

    qw, qx, qy, qz = q

    return np.array(
        [
            [
                1.0 - 2.0 * (qy * qy + qz * qz),
                2.0 * (qx * qy - qw * qz),
                2.0 * (qx * qz + qw * qy),
            ],
            [
                2.0 * (qx * qy + qw * qz),
                1.0 - 2.0 * (qx * qx + qz * qz),
                2.0 * (qy * qz - qw * qx),
            ],
            [
                2.0 * (qx * qz - qw * qy),
                2.0 * (qy * qz + qw * qx),
                1.0 - 2.0 * (qx * qx + qy * qy),
            ],
        ],
        dtype=np.float64,
    )


def rotation_matrix_to_quat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Convert rotation matrix to quaternion.

    Extracts a unit quaternion from a 3x3 rotation matrix using
    Shepperd's method for numerical stability. The returned quaternion
    always has a non-negative scalar part.

    Args:
        R: 3x3 rotation matrix (orthogonal matrix in SO(3)).

    Returns:
        Unit quaternion as numpy array [qw, qx, qy, qz].

    Raises:
        ValueError: If R is not a 3x3 matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")

    # Shepperd's method: choose largest diagonal element for stability
    trace = np.trace(R)

    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        qw = 0.25 / s
        qx = (R[2, 1] - R[1, 2]) * s
        qy = (R[0, 2] - R[2, 0]) * s
        qz = (R[1, 0] - R[0, 1]) * s
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        qw = (R[2, 1] - R[1, 2]) / s
        qx = 0.25 * s
        qy = (R[0, 1] + R[1, 0]) / s
        qz = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        qw = (R[0, 2] - R[2, 0]) / s
        qx = (R[0, 1] + R[1, 0]) / s
        qy = 0.25 * s
        qz = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        qw = (R[1, 0] - R[0, 1]) / s
        qx = (R[0, 2] + R[2, 0]) / s
        qy = (R[1, 2] + R[2, 1]) / s
        qz = 0.25 * s

    q = np.array([qw, qx, qy, qz], dtype=np.float64)
    if qw < 0.0:
        q = -q

    return q / np.linalg.norm(q)
