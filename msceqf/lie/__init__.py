"""Matrix Lie group primitives used by the MSCEqF symmetry.

Main components:
    - so3_*: rotation matrices, quaternions, exp/log and left Jacobians
    - se3_*: rigid transforms, used for the camera extrinsic and the
      bias-acting image of the extended pose
    - se23_*: extended poses (attitude, velocity, position)

All tangent vectors are ordered rotation first.

Example usage:
    >>> import numpy as np
    >>> from msceqf.lie import se23_exp, se23_log
    >>> xi = np.array([0.1, 0.0, 0.2, 1.0, 0.0, 0.0, 0.0, 2.0, 0.0])
    >>> np.allclose(se23_log(se23_exp(xi)), xi)
    True
"""

from .se3 import (
    se3_ad,
    se3_adjoint,
    se3_exp,
    se3_from_rotation_translation,
    se3_inverse,
    se3_left_jacobian,
    se3_log,
    se3_q_matrix,
    se3_vee,
    se3_wedge,
    validate_se3,
)
from .se23 import (
    se23_ad,
    se23_adjoint,
    se23_exp,
    se23_from_components,
    se23_inverse,
    se23_left_jacobian,
    se23_log,
    se23_vee,
    se23_wedge,
    validate_se23,
)
from .so3 import (
    ORTHONORMAL_TOLERANCE,
    SMALL_ANGLE_THRESHOLD,
    quat_normalize,
    quat_to_rotation_matrix,
    rotation_matrix_to_quat,
    so3_ad,
    so3_adjoint,
    so3_exp,
    so3_inverse,
    so3_left_jacobian,
    so3_left_jacobian_inv,
    so3_log,
    so3_vee,
    so3_wedge,
    validate_rotation_matrix,
)

__all__ = [
    # SO(3)
    "ORTHONORMAL_TOLERANCE",
    "SMALL_ANGLE_THRESHOLD",
    "so3_wedge",
    "so3_vee",
    "so3_inverse",
    "so3_adjoint",
    "so3_ad",
    "so3_exp",
    "so3_log",
    "so3_left_jacobian",
    "so3_left_jacobian_inv",
    "validate_rotation_matrix",
    "quat_normalize",
    "quat_to_rotation_matrix",
    "rotation_matrix_to_quat",
    # SE(3)
    "se3_from_rotation_translation",
    "se3_wedge",
    "se3_vee",
    "se3_inverse",
    "se3_exp",
    "se3_log",
    "se3_adjoint",
    "se3_ad",
    "se3_q_matrix",
    "se3_left_jacobian",
    "validate_se3",
    # SE2(3)
    "se23_from_components",
    "se23_wedge",
    "se23_vee",
    "se23_inverse",
    "se23_exp",
    "se23_log",
    "se23_adjoint",
    "se23_ad",
    "se23_left_jacobian",
    "validate_se23",
]
