"""State representations for the MSCEqF.

Main components:
    - SystemState: physical navigation state ξ (pose, biases, extrinsic,
      time offset, features)
    - SystemStateAlgebraMap: Lie-algebra element Λ with a fixed vector
      ordering
    - MSCEqFState: symmetry group element X and the free functions
      identity, compose, inverse, group_exp, group_log, dimension
"""

from .msceqf_state import (
    MSCEqFState,
    check_feature_ids,
    compose,
    dimension,
    group_exp,
    group_log,
    identity,
    inverse,
    random_group_element,
    random_system_state,
)
from .system_state import FIXED_ALGEBRA_DIM, SystemState, SystemStateAlgebraMap

__all__ = [
    "FIXED_ALGEBRA_DIM",
    "SystemState",
    "SystemStateAlgebraMap",
    "MSCEqFState",
    "check_feature_ids",
    "identity",
    "compose",
    "inverse",
    "group_exp",
    "group_log",
    "dimension",
    "random_group_element",
    "random_system_state",
]
