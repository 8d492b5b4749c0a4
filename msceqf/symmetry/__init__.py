"""Symmetry of the MSCEqF: group action, lift and curvature correction."""

from .symmetry import D, curvature_correction, gravity_generator, lift, phi, propagate

__all__ = [
    "D",
    "gravity_generator",
    "phi",
    "lift",
    "curvature_correction",
    "propagate",
]
