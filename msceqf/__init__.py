"""Symmetry core of the Multi State Constraint Equivariant Filter (MSCEqF).

This package contains the mathematical building blocks of an equivariant
filter for visual-inertial navigation:
- lie: SO(3), SE(3) and SE2(3) primitives
- state: system state, Lie-algebra elements and symmetry group elements
- symmetry: group action phi, lift, curvature correction and propagation
- sensors: sensor records and CSV dataset parsing
- config: YAML-backed configuration
"""

__version__ = "0.1.0"
