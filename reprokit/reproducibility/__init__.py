"""
Reproducibility Module

Rebuilds trained models from their provenance and checks that the result
matches the original.
"""

from .reproducer import Reproducer, ReproState, validate_equivalence

__all__ = [
    "Reproducer",
    "ReproState",
    "validate_equivalence",
]
